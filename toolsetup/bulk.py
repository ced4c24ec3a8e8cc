"""
Roster-wide checks.

Every tool is checked in roster order, one after another; a failing tool
never stops the batch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from .checker import CheckResult, Classification, check_tool
from .config import Config
from .tools import ToolSpec, all_tools

# Highest value a process exit status can carry
MAX_EXIT_STATUS = 255


@dataclass(frozen=True)
class BatchReport:
    """
    Check results for a whole roster.

    Attributes:
        results: One CheckResult per tool, in roster order
    """
    results: tuple[CheckResult, ...]

    @property
    def exit_status(self) -> int:
        """Sum of the per-tool exit signals (0 when every tool is ready)."""
        return sum(r.exit_signal for r in self.results)

    @property
    def healthy(self) -> bool:
        return self.exit_status == 0

    def count(self, classification: Classification) -> int:
        return sum(1 for r in self.results if r.classification is classification)

    def process_exit_code(self) -> int:
        """Exit status clamped to what a process can return."""
        return min(self.exit_status, MAX_EXIT_STATUS)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "exit_status": self.exit_status,
            "results": [r.to_dict() for r in self.results],
        }


def check_all(
    tools: Sequence[ToolSpec] | None = None,
    config: Config | None = None,
    on_result: Callable[[CheckResult], None] | None = None,
    verbose: bool = False,
) -> BatchReport:
    """
    Check every tool of the roster.

    Args:
        tools: Tools to check (defaults to the configured roster)
        config: Configuration (defaults used when None)
        on_result: Called with each result as soon as it is available
        verbose: Enable verbose logging

    Returns:
        BatchReport with results in input order
    """
    config = config or Config()
    if tools is None:
        tools = all_tools(config)

    results: list[CheckResult] = []
    for spec in tools:
        result = check_tool(spec, config, verbose=verbose)
        results.append(result)
        if on_result is not None:
            on_result(result)

    return BatchReport(results=tuple(results))
