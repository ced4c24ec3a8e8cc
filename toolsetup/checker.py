"""
Tool status classification.

check_tool() runs existence → version parse → minimum version → auth probe
and stops at the first failing stage. The classification value doubles as
the tool's exit signal so a batch can sum them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .auth import ProbeOutcome, probe_auth
from .common import remediation, vlog
from .config import Config
from .detection import VersionParseError, find_executable, get_version_line, parse_version
from .tools import ToolSpec
from .versions import meets_minimum


class Classification(IntEnum):
    """Result of checking one tool.

    Every tool starts unchecked; check_tool() always lands in one of
    these states.
    """
    READY = 0
    NOT_INSTALLED = 1
    VERSION_UNPARSABLE = 2
    VERSION_TOO_LOW = 3
    NOT_AUTHENTICATED = 4

    @property
    def level(self) -> str:
        """Severity used for the status icon: success, warning or error."""
        if self is Classification.READY:
            return "success"
        if self in (Classification.VERSION_TOO_LOW, Classification.NOT_AUTHENTICATED):
            return "warning"
        return "error"

    @property
    def recoverable(self) -> bool:
        """Whether the installer can act on this state without the operator."""
        return self in (Classification.NOT_INSTALLED, Classification.NOT_AUTHENTICATED)


@dataclass(frozen=True)
class CheckResult:
    """
    Outcome of evaluating one tool at one instant.

    Attributes:
        tool_name: Tool that was checked
        classification: Resulting state
        observed_version: Parsed version, None if not installed or unparsable
        message: Domain, remediation hint or error text
    """
    tool_name: str
    classification: Classification
    observed_version: str | None = None
    message: str = ""

    @property
    def exit_signal(self) -> int:
        return int(self.classification)

    @property
    def ready(self) -> bool:
        return self.classification is Classification.READY

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "tool": self.tool_name,
            "classification": self.classification.name,
            "observed_version": self.observed_version,
            "message": self.message,
        }


def check_tool(spec: ToolSpec, config: Config | None = None, verbose: bool = False) -> CheckResult:
    """
    Classify a tool's installation, version and authentication state.

    A version below the minimum is reported without probing authentication.

    Args:
        spec: Tool to check
        config: Configuration (defaults used when None)
        verbose: Enable verbose logging

    Returns:
        Fresh CheckResult
    """
    config = config or Config()
    name = spec.name

    if not find_executable(name):
        vlog(f"{name} not found in PATH", verbose)
        return CheckResult(
            name,
            Classification.NOT_INSTALLED,
            message=f"Not installed. {remediation(name, spec.required_version)}",
        )

    raw = get_version_line(
        name,
        spec.version_flag,
        timeout=config.preferences.probe_timeout_seconds,
        verbose=verbose,
    )
    try:
        version = parse_version(name, raw, command=f"{name} {spec.version_flag}")
    except VersionParseError as e:
        return CheckResult(name, Classification.VERSION_UNPARSABLE, message=f"error: {e}")

    if not meets_minimum(version, spec.required_version):
        return CheckResult(
            name,
            Classification.VERSION_TOO_LOW,
            observed_version=version,
            message=(
                f"v{version} is lower than required v{spec.required_version}. "
                f"Uninstall {name} manually, then {remediation(name, spec.required_version)}"
            ),
        )

    probe = probe_auth(name, config, verbose=verbose)
    if probe.outcome is ProbeOutcome.NOT_AUTHENTICATED:
        return CheckResult(
            name,
            Classification.NOT_AUTHENTICATED,
            observed_version=version,
            message=f"{name} is not authenticated to {probe.domain}. {remediation(name)}",
        )

    return CheckResult(name, Classification.READY, observed_version=version, message=probe.domain)
