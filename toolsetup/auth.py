"""
Authentication probes.

Each tool with a backing service registers an AuthProbe: an external
command whose exit status (or output) tells whether valid credentials are
already present. Tools without a login concept register None.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from .common import vlog
from .config import Config
from .detection import run_command

logger = logging.getLogger(__name__)

NOT_APPLICABLE_DOMAIN = "-"


class ProbeOutcome(Enum):
    AUTHENTICATED = "authenticated"
    NOT_AUTHENTICATED = "not-authenticated"
    NOT_APPLICABLE = "not-applicable"


@dataclass(frozen=True)
class AuthProbe:
    """
    External authentication test for one tool.

    Attributes:
        domain: Backing service the tool authenticates against
        command: Command to run
        success_pattern: Regex matched (case-insensitive) against the output;
            when None the exit status alone decides
    """
    domain: str
    command: tuple[str, ...]
    success_pattern: str | None = None

    def run(self, timeout: float | None = None, verbose: bool = False) -> bool:
        """Run the probe and return True if the tool is authenticated."""
        result = run_command(self.command, timeout=timeout, verbose=verbose)
        if self.success_pattern is None:
            return result.success
        return re.search(self.success_pattern, result.output, re.IGNORECASE) is not None


@dataclass(frozen=True)
class AuthProbeResult:
    """Outcome of probing one tool, with the domain shown in the status table."""
    outcome: ProbeOutcome
    domain: str

    @property
    def ok(self) -> bool:
        return self.outcome is not ProbeOutcome.NOT_AUTHENTICATED


def auth_probes(config: Config | None = None) -> dict[str, AuthProbe | None]:
    """
    Registry of authentication probes keyed by tool name.

    None marks a tool with no login concept.
    """
    config = config or Config()
    registry = config.auth.registry
    return {
        # ssh -T exits 1 even on success, the greeting is the signal
        "git": AuthProbe(
            domain="github.com",
            command=("ssh", "-o", "BatchMode=yes", "-T", "git@github.com"),
            success_pattern=r"successfully",
        ),
        "gh": AuthProbe(
            domain="github.com",
            command=("gh", "auth", "status"),
        ),
        "docker": AuthProbe(
            domain=registry,
            command=("docker", "login", registry),
            success_pattern=r"succeeded",
        ),
        "dvc": AuthProbe(
            domain="google.com/drive",
            command=("dvc", "status", "--cloud"),
        ),
        "rclone": AuthProbe(
            domain="google.com/drive",
            command=("rclone", "config", "show", config.auth.rclone_remote),
        ),
        "ffmpeg": None,
        "yq": None,
        "jq": None,
    }


def probe_auth(tool_name: str, config: Config | None = None, verbose: bool = False) -> AuthProbeResult:
    """
    Check whether a tool is authenticated to its backing service.

    Tools without a login concept report NOT_APPLICABLE with domain "-".
    Tools with no registered probe are treated as authenticated with an
    empty domain so one unknown tool never fails a whole batch.

    Args:
        tool_name: Tool to probe
        config: Configuration (defaults used when None)
        verbose: Enable verbose logging

    Returns:
        AuthProbeResult
    """
    config = config or Config()
    probes = auth_probes(config)

    if tool_name not in probes:
        logger.warning("Authentication check not implemented for %s", tool_name)
        return AuthProbeResult(ProbeOutcome.AUTHENTICATED, "")

    probe = probes[tool_name]
    if probe is None:
        return AuthProbeResult(ProbeOutcome.NOT_APPLICABLE, NOT_APPLICABLE_DOMAIN)

    authenticated = probe.run(timeout=config.preferences.probe_timeout_seconds, verbose=verbose)
    vlog(f"{tool_name} auth probe: {'ok' if authenticated else 'failed'} ({probe.domain})", verbose)
    outcome = ProbeOutcome.AUTHENTICATED if authenticated else ProbeOutcome.NOT_AUTHENTICATED
    return AuthProbeResult(outcome, probe.domain)
