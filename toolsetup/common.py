"""
Common utilities shared across toolsetup modules.
"""

from __future__ import annotations

import os
import sys

# Name shown in remediation hints ("Run: toolsetup gh")
PROG_NAME = "toolsetup"

DEBUG_ENV_VAR = "TOOLSETUP_DEBUG"

REMOTE_SESSION_ENV_VARS = ("SSH_CONNECTION", "SSH_CLIENT", "SSH_TTY")


def is_debug_enabled() -> bool:
    """Return True when TOOLSETUP_DEBUG is set to a truthy value."""
    return os.environ.get(DEBUG_ENV_VAR, "0") not in ("", "0", "false", "no")


def is_remote_session() -> bool:
    """
    Check if running inside an SSH session.

    Returns:
        True if any SSH session indicator is present, False otherwise.
    """
    return any(os.environ.get(var) for var in REMOTE_SESSION_ENV_VARS)


def remediation(tool_name: str, *args: str | None) -> str:
    """Build the "Run: toolsetup <tool> ..." hint shown next to a failed check."""
    parts = [PROG_NAME, tool_name] + [a for a in args if a]
    return "Run: " + " ".join(parts)


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log verbose message using structured logging.

    Emits when verbose is requested or TOOLSETUP_DEBUG is set.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or is_debug_enabled():
        try:
            from .logging_config import get_logger
            get_logger().info(msg)
        except Exception:
            print(f"[toolsetup] {msg}", file=sys.stderr)
