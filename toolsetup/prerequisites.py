"""
Host prerequisites checked before any tool is processed.
"""

from __future__ import annotations

from .common import vlog
from .detection import run_command
from .environment import Platform

XQUARTZ_INSTRUCTIONS = """XQuartz is required for GUI applications on macOS. Install it manually:
brew install --cask xquartz

XQuartz notes on first install:
- Launch XQuartz. Under the XQuartz menu, select Preferences
- Go to the security tab and ensure "Allow connections from network clients" is checked."""


class PrerequisiteError(RuntimeError):
    """
    Raised when the host lacks something every tool depends on.

    Attributes:
        prerequisite: Name of the missing prerequisite
    """

    def __init__(self, prerequisite: str, message: str):
        self.prerequisite = prerequisite
        super().__init__(message)


def check_xquartz(platform: Platform, verbose: bool = False) -> None:
    """
    Ensure XQuartz is installed on macOS; no-op elsewhere.

    Raises:
        PrerequisiteError: If running on macOS without XQuartz
    """
    if not platform.is_macos:
        return

    result = run_command(("brew", "list", "xquartz"), verbose=verbose)
    if not result.success:
        raise PrerequisiteError("xquartz", XQUARTZ_INSTRUCTIONS)
    vlog("XQuartz is installed", verbose)
