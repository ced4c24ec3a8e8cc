"""
Platform detection.

Only Linux (including WSL) and macOS are supported; anything else is
rejected before any tool is touched.
"""

from __future__ import annotations

import platform as _platform
from dataclasses import dataclass

from .common import is_remote_session, vlog

SUPPORTED_SYSTEMS = ("Linux", "Darwin")


class UnsupportedPlatformError(RuntimeError):
    """Raised when running on an operating system other than Linux or macOS."""

    def __init__(self, system: str):
        self.system = system
        super().__init__(
            f"{system or 'unknown'} is not supported. "
            "For Windows, set up WSL/Ubuntu and run toolsetup there"
        )


@dataclass(frozen=True)
class Platform:
    """
    Detected platform information.

    Attributes:
        system: Operating system name as reported by uname ("Linux", "Darwin")
        is_wsl: Linux running under Windows Subsystem for Linux
        remote_session: Running inside an SSH session
    """
    system: str
    is_wsl: bool = False
    remote_session: bool = False

    @property
    def is_linux(self) -> bool:
        return self.system == "Linux"

    @property
    def is_macos(self) -> bool:
        return self.system == "Darwin"

    def __str__(self) -> str:
        label = "WSL" if self.is_wsl else self.system
        return f"{label} (remote)" if self.remote_session else label


def _running_under_wsl(proc_version: str = "/proc/version") -> bool:
    try:
        with open(proc_version, "r", encoding="utf-8", errors="replace") as f:
            return "microsoft" in f.read().lower()
    except OSError:
        return False


def detect_platform(system: str | None = None, verbose: bool = False) -> Platform:
    """
    Detect the current platform.

    Args:
        system: Override for the OS name (defaults to platform.system())
        verbose: Enable verbose logging

    Returns:
        Platform object

    Raises:
        UnsupportedPlatformError: If the OS is not Linux or macOS
    """
    system = system if system is not None else _platform.system()
    if system not in SUPPORTED_SYSTEMS:
        raise UnsupportedPlatformError(system)

    detected = Platform(
        system=system,
        is_wsl=system == "Linux" and _running_under_wsl(),
        remote_session=is_remote_session(),
    )
    vlog(f"Platform detected: {detected}", verbose)
    return detected
