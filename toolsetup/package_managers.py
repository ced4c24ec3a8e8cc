"""
System package managers used to install roster tools.

apt on Linux, Homebrew on macOS. Each manager installs (optionally at an
exact version), pins, and refreshes its package index.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass

from .common import vlog
from .detection import run_command, run_interactive
from .environment import Platform, UnsupportedPlatformError


# Cache for package manager availability checks
_PM_CACHE: dict[str, bool] = {}


class InstallError(Exception):
    """
    Base exception for installation errors.

    Attributes:
        message: Human-readable error message
        exit_code: Exit status of the failed command, if any
        remediation: Suggested fix for the error
    """
    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        remediation: str | None = None,
    ):
        self.message = message
        self.exit_code = exit_code
        self.remediation = remediation
        super().__init__(message)


@dataclass(frozen=True)
class PackageManager:
    """
    Package manager definition.

    Attributes:
        name: Package manager identifier ("apt", "brew")
        display_name: Human-readable name
        check_command: Command to check if manager is available
        install_command_template: Install command ({package} placeholder)
        versioned_package_template: Package spec when a version is requested
        pin_command_template: Command that prevents future upgrades
        refresh_command: Command that refreshes the package index (None if not needed)
        freshness_marker: File whose mtime records the last index refresh
        category: "system" managers run with sudo
    """
    name: str
    display_name: str
    check_command: tuple[str, ...]
    install_command_template: tuple[str, ...]
    versioned_package_template: str
    pin_command_template: tuple[str, ...]
    refresh_command: tuple[str, ...] | None = None
    freshness_marker: str | None = None
    category: str = "system"

    @property
    def requires_sudo(self) -> bool:
        return self.category == "system" and hasattr(os, "geteuid") and os.geteuid() != 0

    def _with_sudo(self, command: tuple[str, ...]) -> tuple[str, ...]:
        return ("sudo",) + command if self.requires_sudo else command

    def is_available(self, timeout: int = 1) -> bool:
        """
        Check if this package manager is available on the system.

        Args:
            timeout: Timeout in seconds for check command

        Returns:
            True if package manager is installed and accessible
        """
        if self.name in _PM_CACHE:
            return _PM_CACHE[self.name]

        available = run_command(self.check_command, timeout=timeout).success
        _PM_CACHE[self.name] = available
        return available

    def get_install_command(self, package: str, version: str | None = None) -> tuple[str, ...]:
        """
        Get install command for a package.

        Args:
            package: Package name
            version: Exact version to install (None for the default candidate)

        Returns:
            Command tuple to install the package
        """
        if version:
            package = self.versioned_package_template.format(package=package, version=version)
        command = tuple(part.replace("{package}", package) for part in self.install_command_template)
        return self._with_sudo(command)

    def get_pin_command(self, package: str) -> tuple[str, ...]:
        command = tuple(part.replace("{package}", package) for part in self.pin_command_template)
        return self._with_sudo(command)

    def index_is_stale(self, max_age_hours: int) -> bool:
        """
        Whether the package index should be refreshed.

        A missing marker counts as stale; managers without a refresh step
        are never stale.
        """
        if self.refresh_command is None or self.freshness_marker is None:
            return False
        try:
            age_seconds = time.time() - os.path.getmtime(self.freshness_marker)
        except OSError:
            return True
        return age_seconds > max_age_hours * 3600

    def refresh_index(self, max_age_hours: int, force: bool = False, verbose: bool = False) -> int:
        """
        Refresh the package index unless it is fresh enough.

        Returns:
            Exit status of the refresh command (0 when skipped)
        """
        if self.refresh_command is None:
            return 0
        if not force and not self.index_is_stale(max_age_hours):
            vlog(f"{self.display_name} index is younger than {max_age_hours}h, skipping refresh", verbose)
            return 0
        return run_interactive(self._with_sudo(self.refresh_command), verbose=verbose)

    def install(self, package: str, version: str | None = None, verbose: bool = False) -> int:
        """Install or upgrade a package; returns the install command's exit status."""
        return run_interactive(self.get_install_command(package, version), verbose=verbose)

    def pin(self, package: str, verbose: bool = False) -> int:
        """Hold a package at its installed version; returns the exit status."""
        return run_interactive(self.get_pin_command(package), verbose=verbose)


PACKAGE_MANAGERS = (
    PackageManager(
        name="apt",
        display_name="apt",
        check_command=("apt-get", "--version"),
        install_command_template=("apt-get", "install", "--upgrade", "--yes", "--quiet", "{package}"),
        versioned_package_template="{package}={version}",
        pin_command_template=("apt-mark", "hold", "{package}"),
        refresh_command=("apt-get", "update", "--yes", "--quiet"),
        freshness_marker="/var/cache/apt/pkgcache.bin",
        category="system",
    ),
    PackageManager(
        name="brew",
        display_name="Homebrew",
        check_command=("brew", "--version"),
        install_command_template=("brew", "install", "{package}"),
        versioned_package_template="{package}@{version}",
        pin_command_template=("brew", "pin", "{package}"),
        category="user",
    ),
)

_PM_BY_NAME = {pm.name: pm for pm in PACKAGE_MANAGERS}

# Platform system name → package manager name
PLATFORM_PACKAGE_MANAGERS = {
    "Linux": "apt",
    "Darwin": "brew",
}


def get_package_manager(name: str) -> PackageManager | None:
    """Get package manager by name, or None if not found."""
    return _PM_BY_NAME.get(name)


def select_package_manager(platform: Platform, verbose: bool = False) -> PackageManager:
    """
    Select the package manager for a platform.

    Raises:
        UnsupportedPlatformError: If the platform has no package manager
        InstallError: If the package manager is not available
    """
    pm_name = PLATFORM_PACKAGE_MANAGERS.get(platform.system)
    if pm_name is None:
        raise UnsupportedPlatformError(platform.system)

    pm = _PM_BY_NAME[pm_name]
    if not pm.is_available():
        raise InstallError(
            f"{pm.display_name} is not available on this {platform.system} host",
            remediation=f"Install {pm.display_name} first",
        )
    vlog(f"Selected {pm.name} for {platform}", verbose)
    return pm


def clear_cache() -> None:
    """Clear the package manager availability cache."""
    _PM_CACHE.clear()
