"""
Single-tool installation and authentication.

install_or_authenticate() checks the tool, performs at most one corrective
action for its classification and checks again:

    READY               → nothing to do
    VERSION_UNPARSABLE  → terminal, operator must uninstall
    VERSION_TOO_LOW     → terminal, operator must uninstall
    NOT_INSTALLED       → pre-install hooks + package manager, then login
    NOT_AUTHENTICATED   → login only
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

from .authenticators import authenticate, has_authenticator
from .checker import CheckResult, Classification, check_tool
from .common import vlog
from .config import Config
from .environment import Platform
from .hooks import HookContext, HookResult, run_pre_install_hooks
from .package_managers import InstallError, select_package_manager
from .tools import ToolSpec

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VERSION_UNPARSABLE = int(Classification.VERSION_UNPARSABLE)
EXIT_VERSION_TOO_LOW = int(Classification.VERSION_TOO_LOW)
EXIT_INSTALL_FAILED = 5
EXIT_MANUAL_STEP = 6


@dataclass(frozen=True)
class InstallOutcome:
    """
    Result of one install_or_authenticate() call.

    Attributes:
        tool_name: Tool that was processed
        performed: Whether an install or login was attempted
        resulting_check: Fresh check taken after the action (or the initial
            check when nothing was done)
        exit_code: 0 on success, 2/3 for terminal version states, 5 when the
            install failed, 6 when a manual step is needed, otherwise the
            login flow's exit status
        message: Human-readable summary
    """
    tool_name: str
    performed: bool
    resulting_check: CheckResult
    exit_code: int
    message: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == EXIT_OK

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "tool_name": self.tool_name,
            "performed": self.performed,
            "resulting_check": self.resulting_check.to_dict(),
            "exit_code": self.exit_code,
            "message": self.message,
        }


def install_package(
    spec: ToolSpec,
    version: str | None,
    config: Config,
    platform: Platform,
    verbose: bool = False,
) -> HookResult:
    """
    Install a tool: pre-install hooks first, then the platform package manager.

    Args:
        spec: Tool to install
        version: Exact version requested (also pins the package)
        config: Active configuration
        platform: Detected platform

    Returns:
        DONE when the tool was installed, MANUAL when the operator must act

    Raises:
        InstallError: If any step fails
    """
    pm = select_package_manager(platform, verbose=verbose)
    ctx = HookContext(spec=spec, version=version, platform=platform, package_manager=pm,
                      config=config, verbose=verbose)

    hook_result = run_pre_install_hooks(ctx)
    if hook_result is not HookResult.CONTINUE:
        return hook_result

    status = pm.refresh_index(config.preferences.index_max_age_hours, verbose=verbose)
    if status != 0:
        raise InstallError(f"{pm.display_name} index refresh failed", exit_code=status)

    status = pm.install(spec.name, version, verbose=verbose)
    if status != 0:
        raise InstallError(
            f"{pm.display_name} failed to install {spec.name} (exit {status})",
            exit_code=status,
        )

    if version:
        status = pm.pin(spec.name, verbose=verbose)
        if status != 0:
            # the tool is installed, only future upgrades are not prevented
            logger.warning("Could not pin %s (exit %d)", spec.name, status)
    return HookResult.DONE


def _terminal_message(check: CheckResult, spec: ToolSpec) -> str:
    name = spec.name
    if check.classification is Classification.VERSION_UNPARSABLE:
        return (
            f"Failed to parse version '{name} {spec.version_flag}'. "
            f"Uninstall {name} manually and re-run setup"
        )
    return (
        f"{name} version v{check.observed_version} is lower than required "
        f"v{spec.required_version}. Uninstall {name} manually and re-run setup"
    )


def _after_install(
    spec: ToolSpec,
    token: str | None,
    config: Config,
    platform: Platform,
    verbose: bool,
) -> InstallOutcome:
    """Re-check a freshly installed tool and log in only if that is what is missing."""
    post = check_tool(spec, config, verbose=verbose)
    name = spec.name

    if post.classification is Classification.NOT_INSTALLED:
        return InstallOutcome(
            name, True, post, EXIT_MANUAL_STEP,
            f"{name} was installed but is not on PATH yet. Open a new shell and re-run setup",
        )
    if post.classification in (Classification.VERSION_UNPARSABLE, Classification.VERSION_TOO_LOW):
        return InstallOutcome(name, True, post, int(post.classification), _terminal_message(post, spec))
    if post.classification is Classification.READY:
        return InstallOutcome(name, True, post, EXIT_OK, f"{name} v{post.observed_version} is ready")

    status = authenticate(name, token, config, platform, verbose=verbose) if has_authenticator(name) else EXIT_OK
    final = check_tool(spec, config, verbose=verbose)
    return InstallOutcome(name, True, final, status, f"{name} installed, authentication exit status {status}")


def install_or_authenticate(
    spec: ToolSpec,
    version: str | None = None,
    token: str | None = None,
    config: Config | None = None,
    platform: Platform | None = None,
    verbose: bool = False,
) -> InstallOutcome:
    """
    Bring one tool to READY with at most one corrective action.

    Args:
        spec: Tool to process
        version: Exact version requested; replaces the spec's minimum and
            pins the package when installing
        token: Credential for login flows that accept one
        config: Configuration (loaded when None)
        platform: Platform (detected when None)
        verbose: Enable verbose logging

    Returns:
        InstallOutcome
    """
    from .config import load_config
    from .environment import detect_platform

    if config is None:
        config = load_config(verbose=verbose)
    if platform is None:
        platform = detect_platform(verbose=verbose)
    if version:
        spec = spec.with_required_version(version)

    name = spec.name
    check = check_tool(spec, config, verbose=verbose)
    vlog(f"{name} classified as {check.classification.name}", verbose)

    if check.classification is Classification.READY:
        if version:
            msg = (f"{name} v{check.observed_version} is already installed "
                   f"and meets the requested version v{version}")
        else:
            msg = f"{name} is already installed"
        return InstallOutcome(name, False, check, EXIT_OK, msg)

    if check.classification in (Classification.VERSION_UNPARSABLE, Classification.VERSION_TOO_LOW):
        return InstallOutcome(name, False, check, int(check.classification), _terminal_message(check, spec))

    if check.classification is Classification.NOT_AUTHENTICATED:
        print(f"{name} is installed, but not authenticated. Proceeding with authentication...", file=sys.stderr)
        status = authenticate(name, token, config, platform, verbose=verbose)
        final = check_tool(spec, config, verbose=verbose)
        return InstallOutcome(name, True, final, status, f"{name} authentication exit status {status}")

    print(f"\nInstalling {name}...", file=sys.stderr)
    try:
        result = install_package(spec, version, config, platform, verbose=verbose)
    except InstallError as e:
        msg = e.message if not e.remediation else f"{e.message}. {e.remediation}"
        return InstallOutcome(name, True, check_tool(spec, config, verbose=verbose), EXIT_INSTALL_FAILED, msg)

    if result is HookResult.MANUAL:
        return InstallOutcome(
            name, True, check_tool(spec, config, verbose=verbose), EXIT_MANUAL_STEP,
            f"{name} must be installed manually, then re-run setup",
        )

    return _after_install(spec, token, config, platform, verbose)
