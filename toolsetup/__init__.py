"""
toolsetup - Verify, install and authenticate the command-line tools of a
development workflow.

Core Modules:
- Detection: executable lookup, version probing and parsing
- Classification: per-tool status checks and roster-wide batches
- Provisioning: package managers, pre-install hooks, installer
- Authentication: auth probes and per-tool login flows
"""

__version__ = "1.0.0"
__author__ = "toolsetup Contributors"

VERSION = __version__

# Detection
from .detection import (
    CommandResult,
    VersionParseError,
    find_executable,
    get_version_line,
    parse_version,
    run_command,
    run_interactive,
)
from .versions import compare_versions, version_lte, meets_minimum
from .tools import ToolSpec, ROSTER, all_tools, get_tool, resolve_tool

# Foundation
from .environment import Platform, UnsupportedPlatformError, detect_platform
from .prerequisites import PrerequisiteError, check_xquartz
from .config import (
    Config,
    ConfigError,
    ToolConfig,
    Preferences,
    AuthSettings,
    load_config,
    load_config_file,
)

# Classification
from .auth import AuthProbe, AuthProbeResult, ProbeOutcome, auth_probes, probe_auth
from .checker import Classification, CheckResult, check_tool
from .bulk import BatchReport, check_all
from .render import render_table, print_summary, status_icon

# Provisioning
from .package_managers import InstallError, PackageManager, get_package_manager, select_package_manager
from .hooks import HookContext, HookResult, PRE_INSTALL_HOOKS, run_pre_install_hooks
from .authenticators import AUTHENTICATORS, authenticate, has_authenticator
from .installer import InstallOutcome, install_or_authenticate, install_package

# Logging configuration
from .logging_config import setup_logging, get_logger

__all__ = [
    # Version
    "__version__",
    "VERSION",
    # Detection
    "CommandResult",
    "VersionParseError",
    "find_executable",
    "get_version_line",
    "parse_version",
    "run_command",
    "run_interactive",
    "compare_versions",
    "version_lte",
    "meets_minimum",
    "ToolSpec",
    "ROSTER",
    "all_tools",
    "get_tool",
    "resolve_tool",
    # Foundation
    "Platform",
    "UnsupportedPlatformError",
    "detect_platform",
    "PrerequisiteError",
    "check_xquartz",
    "Config",
    "ConfigError",
    "ToolConfig",
    "Preferences",
    "AuthSettings",
    "load_config",
    "load_config_file",
    # Classification
    "AuthProbe",
    "AuthProbeResult",
    "ProbeOutcome",
    "auth_probes",
    "probe_auth",
    "Classification",
    "CheckResult",
    "check_tool",
    "BatchReport",
    "check_all",
    "render_table",
    "print_summary",
    "status_icon",
    # Provisioning
    "InstallError",
    "PackageManager",
    "get_package_manager",
    "select_package_manager",
    "HookContext",
    "HookResult",
    "PRE_INSTALL_HOOKS",
    "run_pre_install_hooks",
    "AUTHENTICATORS",
    "authenticate",
    "has_authenticator",
    "InstallOutcome",
    "install_or_authenticate",
    "install_package",
    # Logging
    "setup_logging",
    "get_logger",
]
