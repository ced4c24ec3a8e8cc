"""
Configuration file parsing and management.

Loads YAML configuration files and merges them from multiple sources
(custom path → project → user → system → defaults).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

import yaml

from .common import vlog
from .detection import VERSION_RE


# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".toolsetup.yml",                                     # Project root (highest priority)
    ".toolsetup.yaml",
    os.path.expanduser("~/.config/toolsetup/config.yml"),  # User global
    os.path.expanduser("~/.config/toolsetup/config.yaml"),
    "/etc/toolsetup/config.yml",                          # System global
]


class ConfigError(ValueError):
    """Raised when a configuration file is missing, unreadable or invalid."""


@dataclass(frozen=True)
class ToolConfig:
    """
    Configuration for a specific tool.

    Attributes:
        required_version: Minimum version override (None keeps the roster default)
    """
    required_version: str | None = None

    def __post_init__(self):
        if self.required_version is not None and not VERSION_RE.match(self.required_version):
            raise ConfigError(
                f"Invalid required_version: '{self.required_version}'. Expected N.N.N"
            )

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ToolConfig:
        """Create ToolConfig from dictionary."""
        version = data.get("required_version")
        return ToolConfig(required_version=str(version) if version is not None else None)


@dataclass(frozen=True)
class Preferences:
    """
    Behavioural preferences.

    Attributes:
        probe_timeout_seconds: Timeout for version and authentication probes
        index_max_age_hours: Package index younger than this is not refreshed
    """
    probe_timeout_seconds: int = 10
    index_max_age_hours: int = 24

    def __post_init__(self):
        if self.probe_timeout_seconds < 1 or self.probe_timeout_seconds > 120:
            raise ConfigError(
                f"Invalid probe_timeout_seconds: {self.probe_timeout_seconds}. "
                "Must be between 1 and 120"
            )
        if self.index_max_age_hours < 0 or self.index_max_age_hours > 720:
            raise ConfigError(
                f"Invalid index_max_age_hours: {self.index_max_age_hours}. "
                "Must be between 0 and 720"
            )

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Preferences:
        """Create Preferences from dictionary."""
        return Preferences(
            probe_timeout_seconds=data.get("probe_timeout_seconds", 10),
            index_max_age_hours=data.get("index_max_age_hours", 24),
        )


@dataclass(frozen=True)
class AuthSettings:
    """
    Names and locations used by the authentication probes and login flows.

    Attributes:
        rclone_remote: rclone remote that must exist for rclone to count as logged in
        dvc_remote: dvc remote holding the Google Drive OAuth client credentials
        ssh_key_path: Private key generated for github.com
        ssh_key_title: Title of the key when registered through gh
        registry: Container registry docker logs into
    """
    rclone_remote: str = "eagledrive"
    dvc_remote: str = "gdrive"
    ssh_key_path: str = "~/.ssh/eagle_github"
    ssh_key_title: str = "eagle"
    registry: str = "ghcr.io"

    def __post_init__(self):
        for name in ("rclone_remote", "dvc_remote", "ssh_key_path", "registry"):
            if not getattr(self, name):
                raise ConfigError(f"auth.{name} must not be empty")

    @staticmethod
    def from_dict(data: dict[str, Any]) -> AuthSettings:
        """Create AuthSettings from dictionary."""
        defaults = AuthSettings()
        return AuthSettings(
            rclone_remote=data.get("rclone_remote", defaults.rclone_remote),
            dvc_remote=data.get("dvc_remote", defaults.dvc_remote),
            ssh_key_path=data.get("ssh_key_path", defaults.ssh_key_path),
            ssh_key_title=data.get("ssh_key_title", defaults.ssh_key_title),
            registry=data.get("registry", defaults.registry),
        )

    @property
    def ssh_key_file(self) -> str:
        """Private key path with ~ expanded."""
        return os.path.expanduser(self.ssh_key_path)


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for toolsetup.

    Attributes:
        version: Config schema version
        tools: Per-tool configuration overrides
        preferences: Global preferences
        auth: Authentication settings
        source: Path to the configuration file that was loaded
    """
    version: int = 1
    tools: dict[str, ToolConfig] = field(default_factory=dict)
    preferences: Preferences = field(default_factory=Preferences)
    auth: AuthSettings = field(default_factory=AuthSettings)
    source: str = ""

    def __post_init__(self):
        if self.version != 1:
            raise ConfigError(f"Unsupported config version: {self.version}. Expected version 1")

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        tools = {}
        for tool_name, tool_config in (data.get("tools") or {}).items():
            try:
                tools[tool_name] = ToolConfig.from_dict(tool_config or {})
            except ConfigError as e:
                raise ConfigError(f"tools.{tool_name}: {e}") from e
        return Config(
            version=data.get("version", 1),
            tools=tools,
            preferences=Preferences.from_dict(data.get("preferences") or {}),
            auth=AuthSettings.from_dict(data.get("auth") or {}),
            source=source,
        )

    def get_tool_config(self, tool_name: str) -> ToolConfig:
        """
        Get configuration for a specific tool.

        Returns:
            ToolConfig for the tool, or default ToolConfig if not configured
        """
        return self.tools.get(tool_name, ToolConfig())

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        merged_tools = dict(other.tools)
        merged_tools.update(self.tools)

        default_prefs = Preferences()
        merged_preferences = Preferences(
            probe_timeout_seconds=(
                self.preferences.probe_timeout_seconds
                if self.preferences.probe_timeout_seconds != default_prefs.probe_timeout_seconds
                else other.preferences.probe_timeout_seconds
            ),
            index_max_age_hours=(
                self.preferences.index_max_age_hours
                if self.preferences.index_max_age_hours != default_prefs.index_max_age_hours
                else other.preferences.index_max_age_hours
            ),
        )

        default_auth = AuthSettings()
        merged_auth = AuthSettings(**{
            name: getattr(self.auth, name)
            if getattr(self.auth, name) != getattr(default_auth, name)
            else getattr(other.auth, name)
            for name in ("rclone_remote", "dvc_remote", "ssh_key_path", "ssh_key_title", "registry")
        })

        return Config(
            version=self.version,
            tools=merged_tools,
            preferences=merged_preferences,
            auth=merged_auth,
            source=self.source or other.source,
        )


def _load_yaml(file_path: str) -> dict[str, Any]:
    """
    Load YAML configuration file.

    Raises:
        ConfigError: If the file cannot be read or is not valid YAML
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config {file_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {file_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {file_path} must contain a mapping at top level")
    return data


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to configuration file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if the file does not exist

    Raises:
        ConfigError: If the file exists but is invalid
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)
    data = _load_yaml(file_path)

    try:
        return Config.from_dict(data, source=file_path)
    except (TypeError, AttributeError) as e:
        raise ConfigError(f"Config validation failed for {file_path}: {e}") from e
    except ConfigError as e:
        raise ConfigError(f"{file_path}: {e}") from e


def load_config(
    custom_path: str | None = None,
    verbose: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Custom path (if provided)
    2. Project .toolsetup.yml
    3. User ~/.config/toolsetup/config.yml
    4. System /etc/toolsetup/config.yml
    5. Default configuration

    Raises:
        ConfigError: If custom_path is provided but missing, or any found file is invalid
    """
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ConfigError(f"Config file not found: {custom_path}")
        configs.append(config)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)

    if not configs:
        vlog("No config files found, using defaults", verbose)
        return Config()

    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    vlog(f"Merged {len(configs)} config files", verbose)
    return merged
