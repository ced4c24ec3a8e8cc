"""
Tool definitions and the roster of managed tools.

The roster is static: the order below is the order of the status table.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .config import Config


@dataclass(frozen=True)
class ToolSpec:
    """Identity of a manageable tool.

    The authentication convention is looked up by ``name`` in the auth
    probe registry (see ``toolsetup.auth``).
    """
    name: str
    required_version: str | None = None
    version_flag: str = "--version"
    description: str = ""

    def with_required_version(self, version: str | None) -> ToolSpec:
        """Copy of this spec with a different minimum version."""
        return replace(self, required_version=version or None)


ROSTER: tuple[ToolSpec, ...] = (
    ToolSpec("gh", description="GitHub CLI"),
    ToolSpec("git", description="Version control client"),
    ToolSpec("jq", description="JSON processor"),
    ToolSpec("yq", required_version="4.44.3", description="YAML processor"),
    ToolSpec("docker", required_version="27.3.0", description="Container runtime"),
    ToolSpec("dvc", required_version="3.56.0", description="Data version control"),
    ToolSpec("rclone", description="Cloud storage sync"),
    ToolSpec("ffmpeg", version_flag="-version", description="Media processor"),
)

TOOL_MAP: dict[str, ToolSpec] = {t.name: t for t in ROSTER}


def _apply_config(spec: ToolSpec, config: Config | None) -> ToolSpec:
    if config is None:
        return spec
    override = config.get_tool_config(spec.name).required_version
    if override is None:
        return spec
    return spec.with_required_version(override)


def all_tools(config: Config | None = None) -> list[ToolSpec]:
    """All roster tools in table order, with config overrides applied."""
    return [_apply_config(t, config) for t in ROSTER]


def get_tool(name: str, config: Config | None = None) -> ToolSpec | None:
    """Roster entry by name, or None if the tool is not on the roster."""
    spec = TOOL_MAP.get(name)
    if spec is None:
        return None
    return _apply_config(spec, config)


def resolve_tool(name: str, config: Config | None = None) -> ToolSpec:
    """Roster entry by name, falling back to a default spec for other tools."""
    return get_tool(name, config) or ToolSpec(name)
