"""
Pre-install hooks.

Some tools need bootstrap work before (or instead of) the generic package
manager install. Hooks are registered per tool and run in order; the
first hook that does not return CONTINUE decides the outcome.
"""

from __future__ import annotations

import os
import subprocess
import sys
import tempfile
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .common import vlog
from .config import Config
from .detection import run_command, run_interactive
from .environment import Platform
from .package_managers import InstallError, PackageManager
from .tools import ToolSpec


class HookResult(Enum):
    CONTINUE = "continue"   # go on with the package manager install
    DONE = "done"           # the hook installed the tool itself
    MANUAL = "manual"       # the operator has to install the tool


@dataclass(frozen=True)
class HookContext:
    """
    Everything a hook may need.

    Attributes:
        spec: Tool being installed
        version: Exact version requested by the operator (None for default)
        platform: Detected platform
        package_manager: Manager that will run the generic install
        config: Active configuration
        verbose: Enable verbose logging
    """
    spec: ToolSpec
    version: str | None
    platform: Platform
    package_manager: PackageManager
    config: Config
    verbose: bool = False


PreInstallHook = Callable[[HookContext], HookResult]


DOCKER_INSTALL_URLS = {
    "Linux": "https://docs.docker.com/engine/install/ubuntu/",
    "Darwin": "https://docs.docker.com/docker-for-mac/install/",
    "WSL": "https://docs.docker.com/desktop/setup/install/windows-install/",
}


def docker_manual_install(ctx: HookContext) -> HookResult:
    """Docker is installed by hand; under WSL it belongs on the Windows host."""
    key = "WSL" if ctx.platform.is_wsl else ctx.platform.system
    url = DOCKER_INSTALL_URLS.get(key)
    if url is None:
        raise InstallError(f"docker installation is not supported on {ctx.platform}")
    print(f"Install docker manually {url}", file=sys.stderr)
    return HookResult.MANUAL


YQ_RELEASE_URL = "https://github.com/mikefarah/yq/releases/download/v{version}/yq_linux_amd64"
YQ_LATEST_URL = "https://github.com/mikefarah/yq/releases/latest/download/yq_linux_amd64"


def yq_release_download(ctx: HookContext) -> HookResult:
    """The distro yq is a different program, so fetch the release binary on Linux."""
    if not ctx.platform.is_linux:
        return HookResult.CONTINUE

    bin_dir = os.path.expanduser("~/.local/bin")
    target = os.path.join(bin_dir, "yq")
    version = ctx.version or ctx.spec.required_version
    url = YQ_RELEASE_URL.format(version=version) if version else YQ_LATEST_URL

    os.makedirs(bin_dir, exist_ok=True)
    print(f"Downloading {url}", file=sys.stderr)
    status = run_interactive(
        ("curl", "--show-error", "--fail", "--output", target, "--location", url),
        verbose=ctx.verbose,
    )
    if status != 0:
        raise InstallError(f"Failed to download {url}", exit_code=status)
    os.chmod(target, 0o755)

    path_entries = os.environ.get("PATH", "").split(os.pathsep)
    if bin_dir not in path_entries:
        bashrc = os.path.expanduser("~/.bashrc")
        with open(bashrc, "a", encoding="utf-8") as f:
            f.write(f"\nexport PATH=$PATH:{bin_dir}\n")
        print(f"Added {bin_dir} to PATH in {bashrc}; open a new shell to pick it up", file=sys.stderr)
    return HookResult.DONE


DVC_APT_LIST_URL = "https://dvc.org/deb/dvc.list"
DVC_SIGNING_KEY_URL = "https://dvc.org/deb/iterative.asc"
DVC_APT_LIST_PATH = "/etc/apt/sources.list.d/dvc.list"
TRUSTED_KEYS_DIR = "/etc/apt/trusted.gpg.d/"


def _sudo(command: tuple[str, ...], pm: PackageManager) -> tuple[str, ...]:
    return ("sudo",) + command if pm.requires_sudo else command


def dvc_apt_repository(ctx: HookContext) -> HookResult:
    """Register the dvc apt repository when the distro does not ship dvc."""
    if not ctx.platform.is_linux:
        return HookResult.CONTINUE
    if run_command(("apt-cache", "show", "dvc"), verbose=ctx.verbose).success:
        vlog("dvc is available from configured apt sources", ctx.verbose)
        return HookResult.CONTINUE

    pm = ctx.package_manager
    print("Registering dvc apt repository", file=sys.stderr)
    status = run_interactive(
        _sudo(("wget", DVC_APT_LIST_URL, "-O", DVC_APT_LIST_PATH), pm), verbose=ctx.verbose
    )
    if status != 0:
        raise InstallError(f"Failed to download {DVC_APT_LIST_URL}", exit_code=status)

    key = subprocess.run(["wget", "-qO", "-", DVC_SIGNING_KEY_URL], capture_output=True, check=False)
    if key.returncode != 0:
        raise InstallError(f"Failed to download {DVC_SIGNING_KEY_URL}", exit_code=key.returncode)
    dearmored = subprocess.run(["gpg", "--dearmor"], input=key.stdout, capture_output=True, check=False)
    if dearmored.returncode != 0:
        raise InstallError("Failed to dearmor dvc signing key", exit_code=dearmored.returncode)

    with tempfile.TemporaryDirectory() as tmpdir:
        key_file = os.path.join(tmpdir, "packages.iterative.gpg")
        with open(key_file, "wb") as f:
            f.write(dearmored.stdout)
        status = run_interactive(
            _sudo(("install", "-o", "root", "-g", "root", "-m", "644", key_file, TRUSTED_KEYS_DIR), pm),
            verbose=ctx.verbose,
        )
    if status != 0:
        raise InstallError("Failed to install dvc signing key", exit_code=status)

    status = pm.refresh_index(ctx.config.preferences.index_max_age_hours, force=True, verbose=ctx.verbose)
    if status != 0:
        raise InstallError(f"{pm.display_name} index refresh failed", exit_code=status)
    return HookResult.CONTINUE


PRE_INSTALL_HOOKS: dict[str, tuple[PreInstallHook, ...]] = {
    "docker": (docker_manual_install,),
    "yq": (yq_release_download,),
    "dvc": (dvc_apt_repository,),
}


def run_pre_install_hooks(ctx: HookContext) -> HookResult:
    """
    Run the hooks registered for ctx.spec in order.

    Returns:
        CONTINUE when every hook let the generic install proceed, otherwise
        the first other result

    Raises:
        InstallError: If a hook fails
    """
    for hook in PRE_INSTALL_HOOKS.get(ctx.spec.name, ()):
        vlog(f"Running pre-install hook {hook.__name__} for {ctx.spec.name}", ctx.verbose)
        result = hook(ctx)
        if result is not HookResult.CONTINUE:
            return result
    return HookResult.CONTINUE
