"""
Per-tool login flows.

AUTHENTICATORS maps a tool name to a handler taking the optional token
and an AuthContext. Handlers return the exit status of the external
login command unchanged. Tools without a handler are a no-op.
"""

from __future__ import annotations

import getpass
import json
import os
import socket
import sys
from dataclasses import dataclass
from typing import Callable

from .auth import probe_auth
from .common import PROG_NAME, vlog
from .config import Config
from .detection import run_command, run_interactive
from .environment import Platform

# gh is needed first so docker can reuse its token
EXIT_GH_REQUIRED = 10

DOCKER_AUTH_DOCS = "https://docs.github.com/en/packages/working-with-a-github-packages-registry/working-with-the-container-registry"
DVC_GDRIVE_DOCS = (
    "https://dvc.org/doc/user-guide/data-management/remote-storage/google-drive"
    "#using-a-custom-google-cloud-project-recommended"
)

# Login flows that receive an OAuth redirect on a local port
LOCAL_AUTH_PORTS = {
    "rclone": 53682,
    "dvc": 8080,
}


@dataclass(frozen=True)
class AuthContext:
    config: Config
    platform: Platform
    verbose: bool = False


AuthHandler = Callable[[str | None, AuthContext], int]


def _say(msg: str) -> None:
    print(msg, file=sys.stderr)


def _gh_authenticated(ctx: AuthContext) -> bool:
    return run_command(("gh", "auth", "status"), verbose=ctx.verbose).success


def tunnel_hint(tool_name: str) -> str | None:
    """SSH tunnel instructions for login flows that listen on a local port."""
    port = LOCAL_AUTH_PORTS.get(tool_name)
    if port is None:
        return None
    return (
        f"Remote session detected: {tool_name} login listens on localhost:{port}. "
        f"Open a tunnel from your workstation first:\n"
        f"  ssh -N -L {port}:localhost:{port} {getpass.getuser()}@{socket.gethostname()}"
    )


def auth_gh(token: str | None, ctx: AuthContext) -> int:
    if token:
        _say("Logging in gh to github.com with token...")
        return run_interactive(("gh", "auth", "login", "--with-token"), input_text=token, verbose=ctx.verbose)

    _say("Logging in gh to github.com interactively via browser")
    return run_interactive(
        ("gh", "auth", "login", "--hostname", "github.com", "--git-protocol", "ssh", "--skip-ssh-key", "--web"),
        verbose=ctx.verbose,
    )


def _restore_public_key(key_file: str, public_key: str, ctx: AuthContext) -> int:
    """Derive a missing .pub file from the private key."""
    _say(f"{public_key} is missing, deriving it from {key_file}")
    result = run_command(("ssh-keygen", "-y", "-f", key_file), verbose=ctx.verbose)
    if not result.success or not result.output.startswith("ssh-"):
        _say(f"Cannot derive public key from {key_file}: {result.output.strip()}")
        _say(f"Remove {key_file} and re-run '{PROG_NAME} git' to generate a new key pair")
        return result.exit_code or 1
    with open(public_key, "w", encoding="utf-8") as f:
        f.write(result.output.strip() + "\n")
    return 0


def auth_git(token: str | None, ctx: AuthContext) -> int:
    settings = ctx.config.auth
    key_file = settings.ssh_key_file
    public_key = f"{key_file}.pub"

    if os.path.exists(key_file):
        _say(f"Reusing existing ssh key {key_file}")
    else:
        _say("Generating ssh key pair for github.com")
        os.makedirs(os.path.dirname(key_file), mode=0o700, exist_ok=True)
        status = run_interactive(
            ("ssh-keygen", "-b", "4096", "-t", "rsa", "-f", key_file, "-q", "-N", ""),
            verbose=ctx.verbose,
        )
        if status != 0:
            return status

    if not os.path.exists(public_key):
        status = _restore_public_key(key_file, public_key, ctx)
        if status != 0:
            return status

    if _gh_authenticated(ctx):
        _say("Adding public key to github.com via gh")
        return run_interactive(
            ("gh", "ssh-key", "add", "--title", settings.ssh_key_title, public_key),
            verbose=ctx.verbose,
        )

    _say(f"Copy {public_key} key below to clipboard")
    with open(public_key, "r", encoding="utf-8") as f:
        print(f.read().strip())
    _say("Paste the key manually to github.com/settings/ssh/new and press Save")
    _say("Re-run setup again")
    return 0


def auth_docker(token: str | None, ctx: AuthContext) -> int:
    registry = ctx.config.auth.registry

    current = probe_auth("docker", ctx.config, verbose=ctx.verbose)
    if current.ok:
        _say(f"docker is authenticated already: {current.domain}")
        if token:
            _say(f"Provided token is ignored. To use new token, first logout 'docker logout {registry}'")
        return 0

    if not _gh_authenticated(ctx):
        _say("Cannot authenticate docker automatically without 'gh' being authenticated first.")
        _say("Possible solutions:")
        _say(f"1. Authenticate 'gh' first '{PROG_NAME} gh', and then re-run '{PROG_NAME} docker'")
        _say("2. Follow docker authentication manual:")
        _say(DOCKER_AUTH_DOCS)
        return EXIT_GH_REQUIRED

    user = run_command(("gh", "api", "user"), verbose=ctx.verbose)
    if not user.success:
        _say(f"Failed to look up GitHub user: {user.output.strip()}")
        return user.exit_code
    try:
        username = json.loads(user.output)["login"]
    except (ValueError, KeyError, TypeError):
        _say("Unexpected 'gh api user' response, cannot determine GitHub login")
        return 1

    if token:
        _say(f"Logging docker in to {registry} with provided token...")
    else:
        _say("Re-using 'gh' token for docker login...")
        gh_token = run_command(("gh", "auth", "token"), verbose=ctx.verbose)
        if not gh_token.success:
            return gh_token.exit_code
        token = gh_token.output.strip()

    return run_interactive(
        ("docker", "login", registry, "-u", username, "--password-stdin"),
        input_text=token,
        verbose=ctx.verbose,
    )


def _dvc_config_value(key: str, ctx: AuthContext) -> str:
    result = run_command(("dvc", "config", key), verbose=ctx.verbose)
    return result.output.strip() if result.success else ""


def auth_dvc(token: str | None, ctx: AuthContext) -> int:
    if not os.path.isfile(os.path.join(".dvc", "config")):
        _say("No .dvc/config found, dvc can be authenticated only within a project where dvc is configured")
        return 1

    remote = ctx.config.auth.dvc_remote
    client_id = _dvc_config_value(f"remote.{remote}.gdrive_client_id", ctx)
    client_secret = _dvc_config_value(f"remote.{remote}.gdrive_client_secret", ctx)
    if not client_id or not client_secret:
        _say("OAuth client creds are missing, they are required for dvc authorization to Google Drive API.")
        _say("Contact your cloud administrator, for details visit:")
        _say(DVC_GDRIVE_DOCS)
        return 2

    return run_interactive(("dvc", "status", "--cloud"), verbose=ctx.verbose)


def auth_rclone(token: str | None, ctx: AuthContext) -> int:
    remote = ctx.config.auth.rclone_remote
    _say(f"Logging in rclone to Google Drive remote '{remote}'...")
    return run_interactive(
        ("rclone", "config", "create", remote, "drive", "scope", "drive.readonly", "config_refresh_token", "true"),
        verbose=ctx.verbose,
    )


AUTHENTICATORS: dict[str, AuthHandler] = {
    "gh": auth_gh,
    "git": auth_git,
    "docker": auth_docker,
    "dvc": auth_dvc,
    "rclone": auth_rclone,
}


def has_authenticator(tool_name: str) -> bool:
    return tool_name in AUTHENTICATORS


def authenticate(
    tool_name: str,
    token: str | None,
    config: Config,
    platform: Platform,
    verbose: bool = False,
) -> int:
    """
    Run the login flow registered for a tool.

    Args:
        tool_name: Tool to authenticate
        token: Optional credential passed to flows that accept one
        config: Active configuration
        platform: Detected platform
        verbose: Enable verbose logging

    Returns:
        Exit status of the login flow (0 for tools without one)
    """
    handler = AUTHENTICATORS.get(tool_name)
    if handler is None:
        vlog(f"No login flow for {tool_name}, nothing to do", verbose)
        return 0

    if platform.remote_session:
        hint = tunnel_hint(tool_name)
        if hint:
            _say(hint)

    return handler(token, AuthContext(config=config, platform=platform, verbose=verbose))
