"""
Tests for login flows (toolsetup/authenticators.py).
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from toolsetup.auth import AuthProbeResult, ProbeOutcome
from toolsetup.authenticators import (
    AUTHENTICATORS,
    EXIT_GH_REQUIRED,
    AuthContext,
    auth_docker,
    auth_dvc,
    auth_gh,
    auth_git,
    auth_rclone,
    authenticate,
    has_authenticator,
    tunnel_hint,
)
from toolsetup.config import AuthSettings, Config
from toolsetup.detection import CommandResult
from toolsetup.environment import Platform

CTX = AuthContext(config=Config(), platform=Platform("Linux"))

DOCKER_OK = AuthProbeResult(ProbeOutcome.AUTHENTICATED, "ghcr.io")
DOCKER_MISSING = AuthProbeResult(ProbeOutcome.NOT_AUTHENTICATED, "ghcr.io")


class TestAuthenticate:
    """Tests for authenticate() dispatch."""

    def test_registered_tools(self):
        assert set(AUTHENTICATORS) == {"gh", "git", "docker", "dvc", "rclone"}
        assert has_authenticator("gh")
        assert not has_authenticator("jq")

    def test_tool_without_flow_is_noop(self):
        assert authenticate("jq", None, Config(), Platform("Linux")) == 0

    def test_exit_status_is_returned_unchanged(self):
        handler = MagicMock(return_value=42)
        with patch.dict(AUTHENTICATORS, {"gh": handler}):
            assert authenticate("gh", "tok", Config(), Platform("Linux")) == 42
        token, ctx = handler.call_args.args
        assert token == "tok"
        assert ctx.platform == Platform("Linux")

    def test_tunnel_hint_in_remote_session(self, capsys):
        handler = MagicMock(return_value=0)
        with patch.dict(AUTHENTICATORS, {"rclone": handler}):
            authenticate("rclone", None, Config(), Platform("Linux", remote_session=True))
        assert "ssh -N -L 53682:localhost:53682" in capsys.readouterr().err

    def test_no_tunnel_hint_locally(self, capsys):
        handler = MagicMock(return_value=0)
        with patch.dict(AUTHENTICATORS, {"rclone": handler}):
            authenticate("rclone", None, Config(), Platform("Linux"))
        assert "ssh -N" not in capsys.readouterr().err

    def test_tunnel_hint_only_for_local_ports(self):
        assert tunnel_hint("gh") is None
        assert "8080" in tunnel_hint("dvc")


class TestAuthGh:
    """Tests for auth_gh()."""

    @patch("toolsetup.authenticators.run_interactive", return_value=0)
    def test_token_on_stdin(self, mock_run):
        assert auth_gh("ghp_secret", CTX) == 0
        assert mock_run.call_args.args[0] == ("gh", "auth", "login", "--with-token")
        assert mock_run.call_args.kwargs["input_text"] == "ghp_secret"

    @patch("toolsetup.authenticators.run_interactive", return_value=1)
    def test_browser_login(self, mock_run):
        assert auth_gh(None, CTX) == 1
        assert "--web" in mock_run.call_args.args[0]


class TestAuthGit:
    """Tests for auth_git()."""

    def make_ctx(self, tmp_path):
        key = tmp_path / "ssh" / "test_key"
        return AuthContext(config=Config(auth=AuthSettings(ssh_key_path=str(key))),
                           platform=Platform("Linux")), key

    @patch("toolsetup.authenticators.run_command", return_value=CommandResult(0, ""))
    @patch("toolsetup.authenticators.run_interactive")
    def test_generates_key_and_registers_it(self, mock_run, _mock_cmd, tmp_path):
        ctx, key = self.make_ctx(tmp_path)

        def fake_run(command, **kwargs):
            if command[0] == "ssh-keygen":
                key.write_text("private")
                key.with_name("test_key.pub").write_text("ssh-rsa AAAA test\n")
            return 0

        mock_run.side_effect = fake_run
        assert auth_git(None, ctx) == 0

        keygen, add = [c.args[0] for c in mock_run.call_args_list]
        assert keygen[:5] == ("ssh-keygen", "-b", "4096", "-t", "rsa")
        assert add[:3] == ("gh", "ssh-key", "add")
        assert add[-1] == f"{key}.pub"

    @patch("toolsetup.authenticators.run_command", return_value=CommandResult(1, ""))
    @patch("toolsetup.authenticators.run_interactive")
    def test_existing_key_printed_without_gh(self, mock_run, _mock_cmd, tmp_path, capsys):
        ctx, key = self.make_ctx(tmp_path)
        key.parent.mkdir()
        key.write_text("private")
        (tmp_path / "ssh" / "test_key.pub").write_text("ssh-rsa AAAA test\n")
        assert auth_git(None, ctx) == 0
        mock_run.assert_not_called()
        assert "ssh-rsa AAAA test" in capsys.readouterr().out

    @patch("toolsetup.authenticators.run_interactive")
    @patch("toolsetup.authenticators.run_command")
    def test_missing_public_key_is_derived(self, mock_cmd, mock_run, tmp_path, capsys):
        """Test a private key copied in without its .pub still yields a public key."""
        ctx, key = self.make_ctx(tmp_path)
        key.parent.mkdir()
        key.write_text("private")
        mock_cmd.side_effect = [
            CommandResult(0, "ssh-rsa AAAA derived\n"),
            CommandResult(1, "You are not logged into any GitHub hosts"),
        ]
        assert auth_git(None, ctx) == 0
        assert mock_cmd.call_args_list[0].args[0] == ("ssh-keygen", "-y", "-f", str(key))
        assert key.with_name("test_key.pub").read_text() == "ssh-rsa AAAA derived\n"
        assert "ssh-rsa AAAA derived" in capsys.readouterr().out
        mock_run.assert_not_called()

    @patch("toolsetup.authenticators.run_command", return_value=CommandResult(255, "Load key: invalid format"))
    def test_underivable_public_key(self, mock_cmd, tmp_path, capsys):
        ctx, key = self.make_ctx(tmp_path)
        key.parent.mkdir()
        key.write_text("garbage")
        assert auth_git(None, ctx) == 255
        assert not key.with_name("test_key.pub").exists()
        assert "toolsetup git" in capsys.readouterr().err
        mock_cmd.assert_called_once()

    @patch("toolsetup.authenticators.run_interactive", return_value=1)
    def test_keygen_failure(self, _mock_run, tmp_path):
        ctx, _ = self.make_ctx(tmp_path)
        assert auth_git(None, ctx) == 1


class TestAuthDocker:
    """Tests for auth_docker()."""

    @patch("toolsetup.authenticators.run_interactive")
    @patch("toolsetup.authenticators.probe_auth", return_value=DOCKER_OK)
    def test_already_authenticated(self, _mock_probe, mock_run, capsys):
        assert auth_docker("new-token", CTX) == 0
        assert "token is ignored" in capsys.readouterr().err
        mock_run.assert_not_called()

    @patch("toolsetup.authenticators.run_command", return_value=CommandResult(1, ""))
    @patch("toolsetup.authenticators.probe_auth", return_value=DOCKER_MISSING)
    def test_requires_gh(self, _mock_probe, _mock_cmd):
        assert auth_docker(None, CTX) == EXIT_GH_REQUIRED

    @patch("toolsetup.authenticators.run_interactive", return_value=0)
    @patch("toolsetup.authenticators.run_command")
    @patch("toolsetup.authenticators.probe_auth", return_value=DOCKER_MISSING)
    def test_reuses_gh_token(self, _mock_probe, mock_cmd, mock_run):
        mock_cmd.side_effect = [
            CommandResult(0, "Logged in"),
            CommandResult(0, json.dumps({"login": "octocat"})),
            CommandResult(0, "gho_token\n"),
        ]
        assert auth_docker(None, CTX) == 0
        assert mock_run.call_args.args[0] == (
            "docker", "login", "ghcr.io", "-u", "octocat", "--password-stdin",
        )
        assert mock_run.call_args.kwargs["input_text"] == "gho_token"

    @patch("toolsetup.authenticators.run_interactive", return_value=0)
    @patch("toolsetup.authenticators.run_command")
    @patch("toolsetup.authenticators.probe_auth", return_value=DOCKER_MISSING)
    def test_uses_provided_token(self, _mock_probe, mock_cmd, mock_run):
        mock_cmd.side_effect = [
            CommandResult(0, "Logged in"),
            CommandResult(0, json.dumps({"login": "octocat"})),
        ]
        auth_docker("ghp_given", CTX)
        assert mock_cmd.call_count == 2
        assert mock_run.call_args.kwargs["input_text"] == "ghp_given"

    @patch("toolsetup.authenticators.run_command")
    @patch("toolsetup.authenticators.probe_auth", return_value=DOCKER_MISSING)
    def test_bad_user_response(self, _mock_probe, mock_cmd):
        mock_cmd.side_effect = [CommandResult(0, ""), CommandResult(0, "not json")]
        assert auth_docker(None, CTX) == 1


class TestAuthDvc:
    """Tests for auth_dvc()."""

    def test_requires_dvc_project(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert auth_dvc(None, CTX) == 1

    @patch("toolsetup.authenticators.run_command", return_value=CommandResult(1, ""))
    def test_requires_client_creds(self, _mock_cmd, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".dvc").mkdir()
        (tmp_path / ".dvc" / "config").write_text("[core]\n")
        assert auth_dvc(None, CTX) == 2
        assert "OAuth client creds are missing" in capsys.readouterr().err

    @patch("toolsetup.authenticators.run_interactive", return_value=0)
    @patch("toolsetup.authenticators.run_command", return_value=CommandResult(0, "value\n"))
    def test_runs_cloud_status(self, mock_cmd, mock_run, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".dvc").mkdir()
        (tmp_path / ".dvc" / "config").write_text("[core]\n")
        assert auth_dvc(None, CTX) == 0
        assert mock_cmd.call_args_list[0].args[0] == ("dvc", "config", "remote.gdrive.gdrive_client_id")
        assert mock_run.call_args.args[0] == ("dvc", "status", "--cloud")


class TestAuthRclone:
    """Tests for auth_rclone()."""

    @patch("toolsetup.authenticators.run_interactive", return_value=0)
    def test_creates_remote(self, mock_run):
        ctx = AuthContext(config=Config(auth=AuthSettings(rclone_remote="teamdrive")),
                          platform=Platform("Linux"))
        assert auth_rclone(None, ctx) == 0
        command = mock_run.call_args.args[0]
        assert command[:4] == ("rclone", "config", "create", "teamdrive")
        assert "drive.readonly" in command
