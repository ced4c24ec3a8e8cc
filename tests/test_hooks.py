"""
Tests for pre-install hooks (toolsetup/hooks.py).
"""

import os
from unittest.mock import MagicMock, patch

import pytest

from toolsetup.config import Config
from toolsetup.detection import CommandResult
from toolsetup.environment import Platform
from toolsetup.hooks import (
    DOCKER_INSTALL_URLS,
    HookContext,
    HookResult,
    PRE_INSTALL_HOOKS,
    docker_manual_install,
    dvc_apt_repository,
    run_pre_install_hooks,
    yq_release_download,
)
from toolsetup.package_managers import InstallError
from toolsetup.tools import TOOL_MAP, ToolSpec


def make_ctx(name="jq", system="Linux", is_wsl=False, version=None, pm=None):
    if pm is None:
        pm = MagicMock()
        pm.requires_sudo = False
        pm.display_name = "apt"
        pm.refresh_index.return_value = 0
    spec = TOOL_MAP.get(name, ToolSpec(name))
    return HookContext(spec=spec, version=version, platform=Platform(system, is_wsl=is_wsl),
                       package_manager=pm, config=Config())


class TestRunPreInstallHooks:
    """Tests for run_pre_install_hooks()."""

    def test_no_hooks(self):
        assert run_pre_install_hooks(make_ctx("jq")) is HookResult.CONTINUE

    def test_first_non_continue_wins(self):
        first = MagicMock(return_value=HookResult.DONE, __name__="first")
        second = MagicMock(return_value=HookResult.CONTINUE, __name__="second")
        with patch.dict(PRE_INSTALL_HOOKS, {"jq": (first, second)}):
            assert run_pre_install_hooks(make_ctx("jq")) is HookResult.DONE
        second.assert_not_called()

    def test_registered_tools(self):
        assert set(PRE_INSTALL_HOOKS) == {"docker", "yq", "dvc"}


class TestDockerManualInstall:
    """Tests for docker_manual_install()."""

    @pytest.mark.parametrize("system,is_wsl,key", [
        ("Linux", False, "Linux"),
        ("Linux", True, "WSL"),
        ("Darwin", False, "Darwin"),
    ])
    def test_prints_manual_url(self, system, is_wsl, key, capsys):
        result = docker_manual_install(make_ctx("docker", system, is_wsl))
        assert result is HookResult.MANUAL
        assert DOCKER_INSTALL_URLS[key] in capsys.readouterr().err


class TestYqReleaseDownload:
    """Tests for yq_release_download()."""

    def test_macos_uses_brew(self):
        assert yq_release_download(make_ctx("yq", "Darwin")) is HookResult.CONTINUE

    @patch("toolsetup.hooks.run_interactive", return_value=0)
    def test_downloads_pinned_release(self, mock_run, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        bin_dir = str(tmp_path / ".local" / "bin")
        monkeypatch.setenv("PATH", bin_dir)
        (tmp_path / ".local" / "bin").mkdir(parents=True)
        (tmp_path / ".local" / "bin" / "yq").write_text("binary")

        assert yq_release_download(make_ctx("yq", version="4.45.1")) is HookResult.DONE
        command = mock_run.call_args.args[0]
        assert command[0] == "curl"
        assert command[-1].endswith("/v4.45.1/yq_linux_amd64")
        assert not (tmp_path / ".bashrc").exists()

    @patch("toolsetup.hooks.run_interactive", return_value=0)
    def test_adds_bin_dir_to_bashrc(self, mock_run, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("PATH", "/usr/bin")
        (tmp_path / ".local" / "bin").mkdir(parents=True)
        (tmp_path / ".local" / "bin" / "yq").write_text("binary")

        yq_release_download(make_ctx("yq"))
        assert "/v4.44.3/" in mock_run.call_args.args[0][-1]
        bashrc = (tmp_path / ".bashrc").read_text()
        assert f"export PATH=$PATH:{tmp_path / '.local' / 'bin'}" in bashrc
        assert os.stat(tmp_path / ".local" / "bin" / "yq").st_mode & 0o777 == 0o755

    @patch("toolsetup.hooks.run_interactive", return_value=22)
    def test_download_failure(self, _mock_run, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        with pytest.raises(InstallError) as exc_info:
            yq_release_download(make_ctx("yq"))
        assert exc_info.value.exit_code == 22


class TestDvcAptRepository:
    """Tests for dvc_apt_repository()."""

    def test_macos_is_skipped(self):
        assert dvc_apt_repository(make_ctx("dvc", "Darwin")) is HookResult.CONTINUE

    @patch("toolsetup.hooks.run_interactive")
    @patch("toolsetup.hooks.run_command", return_value=CommandResult(0, "Package: dvc"))
    def test_already_available(self, _mock_cmd, mock_interactive):
        assert dvc_apt_repository(make_ctx("dvc")) is HookResult.CONTINUE
        mock_interactive.assert_not_called()

    @patch("toolsetup.hooks.subprocess.run")
    @patch("toolsetup.hooks.run_interactive", return_value=0)
    @patch("toolsetup.hooks.run_command", return_value=CommandResult(100, "E: No packages found"))
    def test_registers_repository(self, _mock_cmd, mock_interactive, mock_subprocess):
        mock_subprocess.side_effect = [
            MagicMock(returncode=0, stdout=b"-----BEGIN PGP PUBLIC KEY BLOCK-----"),
            MagicMock(returncode=0, stdout=b"\x99\x01binary"),
        ]
        ctx = make_ctx("dvc")
        assert dvc_apt_repository(ctx) is HookResult.CONTINUE
        commands = [c.args[0] for c in mock_interactive.call_args_list]
        assert commands[0][0] == "wget"
        assert commands[1][0] == "install"
        ctx.package_manager.refresh_index.assert_called_once()
        assert ctx.package_manager.refresh_index.call_args.kwargs["force"] is True

    @patch("toolsetup.hooks.run_interactive", return_value=8)
    @patch("toolsetup.hooks.run_command", return_value=CommandResult(100, ""))
    def test_list_download_failure(self, _mock_cmd, _mock_interactive):
        with pytest.raises(InstallError):
            dvc_apt_repository(make_ctx("dvc"))
