"""
Shared pytest fixtures.
"""

import logging

import pytest

import toolsetup.logging_config as logging_config
from toolsetup.package_managers import clear_cache


@pytest.fixture(autouse=True)
def reset_toolsetup_logger():
    """Undo setup_logging() so records keep reaching caplog between tests."""
    yield
    logger = logging.getLogger("toolsetup")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    logging_config._logger = None


@pytest.fixture(autouse=True)
def reset_package_manager_cache():
    clear_cache()
    yield
    clear_cache()


@pytest.fixture(autouse=True)
def no_debug_env(monkeypatch):
    """Keep a developer's TOOLSETUP_DEBUG or SSH session out of test results."""
    monkeypatch.delenv("TOOLSETUP_DEBUG", raising=False)
    for var in ("SSH_CONNECTION", "SSH_CLIENT", "SSH_TTY"):
        monkeypatch.delenv(var, raising=False)
