"""
Logging setup for toolsetup.

The status table and login prompts are user-facing and printed directly.
Diagnostics (probe commands, skipped steps, warnings about unknown tools)
go through the ``toolsetup`` logger to stderr, and optionally to a log
file that always records everything at DEBUG level.
"""

import logging
import os
import sys
from pathlib import Path
from typing import IO, Optional

LOGGER_NAME = "toolsetup"

CONSOLE_FORMAT = "%(levelname_colored)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logger: Optional[logging.Logger] = None


def _env_enabled(name: str) -> bool:
    return os.environ.get(name, "1") == "1"


def _console_level(level: str, verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def _console_handler(level: int, stream: IO[str]) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(
        CONSOLE_FORMAT,
        use_colors=_env_enabled("TOOLSETUP_COLOR") and stream.isatty(),
        use_symbols=_env_enabled("TOOLSETUP_EMOJI"),
    ))
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure the ``toolsetup`` logger.

    Calling it again replaces the previous handlers.

    Args:
        level: Console level when neither verbose nor quiet is set
        log_file: Also write every record (DEBUG and up) to this file
        verbose: Console shows DEBUG records
        quiet: Console shows warnings only; with a log file, console output is dropped
        propagate: Pass records on to the root logger (pytest's caplog needs this)

    Returns:
        Configured logger
    """
    global _logger

    console_level = _console_level(level, verbose, quiet)
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    if not quiet:
        logger.addHandler(_console_handler(console_level, sys.stderr))
    if log_file:
        logger.addHandler(_file_handler(log_file))

    # the file handler needs DEBUG records even when the console does not
    logger.setLevel(logging.DEBUG if log_file else console_level)
    logger.propagate = propagate

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the configured logger, setting up defaults on first use."""
    global _logger
    if _logger is None:
        _logger = setup_logging()
    return _logger


class ColoredFormatter(logging.Formatter):
    """Console formatter: level name with an ANSI color and a status symbol."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[1;31m',
    }
    RESET = '\033[0m'

    # same vocabulary as the status table icons
    SYMBOLS = {
        'DEBUG': '🔍',
        'INFO': '✅',
        'WARNING': '⚠️',
        'ERROR': '❌',
        'CRITICAL': '❌',
    }

    def __init__(self, fmt: str, use_colors: bool = True, use_symbols: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors
        self.use_symbols = use_symbols

    def format(self, record: logging.LogRecord) -> str:
        label = record.levelname
        if self.use_symbols and self.use_colors:
            label = f"{self.SYMBOLS.get(record.levelname, '')} {label}"
        if self.use_colors:
            label = f"{self.COLORS.get(record.levelname, '')}{label}{self.RESET}"
        record.levelname_colored = label
        return super().format(record)
