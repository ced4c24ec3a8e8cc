"""
Local tool detection, command execution and version extraction.
"""

from __future__ import annotations

import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from typing import Sequence

from .common import vlog

# Exit codes reported for commands that could not run at all (shell conventions)
EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127

VERSION_TOKEN_RE = re.compile(r"[0-9][0-9.]*")
VERSION_RE = re.compile(r"^[0-9]+(\.[0-9]+)*$")
ANSI_ESCAPE_RE = re.compile(r'\x1b\[[0-9;]*m|\033\[[0-9;]*m')


class VersionParseError(ValueError):
    """
    Raised when a tool's version output does not contain a dotted version.

    Attributes:
        tool_name: Tool whose output was parsed
        raw: The raw (first line of) output, kept for diagnostics
    """

    def __init__(self, tool_name: str, raw: str, command: str = ""):
        self.tool_name = tool_name
        self.raw = raw
        self.command = command or tool_name
        super().__init__(f"cannot parse '{self.command}' output: '{raw}'")


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of a captured external command.

    Attributes:
        exit_code: Process exit status (124 on timeout, 127 when not found)
        output: Combined stdout and stderr
    """
    exit_code: int
    output: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def first_line(self) -> str:
        for line in self.output.splitlines():
            return ANSI_ESCAPE_RE.sub('', line.strip())
        return ""


def find_executable(command_name: str) -> str | None:
    """Return the absolute path of an executable on PATH, or None."""
    return shutil.which(command_name)


def run_command(
    args: Sequence[str],
    timeout: float | None = None,
    input_text: str | None = None,
    verbose: bool = False,
) -> CommandResult:
    """Run a non-interactive command, merging stderr into stdout.

    stdin is closed unless input_text is given, so commands that would
    prompt fail instead of blocking.

    Args:
        args: Command and arguments
        timeout: Timeout in seconds (None waits forever)
        input_text: Text fed to the command's stdin
        verbose: Enable verbose logging

    Returns:
        CommandResult with exit code and combined output
    """
    vlog(f"Running: {' '.join(args)}", verbose)
    try:
        proc = subprocess.run(
            list(args),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=None if input_text is not None else subprocess.DEVNULL,
            input=input_text,
            text=True,
            timeout=timeout,
            check=False,
            env={**os.environ, "TERM": "dumb"},  # Disable ANSI/color output from subprocesses
        )
        result = CommandResult(exit_code=proc.returncode, output=proc.stdout or "")
    except subprocess.TimeoutExpired as e:
        output = e.output or ""
        if isinstance(output, bytes):
            output = output.decode(errors="replace")
        result = CommandResult(exit_code=EXIT_TIMEOUT, output=output)
    except (FileNotFoundError, PermissionError) as e:
        result = CommandResult(exit_code=EXIT_NOT_FOUND, output=str(e))

    vlog(f"Exit {result.exit_code}, output: {result.output.strip()!r}", verbose)
    return result


def run_interactive(
    args: Sequence[str],
    input_text: str | None = None,
    verbose: bool = False,
) -> int:
    """Run a command attached to the terminal and return its exit status.

    Used for package installs and login flows whose output belongs to
    the operator. There is no timeout.
    """
    vlog(f"Running (interactive): {' '.join(args)}", verbose)
    try:
        proc = subprocess.run(list(args), input=input_text, text=True, check=False)
    except (FileNotFoundError, PermissionError) as e:
        vlog(f"Cannot run {args[0]}: {e}", verbose)
        return EXIT_NOT_FOUND
    vlog(f"Exit {proc.returncode}", verbose)
    return proc.returncode


def version_command(tool_name: str, version_flag: str) -> tuple[str, str]:
    """Command used to ask a tool for its version."""
    return (tool_name, version_flag)


def get_version_line(tool_name: str, version_flag: str = "--version", timeout: float | None = None,
                     verbose: bool = False) -> str:
    """Get the first line of a tool's version output.

    Args:
        tool_name: Executable name
        version_flag: Flag spelling for this tool ("--version", "-version", ...)
        timeout: Timeout in seconds

    Returns:
        First output line with ANSI escapes removed, or empty string
    """
    result = run_command(version_command(tool_name, version_flag), timeout=timeout, verbose=verbose)
    line = result.first_line
    vlog(f"version raw: {line}", verbose)
    return line


def parse_version(tool_name: str, raw: str, command: str = "") -> str:
    """Extract a dotted numeric version from free-text version output.

    Only the first line is considered. The token starts at the first digit
    and runs over digits and dots.

    Args:
        tool_name: Tool the output belongs to (for diagnostics)
        raw: Raw version output
        command: Command that produced the output (for diagnostics)

    Returns:
        Version string such as "2.43.0"

    Raises:
        VersionParseError: If no well-formed version token is found
    """
    lines = raw.splitlines()
    line = lines[0] if lines else ""

    m = VERSION_TOKEN_RE.search(line)
    token = m.group(0) if m else ""
    if not VERSION_RE.match(token):
        raise VersionParseError(tool_name, line, command)
    return token
