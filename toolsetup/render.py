"""
Status table rendering.

Columns are aligned by terminal display width so emoji icons do not
shift the rows.
"""

from __future__ import annotations

import os
import sys
from typing import IO, Iterable

from wcwidth import wcswidth

from .bulk import BatchReport
from .checker import CheckResult, Classification


# Environment options
USE_EMOJI = os.environ.get("TOOLSETUP_EMOJI", "1") == "1"
USE_COLOR = os.environ.get("TOOLSETUP_COLOR", "1") == "1"

UNDERLINE = "\033[4m"
RESET = "\033[0m"

ICONS = {"success": "✅", "warning": "⚠️", "error": "❌"}
ASCII_ICONS = {"success": "ok", "warning": "!!", "error": "xx"}

HEADERS = ("", "Name", "Version", "Logged in")
ICON_WIDTH = 2
NAME_WIDTH = 7
VERSION_WIDTH = 8
COLUMN_GAP = "  "


def status_icon(level: str) -> str:
    """Icon for a result level (success, warning, error)."""
    icons = ICONS if USE_EMOJI else ASCII_ICONS
    return icons.get(level, "?")


def display_width(text: str) -> int:
    """Number of terminal cells text occupies."""
    width = wcswidth(text)
    return len(text) if width < 0 else width


def pad(text: str, width: int, right: bool = False) -> str:
    """Pad text with spaces to a display width."""
    fill = " " * max(0, width - display_width(text))
    return fill + text if right else text + fill


def underline(text: str) -> str:
    if not USE_COLOR or not text:
        return text
    return f"{UNDERLINE}{text}{RESET}"


def _widths(results: Iterable[CheckResult] = ()) -> tuple[int, int]:
    name_width, version_width = NAME_WIDTH, VERSION_WIDTH
    for r in results:
        name_width = max(name_width, display_width(r.tool_name))
        version_width = max(version_width, display_width(r.observed_version or ""))
    return name_width, version_width


def format_header(name_width: int = NAME_WIDTH, version_width: int = VERSION_WIDTH) -> str:
    """Underlined header line."""
    _, name, version, logged_in = HEADERS
    # only the words are underlined, the padding stays plain
    return COLUMN_GAP.join((
        " " * ICON_WIDTH,
        " " * max(0, name_width - display_width(name)) + underline(name),
        " " * max(0, version_width - display_width(version)) + underline(version),
        underline(logged_in),
    ))


def format_row(result: CheckResult, name_width: int = NAME_WIDTH, version_width: int = VERSION_WIDTH) -> str:
    """One table row: icon, name, version, message."""
    return COLUMN_GAP.join((
        pad(status_icon(result.classification.level), ICON_WIDTH),
        pad(result.tool_name, name_width, right=True),
        pad(result.observed_version or "-", version_width, right=True),
        result.message,
    )).rstrip()


def render_table(results: Iterable[CheckResult], file: IO[str] | None = None) -> None:
    """Print header and one row per result."""
    out = file or sys.stdout
    results = list(results)
    name_width, version_width = _widths(results)
    print(format_header(name_width, version_width), file=out)
    for r in results:
        print(format_row(r, name_width, version_width), file=out)


def print_summary(report: BatchReport, file: IO[str] | None = None) -> None:
    """Print a one-line readiness summary."""
    parts = [f"{len(report.results)} tools", f"{report.count(Classification.READY)} ready"]
    for classification, label in (
        (Classification.NOT_INSTALLED, "missing"),
        (Classification.VERSION_UNPARSABLE, "unparsable"),
        (Classification.VERSION_TOO_LOW, "outdated"),
        (Classification.NOT_AUTHENTICATED, "not logged in"),
    ):
        n = report.count(classification)
        if n:
            parts.append(f"{n} {label}")
    print(f"\nReadiness: {', '.join(parts)} (status {report.exit_status})", file=file or sys.stderr)
