"""
Version comparison for dotted numeric versions.
"""

from __future__ import annotations

from packaging.version import Version

from .detection import VERSION_RE


def _to_version(v: str) -> Version:
    if not isinstance(v, str) or not VERSION_RE.match(v):
        raise ValueError(f"Not a dotted numeric version: {v!r}")
    return Version(v)


def compare_versions(v1: str, v2: str) -> int:
    """
    Compare two dotted numeric version strings.

    Segments compare numerically and missing trailing segments count as
    zero, so "2.9" < "2.10" and "1.0" == "1.0.0".

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2

    Raises:
        ValueError: If either argument is not a dotted numeric version
    """
    ver1 = _to_version(v1)
    ver2 = _to_version(v2)
    if ver1 < ver2:
        return -1
    if ver1 > ver2:
        return 1
    return 0


def version_lte(v1: str, v2: str) -> bool:
    """Return True if v1 <= v2."""
    return compare_versions(v1, v2) <= 0


def meets_minimum(observed: str, required: str | None) -> bool:
    """Return True if observed satisfies the required minimum (always True without one)."""
    if not required:
        return True
    return version_lte(required, observed)
