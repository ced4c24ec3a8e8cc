"""
Tests for version comparison (toolsetup/versions.py).
"""

import itertools

import pytest

from toolsetup.versions import compare_versions, meets_minimum, version_lte


VERSIONS = ["0.9", "1", "1.0.1", "1.2", "1.10", "2.9", "2.10", "2.10.0.1", "10.0"]


class TestCompareVersions:
    """Tests for compare_versions()."""

    def test_numeric_segments(self):
        """Test segments compare numerically, not lexicographically."""
        assert compare_versions("2.9", "2.10") == -1
        assert compare_versions("2.10", "2.9") == 1
        assert compare_versions("10.0", "9.99") == 1

    def test_trailing_zeros(self):
        """Test missing trailing segments count as zero."""
        assert compare_versions("1.0", "1.0.0") == 0
        assert compare_versions("1", "1.0.0.0") == 0
        assert compare_versions("1.0.1", "1.0") == 1

    def test_long_segments(self):
        assert compare_versions("1.20240101", "1.20231231") == 1

    def test_reflexive(self):
        for v in VERSIONS:
            assert compare_versions(v, v) == 0
            assert version_lte(v, v)

    def test_antisymmetric(self):
        for a, b in itertools.product(VERSIONS, repeat=2):
            assert compare_versions(a, b) == -compare_versions(b, a)
            if version_lte(a, b) and version_lte(b, a):
                assert compare_versions(a, b) == 0

    def test_transitive(self):
        for a, b, c in itertools.product(VERSIONS, repeat=3):
            if version_lte(a, b) and version_lte(b, c):
                assert version_lte(a, c)

    @pytest.mark.parametrize("bad", ["", "v1.2", "1.2-rc1", "1..2", "abc", None])
    def test_malformed_version_raises(self, bad):
        """Test malformed input raises instead of falling back to string order."""
        with pytest.raises(ValueError):
            compare_versions(bad, "1.0")


class TestMeetsMinimum:
    """Tests for meets_minimum()."""

    def test_no_minimum_always_passes(self):
        assert meets_minimum("0.0.1", None)
        assert meets_minimum("0.0.1", "")

    def test_equal_passes(self):
        assert meets_minimum("4.44.3", "4.44.3")

    def test_lower_fails(self):
        assert not meets_minimum("1.0.0", "2.0.0")
        assert not meets_minimum("4.9", "4.44.3")

    def test_higher_passes(self):
        assert meets_minimum("27.10.0", "27.3.0")
