"""
Tests for version comparison (connect_audit/versions.py).
"""

import pytest

from connect_audit.versions import (
    THRESHOLD_VERSION,
    _compare_segments,
    compare_versions,
    is_greater_than,
)


class TestCompareVersions:
    """Tests for compare_versions()."""

    def test_equal(self):
        """Test identical versions compare equal."""
        assert compare_versions("2.45.1", "2.45.1") == 0

    def test_less_and_greater(self):
        """Test basic ordering in both directions."""
        assert compare_versions("2.45.0", "2.45.1") == -1
        assert compare_versions("3.0.0", "2.45.1") == 1

    def test_numeric_not_lexical(self):
        """Test segments compare as numbers, not strings."""
        assert compare_versions("2.9", "2.45.1") == -1
        assert compare_versions("2.100.0", "2.45.1") == 1
        assert compare_versions("10.0", "9.9.9") == 1

    def test_trailing_zeros_equal(self):
        """Test missing trailing segments count as zero."""
        assert compare_versions("3.0", "3.0.0") == 0
        assert compare_versions("3", "3.0.0.0") == 0

    def test_empty_sorts_lowest(self):
        """Test empty or missing versions sort below any real version."""
        assert compare_versions("", "0.0.1") == -1
        assert compare_versions(None, "1.0") == -1
        assert compare_versions("1.0", "") == 1
        assert compare_versions("", None) == 0

    def test_whitespace_ignored(self):
        """Test surrounding whitespace does not affect comparison."""
        assert compare_versions(" 2.45.1 ", "2.45.1") == 0

    @pytest.mark.parametrize("a,b", [
        ("1.0", "2.0"),
        ("2.45.1", "2.46"),
        ("3.0.0", "3.0.1"),
        ("2.45.1", "2.45.1"),
        ("1.2.x", "1.2.3"),
    ])
    def test_antisymmetric(self, a, b):
        """Test compare(a, b) == -compare(b, a)."""
        assert compare_versions(a, b) == -compare_versions(b, a)

    def test_transitive(self):
        """Test ordering is transitive across a chain."""
        chain = ["2.9", "2.45.0", "2.45.1", "2.45.2", "3.0.0", "3.10.0"]
        for i, lower in enumerate(chain):
            for higher in chain[i + 1:]:
                assert compare_versions(lower, higher) == -1

    def test_non_pep440_falls_back(self):
        """Test malformed versions still compare without raising."""
        assert compare_versions("2.45.1-beta_x", "2.45.1-beta_x") == 0
        assert compare_versions("3.0.0 (build 12)", "2.45.1") == 1

    def test_suffixed_build_is_newer_than_release(self):
        """Test a suffix on the last segment sorts after the bare release."""
        assert compare_versions("2.45.1b2", "2.45.1") == 1
        assert compare_versions("2.45.1rc1", "2.45.1") == 1
        assert compare_versions("2.45.1", "2.45.1b2") == -1
        assert compare_versions("2.45.1b2", "2.45.2") == -1
        assert compare_versions("2.45.1b2", "2.45.1b10") == -1

    def test_mixed_inputs_are_totally_ordered(self):
        """Test antisymmetry and transitivity across release and suffixed versions."""
        versions = ["1.0", "1.0a1", "1.0.x", "1", "1a", "2", "10", "2.45.1", "2.45.1b2", "2.45.1rc1", "2.45.1.0"]
        for a in versions:
            for b in versions:
                assert compare_versions(a, b) == -compare_versions(b, a)
                for c in versions:
                    if compare_versions(a, b) <= 0 and compare_versions(b, c) <= 0:
                        assert compare_versions(a, c) <= 0, (a, b, c)

    def test_suffix_chain(self):
        """Test a chain that mixes release and suffixed versions."""
        chain = ["1.0", "1.0.x", "1.0a1", "1.1"]
        for i, lower in enumerate(chain):
            for higher in chain[i + 1:]:
                assert compare_versions(lower, higher) == -1


class TestCompareSegments:
    """Tests for the segment-wise fallback."""

    def test_numeric_segments(self):
        """Test numeric segments compare as integers."""
        assert _compare_segments("1.10", "1.9") == 1

    def test_padding(self):
        """Test shorter versions are zero-padded."""
        assert _compare_segments("1.2", "1.2.0") == 0

    def test_text_segments(self):
        """Test non-numeric segments compare as text."""
        assert _compare_segments("1.2.b", "1.2.a") == 1
        assert _compare_segments("1.2.a", "1.2.a") == 0

    def test_mixed_segments(self):
        """Test digit runs compare numerically inside a segment."""
        assert _compare_segments("1.2b10", "1.2b9") == 1
        assert _compare_segments("1.2", "1.2b1") == -1
        assert _compare_segments("1.x", "1.9") == 1


class TestIsGreaterThan:
    """Tests for is_greater_than()."""

    def test_threshold_boundary(self):
        """Test the threshold itself is not greater than the threshold."""
        assert not is_greater_than(THRESHOLD_VERSION, THRESHOLD_VERSION)
        assert not is_greater_than("2.45.1.0", THRESHOLD_VERSION)
        assert is_greater_than("2.45.2", THRESHOLD_VERSION)
        assert is_greater_than("2.46", THRESHOLD_VERSION)

    def test_empty_never_greater(self):
        """Test an empty version is never newer."""
        assert not is_greater_than("", THRESHOLD_VERSION)
        assert not is_greater_than(None, THRESHOLD_VERSION)
