"""
Version comparison for installed agent bundles.

Bundle versions are plain dotted strings read from Info.plist files. Pure
release numbers ("2.45.1") are ordered with packaging. Anything else
("2.45.1b2", "3.0.0 (build 12)") is compared segment by segment, with each
segment split into digit and text runs, so a suffixed build sorts after its
base release and a malformed string never aborts a diagnostic run.
"""

from __future__ import annotations

import re

from packaging import version as pkg_version


# Classic cutoff: bundles above this version are the modern generation
THRESHOLD_VERSION = "2.45.1"

_RELEASE_RE = re.compile(r"^\d+(\.\d+)*$")
_RUN_RE = re.compile(r"\d+|\D+")


def _segment_key(segment: str) -> tuple[tuple[int, int | str], ...]:
    """Digit runs compare numerically and sort before text runs."""
    return tuple(
        (0, int(run)) if run.isdigit() else (1, run)
        for run in _RUN_RE.findall(segment)
    )


def _compare_segments(v1: str, v2: str) -> int:
    """Segment-wise comparison for versions that are not plain release numbers."""
    parts1 = v1.split(".")
    parts2 = v2.split(".")

    # Missing trailing segments count as zero
    width = max(len(parts1), len(parts2))
    parts1 += ["0"] * (width - len(parts1))
    parts2 += ["0"] * (width - len(parts2))

    for a, b in zip(parts1, parts2):
        a_key = _segment_key(a)
        b_key = _segment_key(b)
        if a_key < b_key:
            return -1
        if a_key > b_key:
            return 1
    return 0


def compare_versions(v1: str | None, v2: str | None) -> int:
    """
    Compare two version strings.

    An empty or missing version sorts below any non-empty one. A suffix on
    the last segment sorts after the bare release, so "2.45.1b2" is newer
    than "2.45.1".

    Args:
        v1: First version
        v2: Second version

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2
    """
    v1 = (v1 or "").strip()
    v2 = (v2 or "").strip()

    if not v1 or not v2:
        if v1:
            return 1
        if v2:
            return -1
        return 0

    if not (_RELEASE_RE.match(v1) and _RELEASE_RE.match(v2)):
        return _compare_segments(v1, v2)

    ver1 = pkg_version.Version(v1)
    ver2 = pkg_version.Version(v2)
    if ver1 < ver2:
        return -1
    elif ver1 > ver2:
        return 1
    else:
        return 0


def is_greater_than(v1: str | None, v2: str | None) -> bool:
    """Return True if v1 is strictly newer than v2."""
    return compare_versions(v1, v2) > 0
