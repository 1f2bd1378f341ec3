"""
Bundle version probing and generation classification.

A probe reads one Info.plist and reports one of three outcomes: a version was
found, nothing is installed there, or something is installed but could not be
read. Absence is the common case and is never an error.
"""

from __future__ import annotations

import enum
import plistlib
from dataclasses import dataclass
from xml.parsers.expat import ExpatError

from .common import vlog
from .versions import THRESHOLD_VERSION, is_greater_than


VERSION_KEY = "CFBundleShortVersionString"


class ProbeStatus(enum.Enum):
    FOUND = "found"
    ABSENT = "absent"
    READ_ERROR = "read_error"


class Generation(enum.Enum):
    """Agent generation, split at THRESHOLD_VERSION."""
    LEGACY = "Legacy"
    MODERN = "Modern"


@dataclass(frozen=True)
class ProbeResult:
    """
    Outcome of reading a version field from one metadata file.

    Attributes:
        path: File that was probed
        status: FOUND, ABSENT or READ_ERROR
        version: Version string when status is FOUND
        error: Cause text when status is READ_ERROR
    """
    path: str
    status: ProbeStatus
    version: str | None = None
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.status is ProbeStatus.FOUND

    @staticmethod
    def absent(path: str) -> ProbeResult:
        return ProbeResult(path=path, status=ProbeStatus.ABSENT)

    @staticmethod
    def read_error(path: str, error: str) -> ProbeResult:
        return ProbeResult(path=path, status=ProbeStatus.READ_ERROR, error=error)

    @staticmethod
    def with_version(path: str, version: str) -> ProbeResult:
        return ProbeResult(path=path, status=ProbeStatus.FOUND, version=version)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "path": self.path,
            "status": self.status.value,
            "version": self.version,
            "error": self.error,
        }


def read_plist(path: str) -> dict | None:
    """
    Load a plist file.

    Returns:
        Parsed top-level dictionary, or None if the file does not exist

    Raises:
        OSError: File exists but cannot be read
        ValueError: File is not a valid plist dictionary
    """
    try:
        with open(path, "rb") as f:
            data = plistlib.load(f)
    except (FileNotFoundError, NotADirectoryError):
        return None
    except (plistlib.InvalidFileException, ExpatError) as e:
        raise ValueError(f"invalid plist: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("plist root is not a dictionary")
    return data


def read_bundle_version(path: str, key: str = VERSION_KEY, verbose: bool = False) -> ProbeResult:
    """
    Read a version field from a bundle's Info.plist.

    Args:
        path: Absolute path to the Info.plist
        key: Field holding the version
        verbose: Enable verbose logging

    Returns:
        ProbeResult; never raises
    """
    try:
        data = read_plist(path)
    except PermissionError as e:
        vlog(f"Permission denied reading {path}", verbose)
        return ProbeResult.read_error(path, e.strerror or "Permission denied")
    except OSError as e:
        vlog(f"Could not read {path}: {e}", verbose)
        return ProbeResult.read_error(path, e.strerror or str(e))
    except ValueError as e:
        vlog(f"Could not parse {path}: {e}", verbose)
        return ProbeResult.read_error(path, str(e))

    if data is None:
        vlog(f"Not installed: {path}", verbose)
        return ProbeResult.absent(path)

    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        vlog(f"No {key} in {path}", verbose)
        return ProbeResult.absent(path)

    vlog(f"Found {value.strip()} at {path}", verbose)
    return ProbeResult.with_version(path, value.strip())


def classify(version: str, threshold: str = THRESHOLD_VERSION) -> Generation:
    """
    Classify a bundle version as legacy or modern.

    Versions strictly above the threshold are modern; the threshold itself is
    the last legacy release.
    """
    if is_greater_than(version, threshold):
        return Generation.MODERN
    return Generation.LEGACY
