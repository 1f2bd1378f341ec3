"""
Host environment checks.

Detects the running macOS version and whether the tool has the privileges
most diagnostics need.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .common import command_output, vlog
from .versions import compare_versions


MIN_OS_VERSION = "13.0"


@dataclass(frozen=True)
class OSStatus:
    """
    Detected operating system version against the supported minimum.

    Attributes:
        version: macOS product version, or None if it could not be read
        minimum: Minimum supported version
    """
    version: str | None
    minimum: str = MIN_OS_VERSION

    @property
    def meets_minimum(self) -> bool | None:
        if not self.version:
            return None
        return compare_versions(self.version, self.minimum) >= 0

    def __str__(self) -> str:
        if self.meets_minimum is None:
            return "macOS version could not be determined."
        if self.meets_minimum:
            return f"macOS version {self.version} meets the minimum requirement of {self.minimum}."
        return f"Warning: macOS version {self.version} is less than the minimum requirement of {self.minimum}."

    def to_dict(self) -> dict:
        return {"version": self.version, "minimum": self.minimum, "meets_minimum": self.meets_minimum}


def get_macos_version(timeout: float | None = None) -> str | None:
    """Return the macOS product version from sw_vers, or None."""
    output = command_output(["sw_vers", "-productVersion"], timeout=timeout)
    return output or None


def check_os_version(
    min_version: str = MIN_OS_VERSION,
    timeout: float | None = None,
    verbose: bool = False,
) -> OSStatus:
    """
    Compare the running macOS version against the supported minimum.

    Args:
        min_version: Minimum supported macOS version
        timeout: Timeout for sw_vers
        verbose: Enable verbose logging

    Returns:
        OSStatus (version is None off macOS or when sw_vers fails)
    """
    status = OSStatus(version=get_macos_version(timeout), minimum=min_version)
    vlog(str(status), verbose)
    return status


def is_root() -> bool:
    """Whether the process runs with root privileges."""
    return os.geteuid() == 0
