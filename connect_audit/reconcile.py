"""
Resolution of coexisting Jamf Connect installations.

Each component (menu bar agent, login window agent) can be found at more than
one location, and one of those locations is shared between the two. The
resolvers here pick the authoritative installation for a component, report
leftovers from older deployments as conflicts, and turn unreadable files into
advisory text instead of failures.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable

from .common import vlog
from .detection import Generation, ProbeResult, ProbeStatus, classify, read_bundle_version
from .paths import InstallPaths
from .versions import THRESHOLD_VERSION


Reader = Callable[[str], ProbeResult]


class ComponentKind(enum.Enum):
    MENU_BAR = "menu_bar"
    LOGIN_WINDOW = "login_window"

    @property
    def display_name(self) -> str:
        return {
            ComponentKind.MENU_BAR: "Menu Bar",
            ComponentKind.LOGIN_WINDOW: "Login Window",
        }[self]


class Location(enum.Enum):
    """Logical install locations; LEGACY is shared by both components."""
    MODERN_BUNDLED = "modern-bundled-path"
    LEGACY = "legacy-path"
    DEDICATED_LOGIN_BUNDLE = "dedicated-login-bundle"

    @property
    def label(self) -> str:
        return {
            Location.MODERN_BUNDLED: "Self Service+ path",
            Location.LEGACY: "legacy path",
            Location.DEDICATED_LOGIN_BUNDLE: "login bundle path",
        }[self]


@dataclass(frozen=True)
class InstallCandidate:
    """
    One probed location for one component.

    Attributes:
        kind: Component the location was probed for
        location: Logical location tag
        path: Metadata file that was read
        version: Version found there, if any
        generation: Classification of version (None without a version)
        error: Read failure cause, if the file exists but was unreadable
    """
    kind: ComponentKind
    location: Location
    path: str
    version: str | None = None
    generation: Generation | None = None
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.version is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "location": self.location.value,
            "path": self.path,
            "version": self.version,
            "generation": self.generation.value if self.generation else None,
            "error": self.error,
        }


@dataclass(frozen=True)
class ResolvedStatus:
    """
    Resolved installation state of one component.

    Attributes:
        kind: Component kind
        primary: Authoritative installation, or None if not detected
        conflicts: Other installations that should have been cleaned up
        read_errors: Candidates whose metadata exists but could not be read
        notes: Advisory findings that are neither primary nor conflicts
    """
    kind: ComponentKind
    primary: InstallCandidate | None
    conflicts: tuple[InstallCandidate, ...] = ()
    read_errors: tuple[InstallCandidate, ...] = ()
    notes: tuple[str, ...] = ()

    @property
    def detected(self) -> bool:
        return self.primary is not None

    @property
    def generation(self) -> Generation | None:
        return self.primary.generation if self.primary else None

    @property
    def version(self) -> str | None:
        return self.primary.version if self.primary else None

    @property
    def undetermined(self) -> bool:
        """Nothing found, but at least one location could not be read."""
        return self.primary is None and bool(self.read_errors)

    def status_line(self) -> str:
        """Display-ready single line, e.g. 'Menu Bar: Modern 3.2.0'."""
        prefix = f"{self.kind.display_name}: "
        if self.primary is not None:
            parts = [f"{self.primary.generation.value} {self.primary.version}"]  # type: ignore[union-attr]
        elif self.read_errors:
            parts = ["unable to determine"]
        else:
            parts = ["not detected"]

        for note in self.notes:
            parts.append(f"({note})")
        for conflict in self.conflicts:
            build = "classic" if conflict.generation is Generation.LEGACY else "modern"
            parts.append(
                f"(also found {build} build at {conflict.location.label}, version {conflict.version})"
            )
        for failed in self.read_errors:
            parts.append(f"(unable to read {failed.location.label}: {failed.error})")

        return prefix + " ".join(parts)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "detected": self.detected,
            "generation": self.generation.value if self.generation else None,
            "version": self.version,
            "primary": self.primary.to_dict() if self.primary else None,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "read_errors": [c.to_dict() for c in self.read_errors],
            "notes": list(self.notes),
            "status": self.status_line(),
        }


def probe_candidate(
    kind: ComponentKind,
    location: Location,
    path: str,
    reader: Reader,
    threshold: str = THRESHOLD_VERSION,
) -> InstallCandidate:
    """Probe one location and classify whatever version it holds."""
    result = reader(path)
    if result.status is ProbeStatus.FOUND and result.version:
        return InstallCandidate(
            kind=kind,
            location=location,
            path=path,
            version=result.version,
            generation=classify(result.version, threshold),
        )
    if result.status is ProbeStatus.READ_ERROR:
        return InstallCandidate(kind=kind, location=location, path=path, error=result.error or "unreadable")
    return InstallCandidate(kind=kind, location=location, path=path)


def _is_conflict(primary: InstallCandidate, other: InstallCandidate) -> bool:
    """
    Decide whether a non-primary installation is worth reporting.

    A classic build next to a modern one is always a leftover. Two modern
    builds are only unusual when their versions differ; the same version at
    both paths is the normal post-install state.
    """
    if not other.found or other.location is primary.location:
        return False
    if other.generation is Generation.LEGACY:
        return primary.generation is Generation.MODERN
    return other.version != primary.version


def resolve_menu_bar(
    paths: InstallPaths | None = None,
    threshold: str = THRESHOLD_VERSION,
    reader: Reader | None = None,
    verbose: bool = False,
) -> ResolvedStatus:
    """
    Resolve the menu bar agent installation.

    Priority: modern build inside Self Service+ > modern build left at the
    legacy path > classic build at the legacy path.

    Args:
        paths: Install locations (default: InstallPaths())
        threshold: Last legacy version
        reader: Probe function (default: read_bundle_version)
        verbose: Enable verbose logging

    Returns:
        ResolvedStatus for ComponentKind.MENU_BAR
    """
    paths = paths or InstallPaths()
    reader = reader or read_bundle_version
    kind = ComponentKind.MENU_BAR

    modern = probe_candidate(kind, Location.MODERN_BUNDLED, paths.menu_bar_modern, reader, threshold)
    legacy = probe_candidate(kind, Location.LEGACY, paths.legacy_app, reader, threshold)

    read_errors = tuple(c for c in (modern, legacy) if c.error)

    modern_at_legacy = legacy if legacy.generation is Generation.MODERN else None
    classic = legacy if legacy.generation is Generation.LEGACY else None

    if modern.found:
        primary = modern
    elif modern_at_legacy is not None:
        primary = modern_at_legacy
    elif classic is not None:
        primary = classic
    else:
        vlog("Menu bar: no installation detected", verbose)
        return ResolvedStatus(kind=kind, primary=None, read_errors=read_errors)

    conflicts = tuple(c for c in (modern, legacy) if c is not primary and _is_conflict(primary, c))

    vlog(
        f"Menu bar: primary {primary.generation.value} {primary.version} "  # type: ignore[union-attr]
        f"at {primary.location.value}, {len(conflicts)} conflict(s)",
        verbose,
    )
    return ResolvedStatus(kind=kind, primary=primary, conflicts=conflicts, read_errors=read_errors)


def resolve_login_window(
    paths: InstallPaths | None = None,
    threshold: str = THRESHOLD_VERSION,
    reader: Reader | None = None,
    verbose: bool = False,
) -> ResolvedStatus:
    """
    Resolve the login window agent installation.

    The dedicated login bundle is authoritative: when it reports a version the
    legacy path is not read at all. Otherwise the legacy path only counts as a
    login window when it holds a classic build, because classic deployments
    ship both components in one app. A modern build there is a menu bar agent.

    Args:
        paths: Install locations (default: InstallPaths())
        threshold: Last legacy version
        reader: Probe function (default: read_bundle_version)
        verbose: Enable verbose logging

    Returns:
        ResolvedStatus for ComponentKind.LOGIN_WINDOW
    """
    paths = paths or InstallPaths()
    reader = reader or read_bundle_version
    kind = ComponentKind.LOGIN_WINDOW

    bundle = probe_candidate(kind, Location.DEDICATED_LOGIN_BUNDLE, paths.login_bundle, reader, threshold)
    if bundle.found:
        vlog(f"Login window: bundle reports {bundle.version}", verbose)
        return ResolvedStatus(kind=kind, primary=bundle)

    legacy = probe_candidate(kind, Location.LEGACY, paths.legacy_app, reader, threshold)
    read_errors = tuple(c for c in (bundle, legacy) if c.error)

    if legacy.generation is Generation.LEGACY:
        vlog(f"Login window: classic build {legacy.version} at legacy path", verbose)
        return ResolvedStatus(kind=kind, primary=legacy, read_errors=read_errors)

    if legacy.generation is Generation.MODERN:
        vlog(f"Login window: {legacy.version} at legacy path is a menu bar build", verbose)
        return ResolvedStatus(
            kind=kind,
            primary=None,
            read_errors=read_errors,
            notes=("found modern menu-bar build at legacy path",),
        )

    vlog("Login window: no installation detected", verbose)
    return ResolvedStatus(kind=kind, primary=None, read_errors=read_errors)


def resolve_menu_bar_status(
    paths: InstallPaths | None = None,
    threshold: str = THRESHOLD_VERSION,
    reader: Reader | None = None,
) -> str:
    """Display-ready menu bar status line."""
    return resolve_menu_bar(paths, threshold, reader).status_line()


def resolve_login_window_status(
    paths: InstallPaths | None = None,
    threshold: str = THRESHOLD_VERSION,
    reader: Reader | None = None,
) -> str:
    """Display-ready login window status line."""
    return resolve_login_window(paths, threshold, reader).status_line()
