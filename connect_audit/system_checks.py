"""
Auxiliary system checks for the app status report.

Each check is a single existence or running-state query against launchd,
authchanger, the Kerberos ticket cache or the file system. A check that
cannot run reports None (unknown) instead of failing the report.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any

from .common import command_output, run_command, vlog
from .detection import read_bundle_version, read_plist
from .paths import (
    DAEMON_LEGACY_LABEL,
    DAEMON_MODERN_LABEL,
    LAUNCH_AGENT_LABEL,
    InstallPaths,
)


@dataclass(frozen=True)
class ServiceStatus:
    """
    Presence and running state of a launchd job.

    Attributes:
        label: launchd label
        path: Job plist path
        installed: Whether the job plist exists
        running: Whether launchctl lists the label (None if launchctl failed)
        variant: "modern" or "legacy" for daemons, "" otherwise
    """
    label: str
    path: str
    installed: bool
    running: bool | None = None
    variant: str = ""

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "path": self.path,
            "installed": self.installed,
            "running": self.running,
            "variant": self.variant,
        }


@dataclass(frozen=True)
class AuthChainStatus:
    """
    Login window wiring in the authorization database.

    Attributes:
        authchanger_present: Whether the authchanger binary is executable
        enabled: Whether the login mechanisms include Jamf Connect
            (None when authchanger is missing or failed)
        mechanisms: Mechanisms of the system.login.console right, in order
        output: Raw `authchanger -print` output
    """
    authchanger_present: bool
    enabled: bool | None = None
    mechanisms: tuple[str, ...] = ()
    output: str = field(default="", repr=False)

    def to_dict(self) -> dict:
        return {
            "authchanger_present": self.authchanger_present,
            "enabled": self.enabled,
            "mechanisms": list(self.mechanisms),
        }



@dataclass(frozen=True)
class KerberosStatus:
    """
    Kerberos realm configuration and ticket cache state.

    Attributes:
        realm: Realm configured in the menu bar preferences, if any
        ticket_count: Number of krbtgt tickets (None if klist failed or
            reported no credentials cache)
    """
    realm: str | None
    ticket_count: int | None = None

    @property
    def configured(self) -> bool:
        return bool(self.realm)

    @property
    def has_tickets(self) -> bool:
        return bool(self.ticket_count)

    def to_dict(self) -> dict:
        return {"realm": self.realm, "ticket_count": self.ticket_count}


def get_launchctl_labels(timeout: float | None = None) -> set[str] | None:
    """
    List loaded launchd labels.

    Returns:
        Set of labels, or None if launchctl could not be queried
    """
    output = command_output(["launchctl", "list"], timeout=timeout)
    if output is None:
        return None

    labels = set()
    for line in output.splitlines()[1:]:  # skip "PID Status Label" header
        parts = line.split()
        if len(parts) >= 3:
            labels.add(parts[-1])
    return labels


def _running(label: str, labels: set[str] | None) -> bool | None:
    if labels is None:
        return None
    return label in labels


def check_launch_agent(
    paths: InstallPaths,
    labels: set[str] | None,
    verbose: bool = False,
) -> ServiceStatus:
    """Check the package-installed menu bar LaunchAgent."""
    installed = os.path.isfile(paths.launch_agent)
    vlog(f"LaunchAgent {paths.launch_agent}: {'present' if installed else 'absent'}", verbose)
    return ServiceStatus(
        label=LAUNCH_AGENT_LABEL,
        path=paths.launch_agent,
        installed=installed,
        running=_running(LAUNCH_AGENT_LABEL, labels) if installed else None,
    )


def check_daemon(
    paths: InstallPaths,
    labels: set[str] | None,
    verbose: bool = False,
) -> ServiceStatus | None:
    """
    Check the Jamf Connect LaunchDaemon.

    Modern and legacy daemons are mutually exclusive by convention; the modern
    one is checked first.

    Returns:
        ServiceStatus of the daemon found, or None if neither is installed
    """
    for variant, label, path in (
        ("modern", DAEMON_MODERN_LABEL, paths.daemon_modern),
        ("legacy", DAEMON_LEGACY_LABEL, paths.daemon_legacy),
    ):
        if os.path.isfile(path):
            vlog(f"Daemon ({variant}) present at {path}", verbose)
            return ServiceStatus(
                label=label,
                path=path,
                installed=True,
                running=_running(label, labels),
                variant=variant,
            )
    vlog("No Jamf Connect daemon installed", verbose)
    return None


# Right that controls the macOS login window
CONSOLE_RIGHT = "system.login.console"

_ENTRY_RE = re.compile(r"^\s*Entry\s+(\S+)")
_MECHANISM_RE = re.compile(r"^[A-Za-z][\w.-]*:[\w.,-]+$")
_MECHANISM_END = {"shared", "created", "modified"}
_MECHANISMS_KEY_RE = re.compile(r"^mechanisms\b")


def parse_login_mechanisms(output: str) -> tuple[str, ...]:
    """
    Extract the login window mechanisms from `authchanger -print` output.

    Reads the mechanisms list of the system.login.console entry, stopping at
    the next entry or at the shared/created/modified attributes. Output with
    no entries at all is treated as a bare mechanism listing, one
    "plugin:mechanism" per line.

    Args:
        output: authchanger -print output

    Returns:
        Mechanism names in chain order
    """
    lines = output.splitlines()
    if not any(_ENTRY_RE.match(line) for line in lines):
        return tuple(line.strip() for line in lines if _MECHANISM_RE.match(line.strip()))

    mechanisms = []
    in_console = False
    in_mechanisms = False
    for line in lines:
        entry = _ENTRY_RE.match(line)
        if entry:
            if in_console:
                break
            in_console = entry.group(1) == CONSOLE_RIGHT
            continue
        if not in_console:
            continue

        text = line.strip()
        if not in_mechanisms:
            in_mechanisms = bool(_MECHANISMS_KEY_RE.match(text))
            continue
        if not text:
            continue
        if text.split()[0].rstrip(":") in _MECHANISM_END:
            break
        mechanisms.append(text)
    return tuple(mechanisms)


def check_auth_chain(
    paths: InstallPaths,
    timeout: float | None = None,
    verbose: bool = False,
) -> AuthChainStatus:
    """Check whether the login window is wired into the login sequence."""
    if not (os.path.isfile(paths.authchanger) and os.access(paths.authchanger, os.X_OK)):
        vlog(f"authchanger not found at {paths.authchanger}", verbose)
        return AuthChainStatus(authchanger_present=False)

    proc = run_command([paths.authchanger, "-print"], timeout=timeout)
    if proc is None:
        return AuthChainStatus(authchanger_present=True)

    output = (proc.stdout or "") + (proc.stderr or "")
    mechanisms = parse_login_mechanisms(output)
    enabled = any("jamfconnect" in mechanism.lower() for mechanism in mechanisms)
    vlog(f"authchanger lists {len(mechanisms)} login mechanism(s); Jamf Connect "
         f"{'enabled' if enabled else 'disabled'}", verbose)
    return AuthChainStatus(
        authchanger_present=True,
        enabled=enabled,
        mechanisms=mechanisms,
        output=output,
    )


def read_authchanger_config(paths: InstallPaths, verbose: bool = False) -> dict[str, Any] | None:
    """
    Read the managed authchanger configuration.

    Returns:
        Preference dictionary, or None if no configuration is installed

    Raises:
        ValueError: If the file exists but is not a readable dictionary plist
    """
    try:
        prefs = read_plist(paths.authchanger_prefs)
    except OSError as e:
        raise ValueError(f"unable to read {paths.authchanger_prefs}: {e.strerror or e}") from e
    vlog(f"authchanger config {paths.authchanger_prefs}: {'found' if prefs is not None else 'absent'}", verbose)
    return prefs



def get_kerberos_realm(paths: InstallPaths, verbose: bool = False) -> str | None:
    """Read Kerberos.Realm from the managed menu bar preferences."""
    try:
        prefs = read_plist(paths.menu_prefs)
    except (OSError, ValueError) as e:
        vlog(f"Could not read {paths.menu_prefs}: {e}", verbose)
        return None
    if not prefs:
        return None

    kerberos = prefs.get("Kerberos")
    if not isinstance(kerberos, dict):
        return None
    realm = kerberos.get("Realm")
    return realm if isinstance(realm, str) and realm else None


def count_kerberos_tickets(timeout: float | None = None) -> int | None:
    """
    Count krbtgt tickets in the default credentials cache.

    Returns:
        Ticket count, or None when klist fails (no cache or not installed)
    """
    output = command_output(["klist"], timeout=timeout)
    if output is None:
        return None
    return sum(1 for line in output.splitlines() if "krbtgt" in line)


def check_kerberos(
    paths: InstallPaths,
    timeout: float | None = None,
    verbose: bool = False,
) -> KerberosStatus:
    """Check Kerberos configuration and, when configured, ticket presence."""
    realm = get_kerberos_realm(paths, verbose)
    if not realm:
        return KerberosStatus(realm=None)
    return KerberosStatus(realm=realm, ticket_count=count_kerberos_tickets(timeout))


def get_app_version(app_path: str, verbose: bool = False) -> str | None:
    """
    Version of an application bundle, or None if absent or unreadable.
    """
    if not os.path.isdir(app_path):
        return None
    result = read_bundle_version(os.path.join(app_path, "Contents", "Info.plist"), verbose=verbose)
    return result.version if result.found else None
