"""
Kerberos troubleshooting for the menu bar agent.

Checks, in order, whether the configured realm publishes LDAP servers in DNS,
whether a ticket cache exists, and whether the short name Jamf Connect keeps
for the console user matches the principal in the ticket. A short name
mismatch is the usual reason ticket renewal keeps failing.
"""

from __future__ import annotations

import os
import pwd
from dataclasses import dataclass, field
from typing import Any

from .common import command_output, vlog
from .detection import read_plist
from .paths import InstallPaths
from .system_checks import get_kerberos_realm


# Kerberos keys reported from the menu bar preferences
KERBEROS_KEYS = ("Realm", "AutoRenewTickets", "CacheTicketsOnNetworkChange", "AskForShortName", "ShortName")

# Per-user state written by the menu bar agent, relative to the home directory
STATE_PLIST = os.path.join("Library", "Preferences", "com.jamf.connect.state.plist")

# Accounts that can own the console without a user being logged in
NO_CONSOLE_USERS = {"root", "loginwindow", "_mbsetupuser"}


@dataclass(frozen=True)
class KerberosDiagnosis:
    """
    Result of the Kerberos troubleshooting checks.

    Attributes:
        realm: Realm from the menu bar preferences (None if not configured)
        settings: Configured KERBEROS_KEYS values
        ldap_servers: SRV records for _ldap._tcp.<realm> (None if dig failed)
        tickets_present: Whether klist found a credentials cache
        ticket_principal: Principal of the default ticket cache
        console_user: User logged in at the console
        state_path: Path of the console user's state plist
        state_found: Whether the state plist exists
        user_short_name: UserShortName from the state plist
        custom_short_name: CustomShortName from the state plist
        errors: Checks that could not be completed
    """
    realm: str | None
    settings: dict[str, Any] = field(default_factory=dict)
    ldap_servers: tuple[str, ...] | None = None
    tickets_present: bool = False
    ticket_principal: str | None = None
    console_user: str | None = None
    state_path: str | None = None
    state_found: bool = False
    user_short_name: str | None = None
    custom_short_name: str | None = None
    errors: tuple[str, ...] = ()

    @property
    def configured(self) -> bool:
        return bool(self.realm)

    @property
    def reachable(self) -> bool | None:
        """Whether the realm publishes LDAP servers (None if DNS could not be queried)."""
        if self.ldap_servers is None:
            return None
        return bool(self.ldap_servers)

    @property
    def effective_short_name(self) -> str | None:
        """Short name Jamf Connect uses; CustomShortName takes precedence."""
        return self.custom_short_name or self.user_short_name

    @property
    def ticket_short_name(self) -> str | None:
        if not self.ticket_principal:
            return None
        return self.ticket_principal.split("@", 1)[0]

    @property
    def ticket_realm(self) -> str | None:
        if not self.ticket_principal or "@" not in self.ticket_principal:
            return None
        return self.ticket_principal.split("@", 1)[1]

    @property
    def short_names_match(self) -> bool | None:
        """None when either side is unknown."""
        if not self.ticket_short_name or not self.effective_short_name:
            return None
        return self.ticket_short_name == self.effective_short_name

    def to_dict(self) -> dict:
        return {
            "realm": self.realm,
            "settings": dict(self.settings),
            "reachable": self.reachable,
            "ldap_servers": list(self.ldap_servers) if self.ldap_servers is not None else None,
            "tickets_present": self.tickets_present,
            "ticket_principal": self.ticket_principal,
            "console_user": self.console_user,
            "state_path": self.state_path,
            "state_found": self.state_found,
            "user_short_name": self.user_short_name,
            "custom_short_name": self.custom_short_name,
            "effective_short_name": self.effective_short_name,
            "short_names_match": self.short_names_match,
            "errors": list(self.errors),
        }


def read_kerberos_settings(paths: InstallPaths, verbose: bool = False) -> dict[str, Any]:
    """Configured Kerberos keys from the managed menu bar preferences."""
    try:
        prefs = read_plist(paths.menu_prefs)
    except (OSError, ValueError) as e:
        vlog(f"Could not read {paths.menu_prefs}: {e}", verbose)
        return {}
    kerberos = (prefs or {}).get("Kerberos")
    if not isinstance(kerberos, dict):
        return {}
    return {key: kerberos[key] for key in KERBEROS_KEYS if key in kerberos and kerberos[key] != ""}


def ldap_servers(realm: str, timeout: float | None = None) -> tuple[str, ...] | None:
    """
    Look up LDAP SRV records for a realm.

    Returns:
        SRV records as printed by dig, or None if dig could not run
    """
    output = command_output(["dig", "+short", "-t", "SRV", f"_ldap._tcp.{realm}"], timeout=timeout)
    if output is None:
        return None
    return tuple(line.strip() for line in output.splitlines() if line.strip() and not line.startswith(";"))


def parse_principal(klist_output: str) -> str | None:
    """Principal of the default credentials cache from klist output."""
    for line in klist_output.splitlines():
        key, _, value = line.strip().partition(":")
        if key == "Principal" and value.strip():
            return value.split()[0]
    return None


def get_console_user(timeout: float | None = None) -> str | None:
    """User owning /dev/console, or None at the login window."""
    user = command_output(["stat", "-f%Su", "/dev/console"], timeout=timeout)
    if not user or user in NO_CONSOLE_USERS:
        return None
    return user


def get_home_directory(user: str) -> str | None:
    try:
        return pwd.getpwnam(user).pw_dir
    except KeyError:
        return None


def diagnose_kerberos(
    paths: InstallPaths,
    timeout: float | None = None,
    verbose: bool = False,
) -> KerberosDiagnosis:
    """
    Run the Kerberos checks for the console user.

    Nothing beyond the realm lookup runs when no realm is configured.
    """
    realm = get_kerberos_realm(paths, verbose)
    if not realm:
        vlog("No Kerberos realm configured", verbose)
        return KerberosDiagnosis(realm=None)

    errors = []
    servers = ldap_servers(realm, timeout)
    if servers is None:
        errors.append(f"unable to query DNS for _ldap._tcp.{realm}")
    vlog(f"LDAP SRV records for {realm}: {servers}", verbose)

    klist = command_output(["klist"], timeout=timeout)
    principal = parse_principal(klist) if klist else None

    console_user = get_console_user(timeout)
    state_path = None
    state: dict = {}
    if console_user:
        home = get_home_directory(console_user)
        if home:
            state_path = os.path.join(home, STATE_PLIST)
            try:
                state = read_plist(state_path) or {}
            except (OSError, ValueError) as e:
                errors.append(f"unable to read {state_path}: {e}")
        else:
            errors.append(f"unable to determine home directory for {console_user}")
    state_found = state_path is not None and os.path.isfile(state_path)

    def _state_value(key: str) -> str | None:
        value = state.get(key)
        return value if isinstance(value, str) and value else None

    return KerberosDiagnosis(
        realm=realm,
        settings=read_kerberos_settings(paths, verbose),
        ldap_servers=servers,
        tickets_present=klist is not None,
        ticket_principal=principal,
        console_user=console_user,
        state_path=state_path,
        state_found=state_found,
        user_short_name=_state_value("UserShortName"),
        custom_short_name=_state_value("CustomShortName"),
        errors=tuple(errors),
    )
