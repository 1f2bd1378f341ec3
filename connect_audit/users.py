"""
Local user account analysis.

Reports which local accounts are linked to an identity provider by Jamf
Connect and which are still mobile (AD-bound) accounts, using dscl. Each
query returns a plain record; nothing is kept in shared state.
"""

from __future__ import annotations

import pwd
from dataclasses import dataclass

from .common import command_output, vlog


# System accounts to exclude from user checks
SYSTEM_ACCOUNTS = ("jamfManagement", "_mbsetupuser", "root", "daemon", "nobody")

MIN_USER_UID = 500


@dataclass(frozen=True)
class ConnectAttributes:
    """
    Directory attributes Jamf Connect writes when it links an account.

    Attributes:
        network_user: NetworkUser (IdP username)
        oidc_provider: OIDCProvider
        azure_user: AzureUser
        okta_user: OktaUser
        network_signin: NetworkSignIn (last network sign-in timestamp)
    """
    network_user: str | None = None
    oidc_provider: str | None = None
    azure_user: str | None = None
    okta_user: str | None = None
    network_signin: str | None = None

    @property
    def is_connect_user(self) -> bool:
        return any((self.network_user, self.oidc_provider, self.azure_user, self.okta_user))

    @property
    def idp_type(self) -> str:
        if self.azure_user:
            return "Azure/Entra"
        if self.okta_user:
            return "Okta"
        if self.oidc_provider:
            return self.oidc_provider
        return "Unknown"

    def to_dict(self) -> dict:
        return {
            "network_user": self.network_user,
            "oidc_provider": self.oidc_provider,
            "azure_user": self.azure_user,
            "okta_user": self.okta_user,
            "network_signin": self.network_signin,
        }


@dataclass(frozen=True)
class UserRecord:
    """Analysis of one local account."""
    name: str
    uid: int
    attributes: ConnectAttributes
    mobile_node: str | None = None

    @property
    def is_mobile(self) -> bool:
        return bool(self.mobile_node)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "uid": self.uid,
            "connect_user": self.attributes.is_connect_user,
            "idp_type": self.attributes.idp_type,
            "mobile_node": self.mobile_node,
            "attributes": self.attributes.to_dict(),
        }


@dataclass(frozen=True)
class UserAnalysis:
    """Summary of all local accounts."""
    users: tuple[UserRecord, ...]

    @property
    def total(self) -> int:
        return len(self.users)

    @property
    def connect_users(self) -> tuple[UserRecord, ...]:
        return tuple(u for u in self.users if u.attributes.is_connect_user)

    @property
    def unmigrated_users(self) -> tuple[UserRecord, ...]:
        return tuple(u for u in self.users if not u.attributes.is_connect_user)

    @property
    def mobile_users(self) -> tuple[UserRecord, ...]:
        return tuple(u for u in self.users if u.is_mobile)

    @property
    def migration_percent(self) -> int:
        if not self.users:
            return 0
        return len(self.connect_users) * 100 // self.total

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "connect_users": len(self.connect_users),
            "unmigrated_users": len(self.unmigrated_users),
            "mobile_users": len(self.mobile_users),
            "migration_percent": self.migration_percent,
            "users": [u.to_dict() for u in self.users],
        }


def is_system_account(user: str) -> bool:
    return user in SYSTEM_ACCOUNTS


def read_user_attribute(user: str, attribute: str, timeout: float | None = None) -> str | None:
    """
    Read one attribute of a local user record.

    Returns:
        First value of the attribute, or None if unset or unreadable
    """
    output = command_output(["dscl", ".", "-read", f"/Users/{user}", attribute], timeout=timeout)
    if not output:
        return None

    prefix = f"{attribute}:"
    lines = output.splitlines()
    for idx, line in enumerate(lines):
        if not line.startswith(prefix):
            continue
        value = line[len(prefix):].strip()
        if value:
            return value.split()[0]
        # Long values are printed on the following line
        if idx + 1 < len(lines) and lines[idx + 1].strip():
            return lines[idx + 1].strip()
    return None


def read_connect_attributes(user: str, timeout: float | None = None) -> ConnectAttributes:
    """Collect the Jamf Connect directory attributes of a user."""
    return ConnectAttributes(
        network_user=read_user_attribute(user, "NetworkUser", timeout),
        oidc_provider=read_user_attribute(user, "OIDCProvider", timeout),
        azure_user=read_user_attribute(user, "AzureUser", timeout),
        okta_user=read_user_attribute(user, "OktaUser", timeout),
        network_signin=read_user_attribute(user, "NetworkSignIn", timeout),
    )


def get_mobile_account_node(user: str, timeout: float | None = None) -> str | None:
    """OriginalNodeName of a mobile (AD-bound) account, or None."""
    return read_user_attribute(user, "OriginalNodeName", timeout)


def get_user_aliases(user: str, timeout: float | None = None) -> tuple[str, ...]:
    """All RecordName aliases of a user."""
    output = command_output(["dscl", ".", "-read", f"/Users/{user}", "RecordName"], timeout=timeout)
    if not output:
        return ()
    aliases: list[str] = []
    for line in output.splitlines():
        if line.startswith("RecordName:"):
            line = line[len("RecordName:"):]
        aliases.extend(line.split())
    return tuple(aliases)


def list_password_users(timeout: float | None = None) -> list[str]:
    """Local users that have a password (service accounts show '*')."""
    output = command_output(["dscl", ".", "list", "/Users", "Password"], timeout=timeout)
    if not output:
        return []

    users = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[1] != "*":
            users.append(parts[0])
    return users


def _uid(user: str) -> int | None:
    try:
        return pwd.getpwnam(user).pw_uid
    except KeyError:
        return None


def analyze_user(user: str, timeout: float | None = None) -> UserRecord | None:
    """
    Analyze one account.

    Returns:
        UserRecord, or None for unknown accounts
    """
    uid = _uid(user)
    if uid is None:
        return None
    return UserRecord(
        name=user,
        uid=uid,
        attributes=read_connect_attributes(user, timeout),
        mobile_node=get_mobile_account_node(user, timeout),
    )


def analyze_users(timeout: float | None = None, verbose: bool = False) -> UserAnalysis:
    """
    Analyze every local login account.

    System accounts and accounts with UID below 500 are skipped.
    """
    records = []
    for user in list_password_users(timeout):
        if is_system_account(user):
            continue
        uid = _uid(user)
        if uid is None or uid < MIN_USER_UID:
            continue
        record = UserRecord(
            name=user,
            uid=uid,
            attributes=read_connect_attributes(user, timeout),
            mobile_node=get_mobile_account_node(user, timeout),
        )
        vlog(
            f"{user}: connect_user={record.attributes.is_connect_user} mobile={record.is_mobile}",
            verbose,
        )
        records.append(record)
    return UserAnalysis(users=tuple(records))
