"""
Minimum authentication settings per identity provider.

Checks whether the managed menu bar and login window profiles carry the keys
each identity provider needs. Menu bar settings live under the IdPSettings
dictionary; login window settings are top-level keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .common import vlog
from .detection import read_plist


MENU_KEYS_BY_IDP: dict[str, tuple[str, ...]] = {
    "Microsoft": ("Provider", "ROPGID", "TenantID"),
    "Entra": ("Provider", "ROPGID", "TenantID"),
    "EntraID": ("Provider", "ROPGID", "TenantID"),
    "Google": ("Provider",),
    "GoogleID": ("Provider",),
    "IBM": ("Provider", "ROPGID", "TenantID"),
    "IBMCI": ("Provider", "ROPGID", "TenantID"),
    "Okta": ("Provider", "OktaAuthServer"),
    "OktaIdentityEngine": ("Provider", "TenantID", "OIDCClientID", "ROPGID"),
    "Okta OpenID Connect": ("Provider", "TenantID", "ROPGID"),
    "Okta-OIDC": ("Provider", "TenantID", "ROPGID"),
    "OneLogin": ("Provider", "ROPGID", "TenantID", "SuccessCodes"),
    "PingFederate": ("Provider", "ROPGID", "DiscoveryURL"),
    "Custom": ("Provider", "ROPGID", "DiscoveryURL"),
}
DEFAULT_MENU_KEYS = ("Provider", "ROPGID", "TenantID")

LOGIN_KEYS_BY_IDP: dict[str, tuple[str, ...]] = {
    "Microsoft": ("OIDCProvider", "OIDCClientID", "OIDCRedirectURI", "OIDCTenant", "OIDCROPGID"),
    "Entra": ("OIDCProvider", "OIDCClientID", "OIDCRedirectURI", "OIDCTenant", "OIDCROPGID"),
    "EntraID": ("OIDCProvider", "OIDCClientID", "OIDCRedirectURI", "OIDCTenant", "OIDCROPGID"),
    "Google": ("OIDCProvider", "OIDCClientID", "OIDCClientSecret", "OIDCRedirectURI"),
    "GoogleID": ("OIDCProvider", "OIDCClientID", "OIDCClientSecret", "OIDCRedirectURI"),
    "IBM": ("OIDCProvider", "OIDCClientID", "OIDCTenant", "OIDCRedirectURI", "OIDCROPGID"),
    "IBMCI": ("OIDCProvider", "OIDCClientID", "OIDCTenant", "OIDCRedirectURI", "OIDCROPGID"),
    "Okta": ("OIDCProvider", "AuthServer"),
    "OktaIdentityEngine": ("OIDCTenant", "OIDCClientID"),
    "Okta OpenID Connect": ("OIDCProvider", "OIDCClientID", "OIDCTenant", "OIDCROPGID"),
    "Okta-OIDC": ("OIDCProvider", "OIDCClientID", "OIDCTenant", "OIDCROPGID"),
    "OneLogin": ("OIDCProvider", "OIDCClientID", "OIDCTenant", "ROPGSuccessCodes", "OIDCRedirectURI", "OIDCROPGID"),
    "PingFederate": ("OIDCProvider", "OIDCClientID", "OIDCDiscoveryURL", "OIDCRedirectURI", "OIDCROPGID"),
    "Custom": ("OIDCProvider", "OIDCClientID", "OIDCRedirectURI", "OIDCDiscoveryURL", "OIDCROPGID"),
}
DEFAULT_LOGIN_KEYS = ("OIDCProvider", "OIDCClientID", "OIDCTenant", "OIDCROPGID")


@dataclass(frozen=True)
class ProfileAudit:
    """
    Result of checking one managed profile.

    Attributes:
        component: "menu_bar" or "login_window"
        plist_path: Managed preferences file
        found: Whether the profile exists and could be read
        idp: Detected identity provider (None if unknown)
        present: Required keys that are set, with their values
        missing: Required keys that are not set
        error: Read failure, if any
    """
    component: str
    plist_path: str
    found: bool
    idp: str | None = None
    present: dict[str, str] = field(default_factory=dict)
    missing: tuple[str, ...] = ()
    error: str | None = None

    @property
    def complete(self) -> bool:
        return self.found and not self.missing

    def to_dict(self) -> dict:
        return {
            "component": self.component,
            "plist_path": self.plist_path,
            "found": self.found,
            "idp": self.idp,
            "present": dict(self.present),
            "missing": list(self.missing),
            "error": self.error,
        }


def min_menu_keys(idp: str | None) -> tuple[str, ...]:
    return MENU_KEYS_BY_IDP.get(idp or "", DEFAULT_MENU_KEYS)


def min_login_keys(idp: str | None) -> tuple[str, ...]:
    return LOGIN_KEYS_BY_IDP.get(idp or "", DEFAULT_LOGIN_KEYS)


def _text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) or None
    return str(value)


def detect_menu_idp(prefs: dict[str, Any]) -> str | None:
    idp_settings = prefs.get("IdPSettings")
    if isinstance(idp_settings, dict):
        return _text(idp_settings.get("Provider"))
    return None


def detect_login_idp(prefs: dict[str, Any]) -> str | None:
    return _text(prefs.get("OIDCProvider"))


def _load(component: str, plist_path: str, verbose: bool) -> dict[str, Any] | ProfileAudit:
    """Managed preferences, or a not-found ProfileAudit when they cannot be used."""
    try:
        prefs = read_plist(plist_path)
    except (OSError, ValueError) as e:
        vlog(f"Unable to read {plist_path}: {e}", verbose)
        return ProfileAudit(component, plist_path, found=False, error=str(e))
    if prefs is None:
        return ProfileAudit(component, plist_path, found=False)
    return prefs


def audit_menu_profile(plist_path: str, verbose: bool = False) -> ProfileAudit:
    """Check the menu bar profile for the keys its identity provider needs."""
    prefs = _load("menu_bar", plist_path, verbose)
    if isinstance(prefs, ProfileAudit):
        return prefs

    idp = detect_menu_idp(prefs)
    idp_settings = prefs.get("IdPSettings")
    idp_settings = idp_settings if isinstance(idp_settings, dict) else {}

    present: dict[str, str] = {}
    missing: list[str] = []
    for key in min_menu_keys(idp):
        value = _text(idp_settings.get(key, prefs.get(key)))
        if value is None:
            missing.append(key)
        else:
            present[key] = value

    vlog(f"Menu bar profile ({idp or 'unknown IdP'}): {len(missing)} missing key(s)", verbose)
    return ProfileAudit("menu_bar", plist_path, found=True, idp=idp, present=present, missing=tuple(missing))


def audit_login_profile(plist_path: str, verbose: bool = False) -> ProfileAudit:
    """Check the login window profile for the keys its identity provider needs."""
    prefs = _load("login_window", plist_path, verbose)
    if isinstance(prefs, ProfileAudit):
        return prefs

    idp = detect_login_idp(prefs)
    present: dict[str, str] = {}
    missing: list[str] = []
    for key in min_login_keys(idp):
        value = _text(prefs.get(key))
        if value is None:
            missing.append(key)
        else:
            present[key] = value

    vlog(f"Login window profile ({idp or 'unknown IdP'}): {len(missing)} missing key(s)", verbose)
    return ProfileAudit("login_window", plist_path, found=True, idp=idp, present=present, missing=tuple(missing))
