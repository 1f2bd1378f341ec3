"""
License validation for the managed menu bar configuration.

The license is stored as a base64-encoded XML plist under the LicenseFile key
of the menu bar's managed preferences. Jamf Connect 2.43+ keeps working for a
grace period after the expiration date.
"""

from __future__ import annotations

import base64
import binascii
import datetime
import enum
import plistlib
from dataclasses import dataclass
from typing import Any
from xml.parsers.expat import ExpatError

from .common import vlog
from .detection import read_plist


DEFAULT_GRACE_DAYS = 14


class LicenseState(enum.Enum):
    NO_PROFILE = "no_profile"
    NO_LICENSE = "no_license"
    INVALID = "invalid"
    UNKNOWN_EXPIRY = "unknown_expiry"
    ACTIVE = "Active"
    GRACE_PERIOD = "Grace Period"
    EXPIRED = "Expired"


@dataclass(frozen=True)
class LicenseResult:
    """
    Outcome of license validation.

    Attributes:
        state: Overall license state
        message: Human-readable explanation for non-license states
        issued: Issue date
        email: Licensee email
        expires: Expiration date
        clients: Licensed client count
        days_remaining: Days until expiration (negative once expired)
    """
    state: LicenseState
    message: str = ""
    issued: datetime.date | None = None
    email: str | None = None
    expires: datetime.date | None = None
    clients: str | None = None
    days_remaining: int | None = None

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "message": self.message,
            "issued": self.issued.isoformat() if self.issued else None,
            "email": self.email,
            "expires": self.expires.isoformat() if self.expires else None,
            "clients": self.clients,
            "days_remaining": self.days_remaining,
        }


def decode_license(encoded: str | bytes) -> dict[str, Any]:
    """
    Decode a LicenseFile value into its plist dictionary.

    Managed preferences may hand the value over as raw bytes (<data>) or as a
    base64 string.

    Raises:
        ValueError: Value is not valid base64 or not a plist dictionary
    """
    if isinstance(encoded, str):
        try:
            raw = base64.b64decode(encoded.strip(), validate=False)
        except binascii.Error as e:
            raise ValueError(f"LicenseFile is not valid base64: {e}") from e
    else:
        raw = bytes(encoded)
        # <data> values are already decoded; a base64 payload inside still needs one pass
        if not raw.lstrip().startswith((b"<", b"bplist")):
            try:
                raw = base64.b64decode(raw, validate=False)
            except binascii.Error as e:
                raise ValueError(f"LicenseFile is not valid base64: {e}") from e

    if not raw:
        raise ValueError("LicenseFile decoded to an empty document")

    try:
        data = plistlib.loads(raw)
    except (plistlib.InvalidFileException, ExpatError, ValueError) as e:
        raise ValueError(f"Invalid XML format in LicenseFile: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("LicenseFile is not a dictionary")
    return data


def _as_date(value: Any) -> datetime.date | None:
    """Dates arrive as plist <date> values or as 'YYYY-MM-DD ...' strings."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.date.fromisoformat(value.strip().split()[0][:10])
        except ValueError:
            return None
    return None


def license_state(days_remaining: int, grace_days: int = DEFAULT_GRACE_DAYS) -> LicenseState:
    """Active until expiry, then in grace for grace_days, then expired."""
    if days_remaining >= 0:
        return LicenseState.ACTIVE
    if days_remaining >= -grace_days:
        return LicenseState.GRACE_PERIOD
    return LicenseState.EXPIRED


def evaluate_license(
    plist_path: str,
    today: datetime.date | None = None,
    grace_days: int = DEFAULT_GRACE_DAYS,
    verbose: bool = False,
) -> LicenseResult:
    """
    Validate the license embedded in the managed menu bar preferences.

    Args:
        plist_path: Managed preferences plist
        today: Reference date (default: today)
        grace_days: Grace period after expiration
        verbose: Enable verbose logging

    Returns:
        LicenseResult; never raises for missing or malformed licenses
    """
    today = today or datetime.date.today()

    try:
        prefs = read_plist(plist_path)
    except (OSError, ValueError) as e:
        vlog(f"Could not read {plist_path}: {e}", verbose)
        return LicenseResult(LicenseState.INVALID, message=f"Unable to read {plist_path}: {e}")

    if prefs is None:
        return LicenseResult(
            LicenseState.NO_PROFILE,
            message=f"No Jamf Connect managed preferences found at {plist_path}.",
        )

    encoded = prefs.get("LicenseFile")
    if not encoded:
        return LicenseResult(
            LicenseState.NO_LICENSE,
            message=f"No LicenseFile key found in {plist_path}.",
        )

    try:
        license_data = decode_license(encoded)
    except ValueError as e:
        vlog(f"License decode failed: {e}", verbose)
        return LicenseResult(LicenseState.INVALID, message=str(e))

    issued = _as_date(license_data.get("DateIssued"))
    expires = _as_date(license_data.get("ExpirationDate"))
    email = license_data.get("Email")
    clients = license_data.get("NumberOfClients")

    if expires is None:
        return LicenseResult(
            LicenseState.UNKNOWN_EXPIRY,
            message="License found, but expiration date could not be determined.",
            issued=issued,
            email=email,
            clients=str(clients) if clients is not None else None,
        )

    days_remaining = (expires - today).days
    state = license_state(days_remaining, grace_days)
    vlog(f"License expires {expires.isoformat()} ({days_remaining} days): {state.value}", verbose)

    return LicenseResult(
        state,
        issued=issued,
        email=email,
        expires=expires,
        clients=str(clients) if clients is not None else None,
        days_remaining=days_remaining,
    )
