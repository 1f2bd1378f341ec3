"""
Well-known install locations for Jamf Connect components.

Every path the diagnostics read lives here so that a configuration file (or a
test) can relocate them without touching the detection logic.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class InstallPaths:
    """
    File-system locations probed during a diagnostic run.

    Attributes:
        menu_bar_modern: Menu bar agent embedded in Self Service+ (JC 3.0+)
        legacy_app: Standalone Jamf Connect.app Info.plist (JC 2.x, or a
            modern menu bar build left at the old path)
        login_bundle: Dedicated login window plug-in bundle (JC 3.0+)
        self_service_app: Self Service+ application bundle
        connect_app: Standalone Jamf Connect.app bundle
        pam_module: PAM module shipped with the login window
        launch_agent: Menu bar LaunchAgent installed by the package
        daemon_modern: LaunchDaemon used by the modern generation
        daemon_legacy: LaunchDaemon used by the classic generation
        authchanger: authchanger binary that wires the login window into the
            authorization database
        menu_prefs: Managed preferences for the menu bar
        login_prefs: Managed preferences for the login window
        authchanger_prefs: Managed authchanger configuration
    """
    menu_bar_modern: str = "/Applications/Self Service+.app/Contents/MacOS/Jamf Connect.app/Contents/Info.plist"
    legacy_app: str = "/Applications/Jamf Connect.app/Contents/Info.plist"
    login_bundle: str = "/Library/Security/SecurityAgentPlugins/JamfConnectLogin.bundle/Contents/Info.plist"
    self_service_app: str = "/Applications/Self Service+.app"
    connect_app: str = "/Applications/Jamf Connect.app"
    pam_module: str = "/usr/local/lib/pam/pam_saml.so.2"
    launch_agent: str = "/Library/LaunchAgents/com.jamf.connect.plist"
    daemon_modern: str = "/Library/LaunchDaemons/com.jamf.connect.daemon.ssp.plist"
    daemon_legacy: str = "/Library/LaunchDaemons/com.jamf.connect.daemon.plist"
    authchanger: str = "/usr/local/bin/authchanger"
    menu_prefs: str = "/Library/Managed Preferences/com.jamf.connect.plist"
    login_prefs: str = "/Library/Managed Preferences/com.jamf.connect.login.plist"
    authchanger_prefs: str = "/Library/Managed Preferences/com.jamf.connect.authchanger.plist"

    @staticmethod
    def field_names() -> tuple[str, ...]:
        """Names accepted as path overrides."""
        return tuple(f.name for f in dataclasses.fields(InstallPaths))

    @staticmethod
    def from_dict(data: dict[str, Any]) -> InstallPaths:
        """
        Create InstallPaths with overrides applied.

        Unknown keys are ignored here; validate_config() reports them.
        """
        known = set(InstallPaths.field_names())
        overrides = {k: str(v) for k, v in data.items() if k in known and v}
        return InstallPaths(**overrides)

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return dataclasses.asdict(self)


# LaunchAgent/LaunchDaemon labels as reported by `launchctl list`
LAUNCH_AGENT_LABEL = "com.jamf.connect"
DAEMON_MODERN_LABEL = "com.jamf.connect.daemon.ssp"
DAEMON_LEGACY_LABEL = "com.jamf.connect.daemon"
