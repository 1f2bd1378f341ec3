"""
Output rendering and formatting.

Turns reports into terminal lines. Every render_* function returns the lines
so callers (and tests) decide where they go; print_lines() writes them.
"""

from __future__ import annotations

import os
import sys
from typing import Iterable

from .detection import Generation
from .kerberos import KERBEROS_KEYS, KerberosDiagnosis
from .license import LicenseResult, LicenseState
from .profile_keys import ProfileAudit
from .reconcile import ComponentKind, ResolvedStatus
from .report import DiagnosticReport
from .system_checks import AuthChainStatus
from .users import UserAnalysis


# Environment options
USE_COLOR = os.environ.get("CONNECT_AUDIT_COLOR", "1") == "1"
USE_EMOJI = os.environ.get("CONNECT_AUDIT_EMOJI", "1") == "1"

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
RED = "\033[31m"
CYAN = "\033[36m"
PURPLE = "\033[35m"
RESET = "\033[0m"

BRANCH = "  └─ "


def colorize(text: str, color: str) -> str:
    """Apply color to text.

    Args:
        text: Text to colorize
        color: ANSI color code

    Returns:
        Colored text or plain text if colors disabled
    """
    if not USE_COLOR or not text:
        return text
    return f"{color}{text}{RESET}"


def mark(ok: bool | None) -> str:
    """Status mark for a check result (None = unknown)."""
    if ok is None:
        return "?" if not USE_EMOJI else "❓"
    if not USE_EMOJI:
        return "✓" if ok else "x"
    return "✅" if ok else "❌"


def describe_generation(kind: ComponentKind, generation: Generation) -> str:
    """Per-component wording of a generation."""
    if kind is ComponentKind.MENU_BAR:
        if generation is Generation.MODERN:
            return "integrated into Self Service+"
        return "standalone Jamf Connect.app"
    if generation is Generation.MODERN:
        return "dedicated JamfConnectLogin.bundle"
    return "bundled with Jamf Connect.app"


def render_component(status: ResolvedStatus) -> list[str]:
    """Status line for one component plus its generation detail."""
    if status.detected:
        color = YELLOW if status.conflicts or status.read_errors else GREEN
    elif status.undetermined:
        color = YELLOW
    else:
        color = RED

    lines = [colorize(status.status_line(), color)]
    if status.generation is not None:
        lines.append(colorize(BRANCH + describe_generation(status.kind, status.generation), CYAN))
    return lines


def _running_text(running: bool | None) -> str:
    if running is None:
        return "Status: Unknown (launchctl unavailable)"
    return "Status: Running" if running else "Status: Not running"


def render_report(report: DiagnosticReport) -> list[str]:
    """Render the app status report."""
    lines = [colorize("=== Check App Status ===", PURPLE)]

    os_color = GREEN if report.os_status.meets_minimum else YELLOW
    lines.append(colorize(str(report.os_status), os_color))
    lines.append("")

    lines.extend(render_component(report.menu_bar))
    lines.extend(render_component(report.login_window))
    lines.append("")

    if report.self_service_version:
        lines.append(f"Self Service+ is installed. Version: {report.self_service_version}")
    else:
        lines.append("Self Service+ is NOT installed.")

    if report.connect_app_present:
        if report.connect_app_version:
            lines.append(f"Jamf Connect.app is present. Version: {report.connect_app_version}")
        else:
            lines.append("Jamf Connect.app is present but version could not be determined.")
    else:
        lines.append("Jamf Connect.app is NOT present in /Applications.")
    lines.append("")

    lines.append(f"{mark(report.pam_module_present)} PAM module (pam_saml.so.2) is "
                 f"{'present' if report.pam_module_present else 'NOT present'}.")

    agent = report.launch_agent
    if agent.installed:
        lines.append(f"{mark(True)} Jamf Connect LaunchAgent is installed.")
        lines.append(BRANCH + _running_text(agent.running))
    else:
        lines.append(f"{mark(False)} Jamf Connect LaunchAgent is NOT installed.")

    daemon = report.daemon
    if daemon is not None:
        lines.append(f"{mark(True)} Jamf Connect Daemon ({daemon.variant}) is present.")
        lines.append(BRANCH + _running_text(daemon.running))
    else:
        lines.append(f"{mark(False)} Jamf Connect Daemon is NOT present.")
    lines.append("")

    auth = report.auth_chain
    if not auth.authchanger_present:
        lines.append("Login Window Status: authchanger tool not found.")
    elif auth.enabled is None:
        lines.append("Login Window Status: unable to query authchanger.")
    elif auth.enabled:
        lines.append(colorize("Login Window Status: Jamf Connect login window is ENABLED.", GREEN))
    else:
        lines.append(colorize("Login Window Status: Jamf Connect login window is DISABLED.", YELLOW))

    kerberos = report.kerberos
    if kerberos.configured:
        lines.append(f"Kerberos realm configured: {kerberos.realm}")
        if kerberos.has_tickets:
            lines.append(BRANCH + f"Status: Active tickets present ({kerberos.ticket_count} ticket(s))")
        else:
            lines.append(BRANCH + "Status: No active tickets")
    else:
        lines.append("Kerberos: Not configured")

    return lines


def render_license(result: LicenseResult) -> list[str]:
    """Render license validation output."""
    lines = [colorize("=== Validate License ===", PURPLE)]

    if result.state in (LicenseState.NO_PROFILE, LicenseState.NO_LICENSE):
        lines.append(colorize(result.message, YELLOW))
        lines.append(colorize("Note: Jamf Connect runs in trial mode without a license "
                              "(30 days from release date).", CYAN))
        return lines
    if result.state is LicenseState.INVALID:
        lines.append(colorize(result.message, RED))
        return lines
    if result.state is LicenseState.UNKNOWN_EXPIRY:
        lines.append(colorize(result.message, YELLOW))
        return lines

    state_color = {
        LicenseState.ACTIVE: GREEN,
        LicenseState.GRACE_PERIOD: YELLOW,
        LicenseState.EXPIRED: RED,
    }[result.state]

    lines.append("Jamf Connect License found.")
    lines.append(f"Status: {colorize(result.state.value, state_color)}")
    lines.append(f"Issued On: {result.issued.isoformat() if result.issued else ''}")
    lines.append(f"Licensed To: {result.email or ''}")
    lines.append(f"Expires On: {result.expires.isoformat() if result.expires else ''}")
    lines.append(f"Client Limit: {result.clients or ''}")
    lines.append(f"Days Remaining: {result.days_remaining}")

    if result.state is LicenseState.GRACE_PERIOD:
        lines.append(colorize("License is in grace period (requires Jamf Connect 2.43+). "
                              "Please renew your license soon.", YELLOW))
    elif result.state is LicenseState.EXPIRED:
        lines.append(colorize("License has expired beyond the grace period.", RED))
    return lines


def render_profile_audit(audit: ProfileAudit) -> list[str]:
    """Render a minimum-keys audit of one profile."""
    title = "Menu Bar" if audit.component == "menu_bar" else "Login Window"
    lines = [colorize(f"=== {title} Profile Keys ===", PURPLE)]

    if not audit.found:
        if audit.error:
            lines.append(colorize(f"Unable to read {audit.plist_path}: {audit.error}", RED))
        else:
            lines.append(colorize(f"No {title} configuration found at {audit.plist_path}.", YELLOW))
        return lines

    if audit.idp:
        lines.append(f"Detected Identity Provider: {audit.idp}")
    else:
        lines.append(colorize("Detected Identity Provider: Unknown", YELLOW))
    lines.append("")
    lines.append("Minimum Authentication Settings:")
    for key, value in audit.present.items():
        lines.append(f"{colorize(key + ':', GREEN)} Present (Value: {value})")
    for key in audit.missing:
        lines.append(f"{colorize(key + ':', RED)} Missing")
    return lines


def _progress_bar(percent: int, width: int = 20) -> str:
    filled = percent * width // 100
    return "[" + "=" * filled + "-" * (width - filled) + f"] {percent}%"


def render_user_analysis(analysis: UserAnalysis, detailed: bool = False) -> list[str]:
    """Render the user migration summary, optionally with per-user detail."""
    lines = [
        colorize("=== User Analysis ===", PURPLE),
        f"Total User Accounts:          {analysis.total}",
        colorize(f"Jamf Connect Users:           {len(analysis.connect_users)}", GREEN),
        colorize(f"Unmigrated Users:             {len(analysis.unmigrated_users)}", YELLOW),
        colorize(f"Mobile Accounts (AD):         {len(analysis.mobile_users)}", CYAN),
        "",
        f"Migration Progress: {_progress_bar(analysis.migration_percent)}",
    ]
    if not detailed:
        return lines

    for record in analysis.users:
        attrs = record.attributes
        lines.append("")
        lines.append(f"User: {record.name} (UID {record.uid})")
        if attrs.is_connect_user:
            lines.append(BRANCH + f"Jamf Connect user, IdP: {attrs.idp_type}")
            if attrs.network_user:
                lines.append(BRANCH + f"NetworkUser: {attrs.network_user}")
            if attrs.network_signin:
                lines.append(BRANCH + f"Last network sign-in: {attrs.network_signin}")
        else:
            lines.append(BRANCH + colorize("Not migrated to Jamf Connect", YELLOW))
        if record.is_mobile:
            lines.append(BRANCH + colorize(f"Mobile account (node: {record.mobile_node})", CYAN))
    return lines


def render_auth_db(status: AuthChainStatus, authchanger_path: str, full: bool = False) -> list[str]:
    """Render the authorization database view (mechanisms summary or full output)."""
    lines = [colorize("=== Authorization Database ===", PURPLE)]
    if not status.authchanger_present:
        lines.append(colorize(f"authchanger not found at {authchanger_path}.", RED))
        return lines
    if status.enabled is None:
        lines.append(colorize("Unable to query authchanger.", YELLOW))
        return lines

    if full:
        lines.append("Full Authorization Database:")
        lines.extend(status.output.rstrip("\n").splitlines())
        return lines

    lines.append("Authorization Database Mechanisms Summary:")
    if not status.mechanisms:
        lines.append(colorize("No system.login.console mechanisms found.", YELLOW))
    for mechanism in status.mechanisms:
        lines.append(colorize(mechanism, GREEN) if "jamfconnect" in mechanism.lower() else mechanism)
    return lines


def _setting_lines(settings: dict, indent: str = "") -> list[str]:
    lines = []
    for key in sorted(settings, key=str):
        value = settings[key]
        if isinstance(value, dict):
            lines.append(f"{indent}{key}:")
            lines.extend(_setting_lines(value, indent + "  "))
        elif isinstance(value, list):
            lines.append(f"{indent}{key}: {', '.join(str(item) for item in value)}")
        else:
            lines.append(f"{indent}{key}: {value}")
    return lines


def render_authchanger_config(path: str, settings: dict | None) -> list[str]:
    """Render the managed authchanger configuration."""
    lines = [colorize("=== authchanger Configuration ===", PURPLE)]
    if settings is None:
        lines.append(colorize(f"No authchanger configuration found at {path}.", YELLOW))
        lines.append(colorize("Note: authchanger can be configured via command line or "
                              "configuration profile.", CYAN))
        return lines
    if not settings:
        lines.append(f"{path} contains no settings.")
        return lines
    lines.extend(_setting_lines(settings))
    return lines


def render_kerberos(diagnosis: KerberosDiagnosis, prefs_path: str) -> list[str]:
    """Render the Kerberos troubleshooting checks."""
    lines = [colorize("=== Kerberos Troubleshooting ===", PURPLE)]
    if not diagnosis.configured:
        lines.append(colorize("No Kerberos realm configured in Jamf Connect.", YELLOW))
        lines.append(f"Kerberos configuration not found in: {prefs_path}")
        return lines

    realm = diagnosis.realm
    lines.append(f"Detected Kerberos Realm: {realm}")
    lines.append("")

    reachable = diagnosis.reachable
    if reachable is None:
        lines.append(colorize(f"{mark(None)} Unable to query DNS for {realm} (dig unavailable)", YELLOW))
    elif reachable:
        lines.append(colorize(f"{mark(True)} Domain {realm} is reachable", GREEN))
        lines.append("LDAP Servers:")
        lines.extend(BRANCH + server for server in diagnosis.ldap_servers[:3])
    else:
        lines.append(colorize(f"{mark(False)} Cannot reach domain {realm}", RED))
        lines.append(BRANCH + "Possible causes: not on VPN, DNS misconfigured or no network")
    lines.append("")

    if diagnosis.tickets_present:
        lines.append(colorize(f"{mark(True)} Kerberos tickets found", GREEN))
        if diagnosis.ticket_principal:
            lines.append(BRANCH + f"Principal: {diagnosis.ticket_principal}")
    else:
        lines.append(colorize(f"{mark(False)} No Kerberos tickets found", YELLOW))
        lines.append(BRANCH + "Run kinit to request a ticket manually")
    lines.append("")

    if not diagnosis.console_user:
        lines.append(colorize("No console user detected", YELLOW))
    elif not diagnosis.state_found:
        lines.append(colorize(f"{mark(False)} State plist not found at {diagnosis.state_path}", RED))
    else:
        lines.append(colorize(f"{mark(True)} State plist found", GREEN))
        if diagnosis.user_short_name:
            lines.append(BRANCH + f"UserShortName: {diagnosis.user_short_name}")
        if diagnosis.custom_short_name:
            lines.append(BRANCH + f"CustomShortName: {diagnosis.custom_short_name} (takes precedence)")
        lines.append(f"Jamf Connect will use: {diagnosis.effective_short_name or 'Unknown'}")

    match = diagnosis.short_names_match
    if match:
        lines.append(colorize(f"{mark(True)} Shortnames MATCH - Kerberos should work", GREEN))
    elif match is False:
        lines.append(colorize(f"{mark(False)} SHORTNAME MISMATCH DETECTED", RED))
        lines.append(f"Ticket shortname {diagnosis.ticket_short_name} does not match "
                     f"{diagnosis.effective_short_name}.")
        lines.append(BRANCH + "Add the AskForShortName key to the Kerberos configuration")
        lines.append(BRANCH + f"Or set the ShortName key to: {diagnosis.ticket_short_name}")
        lines.append(BRANCH + f"Or delete CustomShortName and DisplayName from {diagnosis.state_path}")
    lines.append("")

    lines.append("Kerberos Configuration:")
    for key in KERBEROS_KEYS:
        if key in diagnosis.settings:
            lines.append(f"  {colorize(key + ':', GREEN)} {diagnosis.settings[key]}")
        else:
            lines.append(f"  {colorize(key + ':', YELLOW)} Not configured")

    for error in diagnosis.errors:
        lines.append(colorize(f"({error})", YELLOW))
    return lines


def print_lines(lines: Iterable[str], file=None) -> None:
    """Write rendered lines to stdout (or file)."""
    out = file or sys.stdout
    for line in lines:
        print(line, file=out)
