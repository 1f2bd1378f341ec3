"""
App status report assembly.

Combines the resolved menu bar and login window installations with the
auxiliary service, authorization and Kerberos checks into one report.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .config import Config
from .environment import OSStatus, check_os_version
from .reconcile import Reader, ResolvedStatus, resolve_login_window, resolve_menu_bar
from .system_checks import (
    AuthChainStatus,
    KerberosStatus,
    ServiceStatus,
    check_auth_chain,
    check_daemon,
    check_kerberos,
    check_launch_agent,
    get_app_version,
    get_launchctl_labels,
)


@dataclass(frozen=True)
class DiagnosticReport:
    """
    Complete app status report.

    Attributes:
        menu_bar: Resolved menu bar installation
        login_window: Resolved login window installation
        os_status: macOS version against the supported minimum
        self_service_version: Self Service+ version (None if not installed)
        connect_app_present: Whether Jamf Connect.app exists
        connect_app_version: Jamf Connect.app version, if readable
        pam_module_present: Whether the PAM module is installed
        launch_agent: Menu bar LaunchAgent state
        daemon: LaunchDaemon state (None if no daemon is installed)
        auth_chain: Login window wiring in the authorization database
        kerberos: Kerberos realm and ticket state
    """
    menu_bar: ResolvedStatus
    login_window: ResolvedStatus
    os_status: OSStatus
    self_service_version: str | None
    connect_app_present: bool
    connect_app_version: str | None
    pam_module_present: bool
    launch_agent: ServiceStatus
    daemon: ServiceStatus | None
    auth_chain: AuthChainStatus
    kerberos: KerberosStatus

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "menu_bar": self.menu_bar.to_dict(),
            "login_window": self.login_window.to_dict(),
            "os": self.os_status.to_dict(),
            "self_service_version": self.self_service_version,
            "connect_app": {
                "present": self.connect_app_present,
                "version": self.connect_app_version,
            },
            "pam_module_present": self.pam_module_present,
            "launch_agent": self.launch_agent.to_dict(),
            "daemon": self.daemon.to_dict() if self.daemon else None,
            "auth_chain": self.auth_chain.to_dict(),
            "kerberos": self.kerberos.to_dict(),
        }


def assemble_report(
    config: Config | None = None,
    reader: Reader | None = None,
    verbose: bool = False,
) -> DiagnosticReport:
    """
    Run every app status check once and assemble the report.

    Args:
        config: Configuration (default: Config())
        reader: Bundle version probe used by the resolvers
        verbose: Enable verbose logging

    Returns:
        DiagnosticReport
    """
    config = config or Config()
    paths = config.install_paths
    timeout = config.timeout_seconds

    menu_bar = resolve_menu_bar(paths, config.threshold_version, reader, verbose)
    login_window = resolve_login_window(paths, config.threshold_version, reader, verbose)

    labels = get_launchctl_labels(timeout)

    return DiagnosticReport(
        menu_bar=menu_bar,
        login_window=login_window,
        os_status=check_os_version(config.min_os_version, timeout, verbose),
        self_service_version=get_app_version(paths.self_service_app, verbose),
        connect_app_present=os.path.isdir(paths.connect_app),
        connect_app_version=get_app_version(paths.connect_app, verbose),
        pam_module_present=os.path.isfile(paths.pam_module),
        launch_agent=check_launch_agent(paths, labels, verbose),
        daemon=check_daemon(paths, labels, verbose),
        auth_chain=check_auth_chain(paths, timeout, verbose),
        kerberos=check_kerberos(paths, timeout, verbose),
    )
