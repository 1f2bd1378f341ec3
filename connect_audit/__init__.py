"""
connect-audit - Jamf Connect installation diagnostics.

Core Modules:
- Detection: Bundle version probing, generation classification
- Reconciliation: Primary installation selection and leftover detection
- Reporting: App status report with service, auth chain and Kerberos checks
- Troubleshooting: Authorization database mechanisms, Kerberos short names
- Configuration: License validation, profile key audit, user analysis
"""

__version__ = "1.7.1"
__author__ = "connect-audit Contributors"

VERSION = __version__

# Detection
from .versions import THRESHOLD_VERSION, compare_versions, is_greater_than
from .detection import (
    Generation,
    ProbeResult,
    ProbeStatus,
    classify,
    read_bundle_version,
)
from .paths import InstallPaths

# Reconciliation
from .reconcile import (
    ComponentKind,
    InstallCandidate,
    Location,
    ResolvedStatus,
    resolve_login_window,
    resolve_login_window_status,
    resolve_menu_bar,
    resolve_menu_bar_status,
)

# Reporting
from .environment import OSStatus, check_os_version, is_root
from .system_checks import AuthChainStatus, KerberosStatus, ServiceStatus, parse_login_mechanisms
from .kerberos import KerberosDiagnosis, diagnose_kerberos
from .report import DiagnosticReport, assemble_report

# Configuration
from .config import Config, load_config, load_config_file, validate_config
from .license import LicenseResult, LicenseState, evaluate_license
from .profile_keys import ProfileAudit, audit_login_profile, audit_menu_profile
from .users import ConnectAttributes, UserAnalysis, analyze_users, read_connect_attributes

# Logging configuration
from .logging_config import get_logger, setup_logging

__all__ = [
    # Version
    "__version__",
    "VERSION",
    # Detection
    "THRESHOLD_VERSION",
    "compare_versions",
    "is_greater_than",
    "Generation",
    "ProbeResult",
    "ProbeStatus",
    "classify",
    "read_bundle_version",
    "InstallPaths",
    # Reconciliation
    "ComponentKind",
    "InstallCandidate",
    "Location",
    "ResolvedStatus",
    "resolve_login_window",
    "resolve_login_window_status",
    "resolve_menu_bar",
    "resolve_menu_bar_status",
    # Reporting
    "OSStatus",
    "check_os_version",
    "is_root",
    "AuthChainStatus",
    "KerberosStatus",
    "ServiceStatus",
    "parse_login_mechanisms",
    "KerberosDiagnosis",
    "diagnose_kerberos",
    "DiagnosticReport",
    "assemble_report",
    # Configuration
    "Config",
    "load_config",
    "load_config_file",
    "validate_config",
    "LicenseResult",
    "LicenseState",
    "evaluate_license",
    "ProfileAudit",
    "audit_login_profile",
    "audit_menu_profile",
    "ConnectAttributes",
    "UserAnalysis",
    "analyze_users",
    "read_connect_attributes",
    # Logging
    "setup_logging",
    "get_logger",
]
