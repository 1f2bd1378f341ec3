#!/usr/bin/env python3
"""
Jamf Connect troubleshooting - installation status and configuration checks.

Usage:
    jcp.py                   # App status report (menu bar, login window, services)
    jcp.py --license         # Validate the license in the managed profile
    jcp.py --keys menu       # Check minimum IdP keys in the menu bar profile
    jcp.py --keys authchanger  # Show the managed authchanger configuration
    jcp.py --authdb [full]   # Login mechanisms from the authorization database
    jcp.py --kerberos        # Kerberos realm, ticket and short name checks
    jcp.py --users           # User migration analysis
    jcp.py --json            # Any of the above as JSON
"""

import argparse
import dataclasses
import json
import sys

from connect_audit.config import Config, load_config, validate_config
from connect_audit.environment import is_root
from connect_audit.kerberos import diagnose_kerberos
from connect_audit.license import evaluate_license
from connect_audit.logging_config import get_logger, setup_logging
from connect_audit.profile_keys import audit_login_profile, audit_menu_profile
from connect_audit.render import (
    print_lines,
    render_auth_db,
    render_authchanger_config,
    render_kerberos,
    render_license,
    render_profile_audit,
    render_report,
    render_user_analysis,
)
from connect_audit.report import assemble_report
from connect_audit.system_checks import check_auth_chain, read_authchanger_config
from connect_audit.users import UserAnalysis, analyze_user, analyze_users


def _emit(args: argparse.Namespace, payload: dict, lines: list[str]) -> None:
    if args.json:
        print(json.dumps(payload, indent=2, sort_keys=True, default=str))
    else:
        print_lines(lines)


def cmd_status(args: argparse.Namespace, config: Config) -> int:
    """App status report."""
    report = assemble_report(config, verbose=args.verbose)
    _emit(args, report.to_dict(), render_report(report))
    return 0


def cmd_license(args: argparse.Namespace, config: Config) -> int:
    """License validation."""
    result = evaluate_license(
        config.install_paths.menu_prefs,
        grace_days=config.license_grace_days,
        verbose=args.verbose,
    )
    _emit(args, result.to_dict(), render_license(result))
    return 0


def cmd_keys(args: argparse.Namespace, config: Config) -> int:
    """Minimum IdP key audit of a managed profile, or the authchanger configuration."""
    paths = config.install_paths
    if args.keys == "authchanger":
        try:
            settings = read_authchanger_config(paths, verbose=args.verbose)
        except ValueError as e:
            print(f"Unable to read authchanger configuration: {e}", file=sys.stderr)
            return 1
        payload = {"path": paths.authchanger_prefs, "found": settings is not None, "settings": settings}
        _emit(args, payload, render_authchanger_config(paths.authchanger_prefs, settings))
        return 0
    if args.keys == "menu":
        audit = audit_menu_profile(paths.menu_prefs, verbose=args.verbose)
    else:
        audit = audit_login_profile(paths.login_prefs, verbose=args.verbose)
    _emit(args, audit.to_dict(), render_profile_audit(audit))
    return 0


def cmd_authdb(args: argparse.Namespace, config: Config) -> int:
    """Authorization database view: login mechanisms summary or full output."""
    paths = config.install_paths
    status = check_auth_chain(paths, timeout=config.timeout_seconds, verbose=args.verbose)
    full = args.authdb == "full"
    payload = status.to_dict()
    if full:
        payload["output"] = status.output
    _emit(args, payload, render_auth_db(status, paths.authchanger, full=full))
    return 0 if status.enabled is not None else 1


def cmd_kerberos(args: argparse.Namespace, config: Config) -> int:
    """Kerberos troubleshooting checks."""
    paths = config.install_paths
    diagnosis = diagnose_kerberos(paths, timeout=config.timeout_seconds, verbose=args.verbose)
    _emit(args, diagnosis.to_dict(), render_kerberos(diagnosis, paths.menu_prefs))
    return 0


def cmd_users(args: argparse.Namespace, config: Config) -> int:
    """User migration analysis (all users, or one with --user)."""
    if args.user:
        record = analyze_user(args.user, timeout=config.timeout_seconds)
        if record is None:
            print(f"Unknown user: {args.user}", file=sys.stderr)
            return 1
        analysis = UserAnalysis(users=(record,))
    else:
        analysis = analyze_users(timeout=config.timeout_seconds, verbose=args.verbose)
    _emit(args, analysis.to_dict(), render_user_analysis(analysis, detailed=args.detailed or bool(args.user)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Jamf Connect troubleshooting - installation status and configuration checks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--license",
        action="store_true",
        help="Validate the license in the managed menu bar profile",
    )
    parser.add_argument(
        "--keys",
        choices=("menu", "login", "authchanger"),
        help="Check minimum identity provider keys in a managed profile, "
             "or show the authchanger configuration",
    )
    parser.add_argument(
        "--authdb",
        nargs="?",
        const="summary",
        choices=("summary", "full"),
        help="Show the login mechanisms in the authorization database (default: summary)",
    )
    parser.add_argument(
        "--kerberos",
        action="store_true",
        help="Check Kerberos realm reachability, tickets and short names",
    )
    parser.add_argument(
        "--users",
        action="store_true",
        help="Analyze local users (Jamf Connect migration, mobile accounts)",
    )
    parser.add_argument(
        "--user",
        metavar="NAME",
        help="Analyze a single local user",
    )
    parser.add_argument(
        "--detailed",
        action="store_true",
        help="Show per-user detail in user analysis",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Configuration file (YAML or JSON)",
    )
    parser.add_argument(
        "--threshold",
        metavar="VERSION",
        help="Override the classic/modern threshold version",
    )
    parser.add_argument(
        "--log-file",
        metavar="PATH",
        help="Also write debug logs to this file",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    try:
        return _run(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


def _run(args: argparse.Namespace) -> int:
    setup_logging(verbose=args.verbose, log_file=args.log_file)
    logger = get_logger()

    try:
        config = load_config(args.config, verbose=args.verbose)
        if args.threshold:
            config = dataclasses.replace(config, threshold_version=args.threshold)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    for warning in validate_config(config):
        logger.warning(warning)

    if not is_root():
        logger.warning("Not running as root; some checks may report partial results.")

    if args.license:
        return cmd_license(args, config)
    if args.keys:
        return cmd_keys(args, config)
    if args.authdb:
        return cmd_authdb(args, config)
    if args.kerberos:
        return cmd_kerberos(args, config)
    if args.users or args.user:
        return cmd_users(args, config)
    return cmd_status(args, config)


if __name__ == "__main__":
    sys.exit(main())
