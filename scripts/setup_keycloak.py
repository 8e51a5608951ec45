"""Configure a Keycloak instance for the OAuth2/OIDC example application.

Creates the realm, the confidential OIDC client and a test user, then prints
what the application needs to be configured with. Re-running is safe:
resources that already exist are left as they are.

This module serves as a CLI wrapper around oidc_setup.core services.
"""
from __future__ import annotations
import argparse
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from oidc_setup.config import SetupConfig, load_settings
from oidc_setup.core.keycloak.exceptions import ConfigurationError
from oidc_setup.core.sequencer import SetupSequencer
from oidc_setup.core.summary import render_failure, render_summary
from scripts import audit


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Keycloak OAuth/OIDC setup helper")
    parser.add_argument("--kc-url", dest="keycloak_url", help="Keycloak base URL (env KEYCLOAK_URL)")
    parser.add_argument("--context-path", dest="context_path",
                        help="Keycloak context path, '/auth' for legacy distributions, '' for Quarkus")
    parser.add_argument("--admin-user", dest="admin_username")
    parser.add_argument("--admin-pass", dest="admin_password")
    parser.add_argument("--realm", dest="realm_name")
    parser.add_argument("--client-id", dest="client_id")
    parser.add_argument("--client-secret", dest="client_secret")
    parser.add_argument("--redirect-uri", dest="redirect_uris", action="append",
                        help="Valid redirect URI (repeatable)")
    parser.add_argument("--web-origin", dest="web_origins", action="append",
                        help="Allowed web origin (repeatable; default: origins of the redirect URIs)")
    parser.add_argument("--timeout", dest="request_timeout", type=float)
    parser.add_argument("--no-audit", action="store_true", help="Do not write the audit trail")
    parser.add_argument("--operator", default="cli",
                        help="Operator identifier for audit logs (default: cli)")

    sub = parser.add_subparsers(dest="cmd")

    setup = sub.add_parser("setup", help="Create realm, client and test user (default)")
    setup.add_argument("--skip-user", action="store_true", help="Do not create the test user")

    sub.add_parser("verify", help="Check discovery and log the test user in")
    sub.add_parser("show-config", help="Print the effective configuration with secrets masked")
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    names = (
        "keycloak_url", "context_path", "admin_username", "admin_password", "realm_name",
        "client_id", "client_secret", "redirect_uris", "web_origins", "request_timeout",
    )
    overrides = {name: getattr(args, name) for name in names}
    if getattr(args, "skip_user", False):
        overrides["create_test_user"] = False
    return overrides


def _audit(args: argparse.Namespace, config: SetupConfig, report) -> None:
    if args.no_audit or not audit.audit_enabled():
        return
    audit.safe_log_report(
        args.cmd,
        report,
        realm=config.realm_name,
        keycloak_url=config.admin_base,
        operator=args.operator,
    )


def run_setup(args: argparse.Namespace, config: SetupConfig) -> int:
    print("🚀 Setting up Keycloak...")
    with SetupSequencer(config) as sequencer:
        report = sequencer.run()
    _audit(args, config, report)
    if not report.succeeded:
        print(render_failure(report), file=sys.stderr)
        return 1
    print(render_summary(config, report))
    return 0


def run_verify(args: argparse.Namespace, config: SetupConfig) -> int:
    with SetupSequencer(config) as sequencer:
        report = sequencer.verify()
    _audit(args, config, report)
    if not report.succeeded:
        print(f"[verify] FAIL {render_failure(report)}", file=sys.stderr)
        return 1
    print(f"\n✅ Realm '{config.realm_name}' is ready for client '{config.client_id}'.")
    return 0


def show_config(config: SetupConfig) -> int:
    for name, value in config.masked().items():
        if isinstance(value, list):
            value = ", ".join(value)
        print(f"{name}: {value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.cmd:
        args.cmd = "setup"

    try:
        config = load_settings(_overrides(args))
    except ConfigurationError as e:
        print(f"[settings] Error: {e}", file=sys.stderr)
        return 2

    if args.cmd == "setup":
        return run_setup(args, config)
    if args.cmd == "verify":
        return run_verify(args, config)
    if args.cmd == "show-config":
        return show_config(config)
    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
