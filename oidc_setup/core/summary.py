"""Operator-facing text printed after a setup run."""
from __future__ import annotations

from oidc_setup.config.settings import SetupConfig

from .results import SetupReport, StepOutcome


def render_summary(config: SetupConfig, report: SetupReport | None = None) -> str:
    """Configuration summary and manual next steps for a successful run."""
    lines = [
        "",
        "🎉 Keycloak setup completed successfully!",
        "",
        "📋 Configuration Summary:",
        f"   Realm: {config.realm_name}",
        f"   Client ID: {config.client_id}",
        f"   Client Secret: {config.client_secret}",
        f"   Redirect URI: {config.redirect_uri}",
    ]
    user_result = report.get("user") if report else None
    if config.create_test_user and not (user_result and user_result.outcome is StepOutcome.SKIPPED):
        lines.append(f"   Test User: {config.test_username} / {config.test_password}")
    lines.append(f"   Issuer URL: {config.issuer_url}")

    if report:
        existing = [r.step for r in report.results if r.outcome is StepOutcome.ALREADY_EXISTS]
        if existing:
            lines.append(f"   Already present (left unchanged): {', '.join(existing)}")

    lines += [
        "",
        "🔧 Next steps:",
        "   1. Update the application configuration (e.g. application.yml) with the client secret above",
        "   2. Restart the application",
        "   3. Test login with Keycloak (or run the 'verify' command)",
    ]
    return "\n".join(lines)


def render_failure(report: SetupReport) -> str:
    """One-line error for the step that stopped the run."""
    failed = report.failed_step
    if failed is None:
        return ""
    kind = failed.failure_kind.value if failed.failure_kind else "unknown"
    status = f" [{failed.status_code}]" if failed.status_code else ""
    return f"❌ Error during {failed.step} step ({kind}){status}: {failed.detail}"
