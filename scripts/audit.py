"""Audit trail for Keycloak setup runs (one signed JSON line per step)."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import os
import sys
from pathlib import Path
from typing import Any

from oidc_setup.core.results import SetupReport, StepResult

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "setup-events.jsonl"


def audit_enabled() -> bool:
    return os.environ.get("SETUP_AUDIT_ENABLED", "true").lower() == "true"


def _get_signing_key() -> bytes:
    """Get the audit signing key from the environment (empty means unsigned)."""
    key_file = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
    if key_file and Path(key_file).exists():
        try:
            return Path(key_file).read_text(encoding="utf-8").strip().encode("utf-8")
        except (OSError, UnicodeDecodeError):
            pass
    return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")


def _ensure_audit_dir() -> None:
    """Create audit directory with restricted permissions."""
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_setup_event(
    command: str,
    result: StepResult,
    *,
    realm: str,
    keycloak_url: str,
    operator: str = "cli",
) -> None:
    """Append one step result to the audit trail with timestamp and signature.

    Args:
        command: CLI command that ran the step (setup, verify)
        result: Step outcome
        realm: Target realm
        keycloak_url: Keycloak base URL the step talked to
        operator: Who ran the command
    """
    _ensure_audit_dir()

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "command": command,
        "step": result.step,
        "outcome": result.outcome.value,
        "success": result.ok,
        "realm": realm,
        "keycloak_url": keycloak_url,
        "operator": operator,
        "details": {
            "detail": result.detail,
            "status_code": result.status_code,
            "failure_kind": result.failure_kind.value if result.failure_kind else None,
        },
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_report(
    command: str,
    report: SetupReport,
    *,
    realm: str,
    keycloak_url: str,
    operator: str = "cli",
) -> bool:
    """Log every result of a report; audit failures never change the run outcome.

    Returns:
        True if all events were written, False if logging failed
    """
    try:
        for result in report.results:
            log_setup_event(command, result, realm=realm, keycloak_url=keycloak_url, operator=operator)
        return True
    except Exception as e:
        print(f"[audit] Warning: Failed to log {command} events for realm {realm}: {e}", file=sys.stderr)
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, 0

    total = 0
    valid = 0

    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
                stored_sig = event.pop("signature", "")
                if not stored_sig:
                    continue
                computed_sig = _sign_event(event)
                if hmac.compare_digest(stored_sig, computed_sig):
                    valid += 1
            except (json.JSONDecodeError, KeyError):
                continue

    return total, valid


if __name__ == "__main__":
    total, valid = verify_audit_log()
    print(f"Audit log: {valid}/{total} events with valid signatures")
    sys.exit(0 if total == valid else 1)
