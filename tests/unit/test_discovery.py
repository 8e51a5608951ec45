"""Tests for the post-setup verification (discovery + test user login)."""
import requests

from oidc_setup.core.keycloak import KeycloakClient
from oidc_setup.core.results import FailureKind
from oidc_setup.core.sequencer import SetupSequencer
from tests.conftest import DISCOVERY_URL, ISSUER, REALM_TOKEN_URL

DISCOVERY = {
    "issuer": ISSUER,
    "authorization_endpoint": f"{ISSUER}/protocol/openid-connect/auth",
    "token_endpoint": REALM_TOKEN_URL,
}


def verify(config, session):
    return SetupSequencer(config, client=KeycloakClient(config.admin_base, session=session)).verify()


def test_verify_success(config, fake_session, capsys):
    fake_session.route("GET", DISCOVERY_URL, payload=DISCOVERY)
    fake_session.route("POST", REALM_TOKEN_URL, payload={"access_token": "user-token"})

    report = verify(config, fake_session)

    assert report.succeeded
    assert report.steps == ["discovery", "login"]
    login = fake_session.calls[-1]
    assert login.data["grant_type"] == "password"
    assert login.data["client_id"] == "oauth-oidc-client"
    assert login.data["client_secret"] == "your-client-secret-change-this"
    assert login.data["username"] == "testuser"
    assert "[verify] OK login" in capsys.readouterr().out


def test_verify_missing_realm(config, fake_session):
    fake_session.route("GET", DISCOVERY_URL, 404, payload={"error": "Realm does not exist"})

    report = verify(config, fake_session)

    assert report.steps == ["discovery"]
    assert report.failed_step.status_code == 404


def test_verify_issuer_mismatch(config, fake_session):
    fake_session.route("GET", DISCOVERY_URL, payload=dict(DISCOVERY, issuer="http://proxy/realms/oauth-oidc-realm"))

    report = verify(config, fake_session)

    assert report.failed_step.failure_kind is FailureKind.MALFORMED
    assert "issuer mismatch" in report.failed_step.detail


def test_verify_incomplete_discovery_document(config, fake_session):
    fake_session.route("GET", DISCOVERY_URL, payload={"issuer": ISSUER})

    report = verify(config, fake_session)

    assert "token_endpoint" in report.failed_step.detail


def test_verify_login_rejected(config, fake_session):
    fake_session.route("GET", DISCOVERY_URL, payload=DISCOVERY)
    fake_session.route("POST", REALM_TOKEN_URL, 401, payload={"error": "unauthorized_client"})

    report = verify(config, fake_session)

    assert report.failed_step.step == "login"
    assert report.failed_step.failure_kind is FailureKind.HTTP
    assert report.failed_step.status_code == 401


def test_verify_unreachable(config, fake_session):
    fake_session.route("GET", DISCOVERY_URL, exc=requests.ConnectionError("refused"))

    report = verify(config, fake_session)

    assert report.failed_step.failure_kind is FailureKind.TRANSPORT


def test_verify_non_string_issuer(config, fake_session):
    fake_session.route("GET", DISCOVERY_URL, payload=dict(DISCOVERY, issuer=["not", "a", "string"]))

    report = verify(config, fake_session)

    assert report.steps == ["discovery"]
    assert report.failed_step.failure_kind is FailureKind.MALFORMED
    assert "issuer" in report.failed_step.detail
