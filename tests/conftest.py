"""Pytest shared fixtures: a recording fake HTTP session and clean settings."""
import json
import pathlib
import sys
from types import SimpleNamespace

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from oidc_setup.config.settings import SetupConfig

ENV_VARS = (
    "KEYCLOAK_URL", "KEYCLOAK_CONTEXT_PATH", "KEYCLOAK_ADMIN_REALM", "KEYCLOAK_ADMIN_CLIENT_ID",
    "KEYCLOAK_ADMIN", "KEYCLOAK_ADMIN_PASSWORD", "KEYCLOAK_REALM", "KEYCLOAK_REALM_DISPLAY_NAME",
    "OIDC_CLIENT_ID", "OIDC_CLIENT_SECRET", "OIDC_REDIRECT_URIS", "OIDC_WEB_ORIGINS",
    "TEST_USER_USERNAME", "TEST_USER_PASSWORD", "TEST_USER_EMAIL", "TEST_USER_FIRST_NAME",
    "TEST_USER_LAST_NAME", "KEYCLOAK_REQUEST_TIMEOUT", "KEYCLOAK_VERIFY_SSL",
    "SETUP_AUDIT_ENABLED", "AUDIT_LOG_SIGNING_KEY", "AUDIT_LOG_SIGNING_KEY_FILE",
)

BASE = "http://localhost:8081/auth"
TOKEN_URL = f"{BASE}/realms/master/protocol/openid-connect/token"
REALMS_URL = f"{BASE}/admin/realms"
CLIENTS_URL = f"{BASE}/admin/realms/oauth-oidc-realm/clients"
USERS_URL = f"{BASE}/admin/realms/oauth-oidc-realm/users"
ISSUER = f"{BASE}/realms/oauth-oidc-realm"
DISCOVERY_URL = f"{ISSUER}/.well-known/openid-configuration"
REALM_TOKEN_URL = f"{ISSUER}/protocol/openid-connect/token"


class StubResponse:
    def __init__(self, status_code: int = 200, payload=None, url: str = "", text: str | None = None):
        self.status_code = status_code
        self._payload = payload
        self.url = url
        self.reason = "stub"
        if text is not None:
            self.text = text
        else:
            self.text = json.dumps(payload) if payload is not None else ""

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; answers from a route table and records calls.

    Routes map (METHOD, url) to a StubResponse or an exception instance.
    Unrouted calls fail loudly so tests never reach the network.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.closed = False

    def route(self, method: str, url: str, status_code: int = 200, payload=None, text=None, exc=None):
        self.routes[(method, url)] = exc or StubResponse(status_code, payload, url, text)
        return self

    def request(self, method, url, **kwargs):
        self.calls.append(SimpleNamespace(method=method, url=url, **kwargs))
        answer = self.routes.get((method, url))
        if answer is None:
            raise AssertionError(f"Unexpected HTTP {method} in unit test: {url}")
        if isinstance(answer, Exception):
            raise answer
        return answer

    def close(self):
        self.closed = True

    @property
    def urls(self):
        return [call.url for call in self.calls]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the caller's environment and /run/secrets."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    from oidc_setup.config import settings
    real_path = settings.Path

    def fake_path(target):
        if str(target) == "/run/secrets":
            return tmp_path / "no-secrets"
        return real_path(target)

    monkeypatch.setattr(settings, "Path", fake_path)

    from scripts import audit
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", tmp_path / "audit")
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", tmp_path / "audit" / "setup-events.jsonl")


@pytest.fixture
def config():
    return SetupConfig()


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def fresh_keycloak(fake_session):
    """Keycloak with nothing configured yet: every create returns 201."""
    return (
        fake_session
        .route("POST", TOKEN_URL, payload={"access_token": "admin-token", "expires_in": 60})
        .route("POST", REALMS_URL, 201)
        .route("POST", CLIENTS_URL, 201)
        .route("POST", USERS_URL, 201)
    )


@pytest.fixture
def configured_keycloak(fake_session):
    """Keycloak where realm, client and user already exist."""
    conflict = {"errorMessage": "Conflict detected"}
    return (
        fake_session
        .route("POST", TOKEN_URL, payload={"access_token": "admin-token", "expires_in": 60})
        .route("POST", REALMS_URL, 409, payload=conflict)
        .route("POST", CLIENTS_URL, 409, payload=conflict)
        .route("POST", USERS_URL, 409, payload=conflict)
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires running Keycloak)"
    )


@pytest.fixture
def patch_session(monkeypatch, fake_session):
    """Make every KeycloakClient built during the test use the fake session."""
    from oidc_setup.core.keycloak import client as client_module

    monkeypatch.setattr(client_module.requests, "Session", lambda: fake_session)
    return fake_session
