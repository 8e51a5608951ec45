"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import math
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from oidc_setup.core.keycloak.exceptions import ConfigurationError
from oidc_setup.core.keycloak.realm import origin_from_url

DEFAULT_REDIRECT_URI = "http://localhost:8080/login/oauth2/code/keycloak"
SECRET_FIELDS = ("admin_password", "client_secret", "test_password")


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _split_csv(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _normalize_context_path(path: str) -> str:
    """'auth' -> '/auth', '/auth/' -> '/auth', '' and '/' -> ''."""
    path = (path or "").strip().strip("/")
    return f"/{path}" if path else ""


@dataclass
class SetupConfig:
    """Everything one setup run needs; fixed for the duration of the run."""
    # Keycloak server
    keycloak_url: str = "http://localhost:8081"
    context_path: str = "/auth"
    request_timeout: float = 10
    verify_ssl: bool = True

    # Admin credentials
    admin_realm: str = "master"
    admin_client_id: str = "admin-cli"
    admin_username: str = "admin"
    admin_password: str = "admin"

    # Realm
    realm_name: str = "oauth-oidc-realm"
    realm_display_name: str = "OAuth OIDC Example Realm"

    # OIDC client
    client_id: str = "oauth-oidc-client"
    client_secret: str = "your-client-secret-change-this"
    redirect_uris: list[str] = field(default_factory=lambda: [DEFAULT_REDIRECT_URI])
    # Empty means derived from the redirect URI origins
    web_origins: list[str] = field(default_factory=list)

    # Test user
    test_username: str = "testuser"
    test_password: str = "password123"
    test_email: str = "testuser@example.com"
    test_first_name: str = "Test"
    test_last_name: str = "User"
    create_test_user: bool = True

    @property
    def admin_base(self) -> str:
        """Keycloak URL including the context path, e.g. http://localhost:8081/auth."""
        return f"{self.keycloak_url.rstrip('/')}{_normalize_context_path(self.context_path)}"

    @property
    def issuer_url(self) -> str:
        return f"{self.admin_base}/realms/{self.realm_name}"

    @property
    def redirect_uri(self) -> str:
        return self.redirect_uris[0] if self.redirect_uris else ""

    def validate(self) -> "SetupConfig":
        """Raise ConfigurationError on values that would make every request fail."""
        parsed = urlparse(self.keycloak_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"KEYCLOAK_URL must be an absolute http(s) URL, got '{self.keycloak_url}'")
        for name in ("admin_username", "admin_password", "realm_name", "client_id", "client_secret"):
            if not getattr(self, name):
                raise ConfigurationError(f"{name} must not be empty")
        if self.create_test_user and not (self.test_username and self.test_password):
            raise ConfigurationError("test_username and test_password must not be empty")
        if not self.redirect_uris:
            raise ConfigurationError("At least one redirect URI is required")
        for uri in self.redirect_uris:
            parsed_uri = urlparse(uri)
            if not parsed_uri.scheme or not parsed_uri.netloc:
                raise ConfigurationError(f"Invalid redirect URI '{uri}' – expected absolute URI")
        if not math.isfinite(self.request_timeout) or self.request_timeout <= 0:
            raise ConfigurationError(f"request_timeout must be a positive number of seconds, got {self.request_timeout}")
        return self

    def masked(self) -> dict[str, Any]:
        """Field values with secrets replaced, for display."""
        values = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in SECRET_FIELDS and value:
                value = "*" * 8
            values[f.name] = value
        values["issuer_url"] = self.issuer_url
        return values


def load_settings(overrides: Optional[dict[str, Any]] = None) -> SetupConfig:
    """Load setup settings from environment and /run/secrets, then apply overrides.

    Args:
        overrides: Field values that win over the environment (CLI flags).
            Entries whose value is None are ignored.

    Raises:
        ConfigurationError: On invalid values
    """
    defaults = SetupConfig()

    timeout_raw = os.environ.get("KEYCLOAK_REQUEST_TIMEOUT")
    try:
        request_timeout = float(timeout_raw) if timeout_raw else defaults.request_timeout
    except ValueError as exc:
        raise ConfigurationError(f"KEYCLOAK_REQUEST_TIMEOUT must be a number, got '{timeout_raw}'") from exc

    redirect_uris = _split_csv(os.environ.get("OIDC_REDIRECT_URIS")) or defaults.redirect_uris
    web_origins = _split_csv(os.environ.get("OIDC_WEB_ORIGINS"))

    config = SetupConfig(
        keycloak_url=os.environ.get("KEYCLOAK_URL", defaults.keycloak_url),
        context_path=os.environ.get("KEYCLOAK_CONTEXT_PATH", defaults.context_path),
        request_timeout=request_timeout,
        verify_ssl=os.environ.get("KEYCLOAK_VERIFY_SSL", "true").lower() == "true",
        admin_realm=os.environ.get("KEYCLOAK_ADMIN_REALM", defaults.admin_realm),
        admin_client_id=os.environ.get("KEYCLOAK_ADMIN_CLIENT_ID", defaults.admin_client_id),
        admin_username=os.environ.get("KEYCLOAK_ADMIN", defaults.admin_username),
        admin_password=_load_secret_from_file("keycloak_admin_password", "KEYCLOAK_ADMIN_PASSWORD")
        or defaults.admin_password,
        realm_name=os.environ.get("KEYCLOAK_REALM", defaults.realm_name),
        realm_display_name=os.environ.get("KEYCLOAK_REALM_DISPLAY_NAME", defaults.realm_display_name),
        client_id=os.environ.get("OIDC_CLIENT_ID", defaults.client_id),
        client_secret=_load_secret_from_file("oidc_client_secret", "OIDC_CLIENT_SECRET")
        or defaults.client_secret,
        redirect_uris=redirect_uris,
        web_origins=web_origins,
        test_username=os.environ.get("TEST_USER_USERNAME", defaults.test_username),
        test_password=_load_secret_from_file("test_user_password", "TEST_USER_PASSWORD")
        or defaults.test_password,
        test_email=os.environ.get("TEST_USER_EMAIL", defaults.test_email),
        test_first_name=os.environ.get("TEST_USER_FIRST_NAME", defaults.test_first_name),
        test_last_name=os.environ.get("TEST_USER_LAST_NAME", defaults.test_last_name),
    )

    if overrides:
        config = replace(config, **{key: value for key, value in overrides.items() if value is not None})

    config.validate()

    if not config.web_origins:
        config.web_origins = sorted({origin_from_url(uri) for uri in config.redirect_uris})

    return config
