"""OIDC discovery and end-user login checks against a configured realm."""
from __future__ import annotations

from ..results import FailureKind, StepResult
from .client import KeycloakClient
from .exceptions import KeycloakAPIError, KeycloakTransportError, MalformedResponseError

REQUIRED_DISCOVERY_FIELDS = ("issuer", "authorization_endpoint", "token_endpoint")


class DiscoveryService:
    """Checks that a realm is usable by an OIDC relying party."""

    def __init__(self, client: KeycloakClient):
        self.client = client

    def fetch_discovery(self, issuer_url: str) -> StepResult:
        """Fetch the realm's openid-configuration document.

        The document is returned in ``value``. Its issuer must match
        ``issuer_url``.
        """
        url = f"{issuer_url.rstrip('/')}/.well-known/openid-configuration"
        try:
            resp = self.client.get(url, authenticated=False, check=False)
        except KeycloakTransportError as exc:
            return StepResult.failed("discovery", FailureKind.TRANSPORT, exc.message)

        if resp.status_code != 200:
            return StepResult.failed("discovery", FailureKind.HTTP, resp.text, status_code=resp.status_code)
        try:
            document = resp.json()
        except ValueError:
            document = None
        if not isinstance(document, dict):
            return StepResult.failed("discovery", FailureKind.MALFORMED, "discovery document is not a JSON object")

        missing = [
            name for name in REQUIRED_DISCOVERY_FIELDS
            if not isinstance(document.get(name), str) or not document[name]
        ]
        if missing:
            return StepResult.failed(
                "discovery", FailureKind.MALFORMED, f"discovery document lacks {', '.join(missing)}"
            )
        if document["issuer"].rstrip("/") != issuer_url.rstrip("/"):
            return StepResult.failed(
                "discovery",
                FailureKind.MALFORMED,
                f"issuer mismatch: expected {issuer_url}, got {document['issuer']}",
            )
        return StepResult.created("discovery", f"issuer {document['issuer']}", status_code=200, value=document)

    def verify_login(
        self,
        token_endpoint: str,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
    ) -> StepResult:
        """Log the user in through the client with a password grant."""
        data = {
            "grant_type": "password",
            "client_id": client_id,
            "client_secret": client_secret,
            "username": username,
            "password": password,
            "scope": "openid",
        }
        try:
            token = self.client.request_token(token_endpoint, data)
        except KeycloakTransportError as exc:
            return StepResult.failed("login", FailureKind.TRANSPORT, exc.message)
        except KeycloakAPIError as exc:
            return StepResult.failed("login", FailureKind.HTTP, exc.message, status_code=exc.status_code)
        except MalformedResponseError as exc:
            return StepResult.failed("login", FailureKind.MALFORMED, str(exc))
        return StepResult.created("login", f"'{username}' logged in via '{client_id}'", value=token)
