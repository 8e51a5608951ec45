"""Keycloak realm and client management operations."""
from __future__ import annotations
from typing import Iterable, Optional
from urllib.parse import urlparse

from ..results import FailureKind, StepResult
from .client import KeycloakClient
from .exceptions import KeycloakTransportError


def create_if_absent(client: KeycloakClient, step: str, path: str, payload: dict, label: str) -> StepResult:
    """POST a representation and translate the status into a step result.

    2xx means created, 409 means the resource is already there, anything
    else (or no response at all) is a failure.
    """
    try:
        resp = client.post(path, json=payload, check=False)
    except KeycloakTransportError as exc:
        return StepResult.failed(step, FailureKind.TRANSPORT, exc.message)

    if 200 <= resp.status_code < 300:
        print(f"[setup] {label} created")
        return StepResult.created(step, f"{label} created", status_code=resp.status_code)
    if resp.status_code == 409:
        print(f"[setup] {label} already exists")
        return StepResult.already_exists(step, f"{label} already exists")
    return StepResult.failed(step, FailureKind.HTTP, resp.text or resp.reason or "", status_code=resp.status_code)


def origin_from_url(url: str) -> str:
    """Extract the scheme+host[:port] origin from the provided URL."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Invalid URL '{url}' – expected absolute URI")
    return f"{parsed.scheme}://{parsed.netloc}"


class RealmService:
    """Service for managing Keycloak realms and their OIDC clients."""

    def __init__(self, client: KeycloakClient):
        """Initialize realm service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    @staticmethod
    def build_realm_payload(realm: str, display_name: Optional[str] = None) -> dict:
        payload = {"realm": realm, "enabled": True}
        if display_name:
            payload["displayName"] = display_name
        return payload

    def create_realm(self, realm: str, display_name: Optional[str] = None) -> StepResult:
        """Ensure the target realm exists, creating it if necessary.

        Args:
            realm: Realm name
            display_name: Human readable realm name shown on the login page

        Returns:
            StepResult for the "realm" step
        """
        payload = self.build_realm_payload(realm, display_name)
        return create_if_absent(self.client, "realm", "/admin/realms", payload, f"Realm '{realm}'")

    @staticmethod
    def build_client_payload(
        client_id: str,
        secret: str,
        redirect_uris: Iterable[str],
        web_origins: Optional[Iterable[str]] = None,
        direct_access_grants: bool = True,
    ) -> dict:
        """Representation of a confidential authorization-code client.

        The flow flags are fixed: confidential, standard flow on, implicit
        flow and service accounts off.
        """
        redirect_uris = list(redirect_uris)
        if web_origins is None:
            web_origins = sorted({origin_from_url(uri) for uri in redirect_uris})
        return {
            "clientId": client_id,
            "protocol": "openid-connect",
            "enabled": True,
            "publicClient": False,
            "clientAuthenticatorType": "client-secret",
            "secret": secret,
            "redirectUris": redirect_uris,
            "webOrigins": list(web_origins),
            "standardFlowEnabled": True,
            "directAccessGrantsEnabled": direct_access_grants,
            "serviceAccountsEnabled": False,
            "authorizationServicesEnabled": False,
            "implicitFlowEnabled": False,
        }

    def create_client(
        self,
        realm: str,
        client_id: str,
        secret: str,
        redirect_uris: Iterable[str],
        web_origins: Optional[Iterable[str]] = None,
    ) -> StepResult:
        """Ensure the confidential OIDC client exists in the realm.

        Args:
            realm: Realm name
            client_id: Client ID
            secret: Client secret
            redirect_uris: Valid redirect URIs
            web_origins: Allowed CORS origins (derived from redirect URIs when None)

        Returns:
            StepResult for the "client" step
        """
        payload = self.build_client_payload(client_id, secret, redirect_uris, web_origins)
        return create_if_absent(
            self.client,
            "client",
            f"/admin/realms/{realm}/clients",
            payload,
            f"Client '{client_id}'",
        )
