"""Low-level HTTP client for Keycloak Admin API.

Handles admin authentication and bearer-authorized HTTP operations.
The admin token is obtained once and held for the lifetime of the client.
"""
from __future__ import annotations
from typing import Optional, Dict, Any

import requests

from .exceptions import (
    KeycloakAPIError,
    KeycloakTransportError,
    MalformedResponseError,
    NotAuthenticatedError,
)

REQUEST_TIMEOUT = 10


class KeycloakClient:
    """HTTP client for Keycloak Admin API.

    Usage:
        client = KeycloakClient("http://localhost:8081/auth")
        client.authenticate_admin("admin", "admin")
        response = client.post("/admin/realms", json={"realm": "demo"})
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = REQUEST_TIMEOUT,
        verify: bool = True,
        session: Optional[requests.Session] = None,
    ):
        """Initialize Keycloak client.

        Args:
            base_url: Keycloak base URL including any context path (e.g. ".../auth")
            timeout: Per-request timeout in seconds
            verify: Verify TLS certificates
            session: Pre-built requests session (tests inject a fake here)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.verify = verify
        self._owns_session = session is None
        self.session = session or requests.Session()
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def authenticate_admin(
        self,
        username: str,
        password: str,
        realm: str = "master",
        client_id: str = "admin-cli",
    ) -> str:
        """Authenticate as admin user via direct access grant.

        Args:
            username: Admin username
            password: Admin password
            realm: Authentication realm (default: master)
            client_id: Client used for the grant (default: admin-cli)

        Returns:
            Access token

        Raises:
            KeycloakAPIError: Token endpoint answered with a non-2xx status
            KeycloakTransportError: No response was received
            MalformedResponseError: Response carried no access_token
        """
        url = f"{self.base_url}/realms/{realm}/protocol/openid-connect/token"
        data = {
            "grant_type": "password",
            "client_id": client_id,
            "username": username,
            "password": password,
        }
        self._token = self.request_token(url, data)
        return self._token

    def request_token(self, url: str, data: Dict[str, Any]) -> str:
        """POST a form-encoded grant to a token endpoint and return the access token.

        Does not touch the stored admin token.
        """
        resp = self._send("POST", url, data=data)
        if not 200 <= resp.status_code < 300:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        try:
            payload = resp.json()
        except ValueError as exc:
            raise MalformedResponseError(f"Token response from {url} is not JSON: {resp.text!r}") from exc
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise MalformedResponseError(f"Token response from {url} has no access_token field")
        return token

    def get(self, path: str, params: Optional[Dict] = None, authenticated: bool = True, check: bool = True) -> requests.Response:
        """Execute GET request.

        Args:
            path: API endpoint path (e.g., "/admin/realms/demo") or absolute URL
            params: Query parameters
            authenticated: Send the admin bearer token
            check: Raise KeycloakAPIError on status >= 400

        Returns:
            Response object
        """
        headers = self._auth_headers() if authenticated else {}
        resp = self._send("GET", self._url(path), params=params, headers=headers)
        if check:
            self._handle_error(resp)
        return resp

    def post(
        self,
        path: str,
        json: Optional[Dict] = None,
        data: Optional[Dict] = None,
        check: bool = True,
    ) -> requests.Response:
        """Execute bearer-authorized POST request.

        Args:
            path: API endpoint path
            json: JSON payload
            data: Form data payload
            check: Raise KeycloakAPIError on status >= 400. Callers that need to
                branch on the status themselves (e.g. 409) pass False.

        Returns:
            Response object

        Raises:
            NotAuthenticatedError: authenticate_admin was never called
            KeycloakTransportError: No response was received
            KeycloakAPIError: On HTTP error when check is True
        """
        resp = self._send("POST", self._url(path), json=json, data=data, headers=self._auth_headers())
        if check:
            self._handle_error(resp)
        return resp

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session:
            self.session.close()

    def _auth_headers(self) -> Dict[str, str]:
        if not self._token:
            raise NotAuthenticatedError("Not authenticated - call authenticate_admin first")
        return {"Authorization": f"Bearer {self._token}"}

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}{path}"

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, verify=self.verify, **kwargs)
        except requests.RequestException as exc:
            raise KeycloakTransportError(str(exc), url) from exc

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Args:
            resp: Response object to check

        Raises:
            KeycloakAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, resp.text, resp.url)
