"""Keycloak user management operations."""
from __future__ import annotations

from ..results import StepResult
from .client import KeycloakClient
from .realm import create_if_absent


class UserService:
    """Service for managing Keycloak users."""

    def __init__(self, client: KeycloakClient):
        """Initialize user service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    @staticmethod
    def build_user_payload(username: str, password: str, email: str, first: str, last: str) -> dict:
        return {
            "username": username,
            "enabled": True,
            "emailVerified": True,
            "firstName": first,
            "lastName": last,
            "email": email,
            "credentials": [
                {"type": "password", "value": password, "temporary": False},
            ],
        }

    def create_user(
        self,
        realm: str,
        username: str,
        password: str,
        email: str,
        first: str,
        last: str,
    ) -> StepResult:
        """Create a user with a permanent password and a pre-verified email.

        Args:
            realm: Realm name
            username: Username
            password: Password (not temporary, no update required on login)
            email: Email address
            first: First name
            last: Last name

        Returns:
            StepResult for the "user" step
        """
        payload = self.build_user_payload(username, password, email, first, last)
        return create_if_absent(
            self.client,
            "user",
            f"/admin/realms/{realm}/users",
            payload,
            f"User '{username}'",
        )
