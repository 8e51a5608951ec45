"""Keycloak Admin API client library.

Architecture:
- client.py: HTTP client with admin authentication
- realm.py: Realm and OIDC client creation
- users.py: User creation
- discovery.py: OIDC discovery and login checks
- exceptions.py: Typed exceptions for error handling

Usage:
    from oidc_setup.core.keycloak import KeycloakClient, RealmService

    client = KeycloakClient("http://localhost:8081/auth")
    client.authenticate_admin("admin", "admin")

    result = RealmService(client).create_realm("demo")
"""
from .client import KeycloakClient, REQUEST_TIMEOUT
from .discovery import DiscoveryService
from .exceptions import (
    KeycloakError,
    KeycloakAPIError,
    KeycloakTransportError,
    MalformedResponseError,
    NotAuthenticatedError,
    ConfigurationError,
)
from .realm import RealmService, create_if_absent, origin_from_url
from .users import UserService

__all__ = [
    # Client
    "KeycloakClient",
    "REQUEST_TIMEOUT",

    # Exceptions
    "KeycloakError",
    "KeycloakAPIError",
    "KeycloakTransportError",
    "MalformedResponseError",
    "NotAuthenticatedError",
    "ConfigurationError",

    # Services
    "RealmService",
    "UserService",
    "DiscoveryService",

    # Helpers
    "create_if_absent",
    "origin_from_url",
]
