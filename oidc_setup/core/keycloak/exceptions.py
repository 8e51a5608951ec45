"""Keycloak-specific exceptions for error handling."""


class KeycloakError(Exception):
    """Base exception for all Keycloak operations."""
    pass


class KeycloakAPIError(KeycloakError):
    """HTTP error from Keycloak Admin API.
    
    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
    """
    
    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class KeycloakTransportError(KeycloakError):
    """Request never produced an HTTP response (connection refused, timeout, DNS).
    
    Attributes:
        message: Underlying error text
        endpoint: URL that was being called
    """
    
    def __init__(self, message: str, endpoint: str):
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"{endpoint}: {message}")


class MalformedResponseError(KeycloakError):
    """Keycloak answered with a success status but an unusable body."""
    pass


class NotAuthenticatedError(KeycloakError):
    """Admin call attempted before a token was obtained."""
    pass


class ConfigurationError(KeycloakError):
    """Setup configuration is missing or invalid."""
    pass
