"""Supabase-specific exceptions for error handling."""


class SupabaseError(Exception):
    """Base exception for all Supabase operations."""
    pass


class SupabaseAPIError(SupabaseError):
    """HTTP error from the Supabase auth or REST API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
        code: Machine-readable error code when the API supplies one
    """

    def __init__(self, status_code: int, message: str, endpoint: str, code: str | None = None):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.code = code
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class UserAlreadyExistsError(SupabaseAPIError):
    """User creation failed - email already registered."""
    pass


class InvalidTokenError(SupabaseError):
    """Access token rejected by the auth API."""
    pass


class ProfileNotFoundError(SupabaseError):
    """No profile row for the requested user id."""
    pass
