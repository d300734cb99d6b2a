"""Supabase API client library.

Architecture:
- client.py: HTTP client holding the service-role key, centralised error handling
- auth_admin.py: Identity store (token verification, user create/delete)
- profiles.py: Profile store (role lookup, profile insert)
- exceptions.py: Typed exceptions for error handling

Usage:
    from useradmin.core.supabase import SupabaseClient, AuthAdminService, ProfileService

    client = SupabaseClient("https://xyz.supabase.co", service_role_key)
    identity = AuthAdminService(client).verify(access_token)
    role = ProfileService(client).select_role(identity.id)
"""
from .client import SupabaseClient, REQUEST_TIMEOUT, extract_error
from .auth_admin import AuthAdminService
from .profiles import ProfileService
from .exceptions import (
    SupabaseError,
    SupabaseAPIError,
    UserAlreadyExistsError,
    InvalidTokenError,
    ProfileNotFoundError,
)

__all__ = [
    "SupabaseClient",
    "REQUEST_TIMEOUT",
    "extract_error",
    "AuthAdminService",
    "ProfileService",
    "SupabaseError",
    "SupabaseAPIError",
    "UserAlreadyExistsError",
    "InvalidTokenError",
    "ProfileNotFoundError",
]
