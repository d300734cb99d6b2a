"""Identity store operations on the Supabase auth (GoTrue) API."""
from __future__ import annotations
import logging
from typing import Any, Optional
from urllib.parse import quote

from useradmin.core.models import IdentityRecord

from .client import SupabaseClient
from .exceptions import SupabaseAPIError, InvalidTokenError

logger = logging.getLogger(__name__)


def _to_identity(user: Any) -> Optional[IdentityRecord]:
    if not isinstance(user, dict):
        return None
    # supabase-js style envelopes wrap the representation in {"user": ...}
    if isinstance(user.get("user"), dict):
        user = user["user"]
    user_id = user.get("id")
    if not user_id:
        return None
    return IdentityRecord(
        id=str(user_id),
        email=user.get("email"),
        metadata=user.get("user_metadata") or {},
    )


class AuthAdminService:
    """Service for verifying tokens and managing auth users."""

    def __init__(self, client: SupabaseClient):
        """Initialize auth admin service.

        Args:
            client: Supabase client holding the service-role key
        """
        self.client = client

    def verify(self, access_token: str) -> IdentityRecord:
        """Resolve the user behind an access token.

        Args:
            access_token: Bearer token presented by the caller

        Returns:
            Identity of the token owner

        Raises:
            InvalidTokenError: Token rejected or resolved to no user
            SupabaseAPIError: Auth API failed for another reason
        """
        try:
            resp = self.client.get(
                "/auth/v1/user",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except SupabaseAPIError as exc:
            if exc.status_code in (401, 403):
                raise InvalidTokenError(exc.message) from exc
            raise

        identity = _to_identity(resp.json())
        if identity is None:
            raise InvalidTokenError("Token did not resolve to a user")
        return identity

    def create_user(
        self,
        email: str,
        password: str,
        *,
        email_confirm: bool,
        user_metadata: Optional[dict[str, Any]] = None,
    ) -> Optional[IdentityRecord]:
        """Create an auth user through the admin API.

        Args:
            email: Email address (unique in the auth store)
            password: Initial password
            email_confirm: Mark the address verified, skipping the confirmation mail
            user_metadata: Free-form metadata stored on the user

        Returns:
            Created identity, or None when the API answered without a user

        Raises:
            UserAlreadyExistsError: Email already registered
            SupabaseAPIError: Any other rejection
        """
        payload = {
            "email": email,
            "password": password,
            "email_confirm": email_confirm,
            "user_metadata": user_metadata or {},
        }
        resp = self.client.post("/auth/v1/admin/users", json=payload)
        return _to_identity(resp.json())

    def delete_user(self, user_id: str) -> None:
        """Hard-delete an auth user.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        self.client.delete(f"/auth/v1/admin/users/{quote(user_id, safe='')}")
        logger.info("Deleted auth user %s", user_id)
