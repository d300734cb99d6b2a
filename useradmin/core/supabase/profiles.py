"""Profile store operations on the Supabase REST (PostgREST) API."""
from __future__ import annotations
from typing import Any

from useradmin.core.models import ProfileRecord

from .client import SupabaseClient
from .exceptions import SupabaseAPIError, ProfileNotFoundError

PROFILES_PATH = "/rest/v1/profiles"

# Ask PostgREST for exactly one object; zero or many rows answer 406
SINGLE_OBJECT = {"Accept": "application/vnd.pgrst.object+json"}


class ProfileService:
    """Service for the `profiles` table."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    def select_role(self, user_id: str) -> str | None:
        """Return the role stored on a user's profile.

        Raises:
            ProfileNotFoundError: No profile row for the user
            SupabaseAPIError: On any other HTTP error
        """
        try:
            resp = self.client.get(
                PROFILES_PATH,
                params={"id": f"eq.{user_id}", "select": "role"},
                headers=SINGLE_OBJECT,
            )
        except SupabaseAPIError as exc:
            if exc.status_code == 406:
                raise ProfileNotFoundError(f"No profile for user {user_id}") from exc
            raise

        row: Any = resp.json()
        if isinstance(row, list):
            row = row[0] if len(row) == 1 else None
        if not isinstance(row, dict):
            raise ProfileNotFoundError(f"No profile for user {user_id}")
        return row.get("role")

    def insert(self, profile: ProfileRecord) -> None:
        """Insert a profile row.

        Raises:
            SupabaseAPIError: On HTTP error (constraint violation, RLS, ...)
        """
        self.client.post(
            PROFILES_PATH,
            json=profile.to_row(),
            headers={"Prefer": "return=minimal"},
        )
