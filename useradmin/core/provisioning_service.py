"""
Provisioning Service Layer: admin user creation

Creates an account across the identity store (auth users) and the profile
store (`profiles` table) as a compensating transaction:

    Step A   create identity record          failure -> 400, nothing to undo
    Step B   insert profile keyed by its id   failure -> Step B', then 500
    Step B'  delete the identity record       failure -> logged only

There is no idempotency key. A retry after success fails at Step A on the
identity store's email uniqueness, which also settles concurrent requests
for the same address.
"""

from __future__ import annotations
import logging
from typing import Optional

import requests

from useradmin.core.errors import CompensationError, InternalError, UpstreamError
from useradmin.core.models import (
    Caller,
    CompensationResult,
    CompensationStatus,
    IdentityRecord,
    NewUserRequest,
    ProfileRecord,
    ProvisionedUser,
)
from useradmin.core.supabase.exceptions import SupabaseAPIError, SupabaseError
from useradmin.core.validators import validate_new_user

logger = logging.getLogger(__name__)


def _reason(exc: Exception) -> str:
    if isinstance(exc, SupabaseAPIError):
        return exc.message
    return str(exc)


class ProvisioningService:
    """Two-step user creation with rollback of the identity on profile failure."""

    def __init__(
        self,
        identity_store,
        profile_store,
        *,
        default_role: str = "user",
        default_status: str = "active",
        assignable_roles: Optional[list[str]] = None,
        allowed_statuses: Optional[list[str]] = None,
    ):
        self.identity_store = identity_store
        self.profile_store = profile_store
        self.default_role = default_role
        self.default_status = default_status
        self.assignable_roles = assignable_roles or [default_role]
        self.allowed_statuses = allowed_statuses or [default_status]

    def resolve_role(self, request: NewUserRequest) -> str:
        return request.role or self.default_role

    def resolve_status(self, request: NewUserRequest) -> str:
        return request.status or self.default_status

    def provision_user(self, caller: Caller, request: NewUserRequest) -> ProvisionedUser:
        """Create identity and profile for a new account.

        Args:
            caller: Authorized caller (used for logging only)
            request: Typed provisioning request

        Returns:
            ProvisionedUser with the shared id and the requested email

        Raises:
            ValidationError: Preconditions failed (no store called)
            UpstreamError: Identity creation rejected (400) or profile insert failed (500)
            InternalError: Identity store returned no user
        """
        validate_new_user(
            request,
            assignable_roles=self.assignable_roles,
            allowed_statuses=self.allowed_statuses,
        )

        role = self.resolve_role(request)
        status = self.resolve_status(request)
        logger.info(
            "Creating user: email=%s role=%s status=%s requested_by=%s",
            request.email, role, status, caller.id,
        )

        identity = self._create_identity(request)

        # Any failure past this point leaves an identity without a profile
        try:
            self._create_profile(identity, request, role=role, status=status)
        except Exception as exc:
            reason = _reason(exc)
            logger.error("Profile insert error for %s: %s", identity.id, reason)
            self.compensate(identity.id)
            raise UpstreamError(f"Failed to create profile: {reason}", status=500)

        logger.info("Profile created: %s", identity.id)
        return ProvisionedUser(id=identity.id, email=request.email)

    def _create_identity(self, request: NewUserRequest) -> IdentityRecord:
        """Step A: create the auth user."""
        try:
            identity = self.identity_store.create_user(
                request.email,
                request.password,
                email_confirm=not request.send_verification_email,
                user_metadata={"full_name": request.full_name},
            )
        except (SupabaseError, requests.RequestException, ValueError) as exc:
            # Unreachable store or unreadable answer counts as a rejection
            reason = _reason(exc)
            logger.error("Create user error for %s: %s", request.email, reason)
            raise UpstreamError(reason, status=400)

        if identity is None or not identity.id:
            logger.error("No user returned from createUser for %s", request.email)
            raise InternalError("Failed to create user")

        logger.info("User created in auth: %s", identity.id)
        return identity

    def _create_profile(
        self,
        identity: IdentityRecord,
        request: NewUserRequest,
        *,
        role: str,
        status: str,
    ) -> ProfileRecord:
        """Step B: insert the profile keyed by the identity id."""
        profile = ProfileRecord(
            id=identity.id,
            full_name=request.full_name,
            role=role,
            status=status,
        )
        self.profile_store.insert(profile)
        return profile

    def compensate(self, user_id: str) -> CompensationResult:
        """Step B': delete an identity whose profile could not be created.

        Never raises. A failed delete leaves an orphaned auth user, which is
        logged with its id for manual cleanup.
        """
        try:
            self.identity_store.delete_user(user_id)
        except Exception as exc:
            error = CompensationError(f"Failed to cleanup auth user {user_id}", details=_reason(exc))
            logger.error("%s: %s", error.message, error.details)
            return CompensationResult(CompensationStatus.FAILED, user_id, reason=error.details)

        logger.info("Rolled back auth user %s after profile failure", user_id)
        return CompensationResult(CompensationStatus.OK, user_id)
