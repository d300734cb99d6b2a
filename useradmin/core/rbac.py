"""Role-Based Access Control for the provisioning endpoint."""
from __future__ import annotations
import hashlib
import logging

from useradmin.core.errors import AuthError, AuthzError, UpstreamError
from useradmin.core.models import Caller
from useradmin.core.supabase.exceptions import SupabaseError

logger = logging.getLogger(__name__)


def token_fingerprint(token: str) -> str:
    """Truncated SHA-256 of a token, safe to log."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]


def has_role(role: str | None, required_role: str) -> bool:
    """Exact role match; a missing or differently spelled role never matches."""
    if not isinstance(role, str) or not role:
        return False
    return role == required_role


class Authorizer:
    """Resolve the caller behind a bearer token and enforce the privileged role.

    Fails closed: a role lookup that errors or finds nothing is reported as
    an internal failure, never as permission granted.
    """

    def __init__(self, identity_store, profile_store, admin_role: str = "admin"):
        self.identity_store = identity_store
        self.profile_store = profile_store
        self.admin_role = admin_role

    def resolve_caller(self, access_token: str) -> Caller:
        """Verify the token and look up the caller's role.

        Raises:
            AuthError: Token invalid or expired
            UpstreamError: Role lookup failed
        """
        try:
            identity = self.identity_store.verify(access_token)
        except SupabaseError as exc:
            # Any rejection by the auth API means the caller is unknown
            logger.error("Auth error for token %s: %s", token_fingerprint(access_token), exc)
            raise AuthError("Invalid token")

        try:
            role = self.profile_store.select_role(identity.id)
        except Exception as exc:
            logger.error("Profile error for %s: %s", identity.id, exc)
            raise UpstreamError("Failed to verify admin status", status=500)

        return Caller(id=identity.id, role=role)

    def authorize(self, access_token: str) -> Caller:
        """Return the caller if they hold the privileged role.

        Raises:
            AuthError: Token invalid or expired
            AuthzError: Caller lacks the privileged role
            UpstreamError: Role lookup failed
        """
        caller = self.resolve_caller(access_token)
        if not has_role(caller.role, self.admin_role):
            logger.error("Not admin: user_id=%s role=%s", caller.id, caller.role)
            raise AuthzError("Forbidden: Admin access required")
        return caller
