"""Typed failures of the provisioning workflow.

Each error carries the HTTP status it maps to, so the API layer can render
any of them with a single handler.
"""
from __future__ import annotations
from typing import Optional


class ProvisioningError(Exception):
    """Base error with HTTP status and optional details."""

    status = 500

    def __init__(self, message: str, status: Optional[int] = None, details: Optional[str] = None):
        self.message = message
        if status is not None:
            self.status = status
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to the `{error[, details]}` response body."""
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ConfigError(ProvisioningError):
    """Deployment configuration missing (store URL or service key)."""
    status = 500


class AuthError(ProvisioningError):
    """Missing or invalid bearer credential."""
    status = 401


class AuthzError(ProvisioningError):
    """Caller does not hold the privileged role."""
    status = 403


class ValidationError(ProvisioningError):
    """Required input missing or outside its domain."""
    status = 400


class MethodNotAllowed(ProvisioningError):
    status = 405


class UpstreamError(ProvisioningError):
    """A store rejected an operation.

    The status depends on the step: a rejected identity creation is the
    caller's problem (400), everything else is ours (500).
    """
    status = 500


class InternalError(ProvisioningError):
    status = 500


class CompensationError(ProvisioningError):
    """Rollback delete failed. Logged, never returned to the caller."""
    status = 500
