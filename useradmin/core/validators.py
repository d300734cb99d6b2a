"""Input validation helpers for provisioning requests."""
from __future__ import annotations
from typing import Any, Optional

from useradmin.core.errors import InternalError, ValidationError
from useradmin.core.models import NewUserRequest

EMAIL_MAX_LENGTH = 254
NAME_MAX_LENGTH = 255
PASSWORD_MAX_BYTES = 72  # bcrypt input limit in the auth store, UTF-8 bytes


def _optional_str(payload: dict, key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value


def _normalize_choice(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


def parse_new_user_request(payload: Any) -> NewUserRequest:
    """Build the typed request from a decoded JSON body.

    Args:
        payload: Decoded JSON document

    Returns:
        NewUserRequest with blank optional fields normalised to None

    Raises:
        InternalError: Body is not a JSON object
        ValidationError: A field has the wrong type
    """
    if not isinstance(payload, dict):
        raise InternalError("Internal server error", details="Request body must be a JSON object")

    email = _optional_str(payload, "email")
    full_name = _optional_str(payload, "full_name")

    return NewUserRequest(
        email=email.strip() if email else email,
        password=_optional_str(payload, "password"),
        full_name=(full_name.strip() or None) if full_name else None,
        role=_normalize_choice(_optional_str(payload, "role")),
        status=_normalize_choice(_optional_str(payload, "status")),
        send_verification_email=bool(payload.get("send_verification_email", False)),
    )


def validate_email(email: str) -> str:
    """Validate email address shape; the auth store remains the authority.

    Raises:
        ValidationError: If email is invalid
    """
    if len(email) > EMAIL_MAX_LENGTH:
        raise ValidationError("Email exceeds maximum length")
    if "@" not in email:
        raise ValidationError("Invalid email format")

    local, domain = email.rsplit("@", 1)
    if not local or not domain or any(char.isspace() for char in email):
        raise ValidationError("Invalid email format")

    return email


def validate_new_user(
    request: NewUserRequest,
    *,
    assignable_roles: list[str],
    allowed_statuses: list[str],
) -> None:
    """Check preconditions of a provisioning request.

    Raises:
        ValidationError: On missing credentials or out-of-domain values
    """
    if not request.email or not request.password:
        raise ValidationError("Email and password are required")

    validate_email(request.email)

    if len(request.password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"Password must not exceed {PASSWORD_MAX_BYTES} bytes")

    if request.full_name and len(request.full_name) > NAME_MAX_LENGTH:
        raise ValidationError("full_name exceeds maximum length")

    if request.role is not None and request.role not in assignable_roles:
        raise ValidationError(
            f"Invalid role '{request.role}'. Allowed: {', '.join(assignable_roles)}"
        )

    if request.status is not None and request.status not in allowed_statuses:
        raise ValidationError(
            f"Invalid status '{request.status}'. Allowed: {', '.join(allowed_statuses)}"
        )
