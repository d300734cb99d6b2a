"""
Flask decorators for bearer credential extraction.

The identity store is the authority on who a token belongs to. When the
project's JWT secret is configured, tokens are additionally decoded
locally first, so forged or expired tokens are rejected without a round
trip.

Security:
- HS256 signature verification with the project JWT secret
- Expiration and audience validation (RFC 7519)
"""

import logging
from functools import wraps
from typing import Any, Dict, Optional

import jwt
from jwt.exceptions import (
    ExpiredSignatureError,
    InvalidAudienceError,
    InvalidSignatureError,
    DecodeError,
    InvalidTokenError,
)
from flask import request, current_app, g

from useradmin.core.errors import AuthError

logger = logging.getLogger(__name__)

# Audience Supabase stamps on end-user access tokens
TOKEN_AUDIENCE = "authenticated"


class TokenValidationError(Exception):
    """Exception raised when JWT token validation fails."""
    pass


def extract_bearer_token(auth_header: Optional[str]) -> Optional[str]:
    """Return the token from an Authorization header, or None if absent."""
    if not auth_header:
        return None
    parts = auth_header.strip().split(None, 1)
    if parts and parts[0].lower() == "bearer":
        token = parts[1].strip() if len(parts) > 1 else ""
    else:
        token = auth_header.strip()
    return token or None


def validate_access_token(token: str, secret: str) -> Dict[str, Any]:
    """
    Decode an access token with the project JWT secret.

    Args:
        token: JWT string (without "Bearer " prefix)
        secret: Shared HS256 secret

    Returns:
        dict: Validated token claims

    Raises:
        TokenValidationError: If any validation fails
    """
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=TOKEN_AUDIENCE,
            options={"require": ["exp", "sub"]},
            leeway=5,
        )
    except ExpiredSignatureError:
        raise TokenValidationError("Token expired (exp claim)")
    except InvalidAudienceError as e:
        raise TokenValidationError(f"Invalid audience: {e}")
    except InvalidSignatureError:
        raise TokenValidationError("Invalid signature")
    except DecodeError as e:
        raise TokenValidationError(f"Token decode error (malformed JWT): {e}")
    except InvalidTokenError as e:
        raise TokenValidationError(f"Token validation failed: {e}")


def require_bearer_token(fn):
    """
    Decorator requiring an `Authorization: Bearer <token>` header.

    Stores the token in `g.access_token` (and claims in `g.token_claims`
    when checked locally) for the route handler.

    Raises:
        AuthError: 401 when the header is missing or the token fails the local check
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = extract_bearer_token(request.headers.get("Authorization"))
        if not token:
            logger.warning("Request missing Authorization header")
            raise AuthError("Unauthorized")

        g.access_token = token
        g.token_claims = None

        cfg = current_app.config["APP_CONFIG"]
        if cfg.local_jwt_check_enabled:
            try:
                g.token_claims = validate_access_token(token, cfg.supabase_jwt_secret)
            except TokenValidationError as e:
                logger.warning("JWT validation failed: %s", e)
                raise AuthError("Invalid token")

        return fn(*args, **kwargs)

    return wrapper
