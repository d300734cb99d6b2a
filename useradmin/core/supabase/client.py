"""Low-level HTTP client for the Supabase auth and REST APIs.

Handles the service-role credentials and centralised error handling.
"""
from __future__ import annotations
from typing import Optional, Dict, Any

import requests

from .exceptions import SupabaseAPIError, UserAlreadyExistsError

REQUEST_TIMEOUT = 10

# Error codes GoTrue uses for a duplicate registration
DUPLICATE_USER_CODES = {"email_exists", "user_already_exists", "23505"}


class SupabaseClient:
    """HTTP client for Supabase with the service-role key.

    The service-role key is sent as both `apikey` and bearer token unless a
    caller supplies its own `Authorization` header (used to resolve the user
    behind an access token).

    Usage:
        client = SupabaseClient("https://xyz.supabase.co", service_role_key)
        response = client.get("/auth/v1/admin/users")
    """

    def __init__(self, base_url: str, service_role_key: str, timeout: float = REQUEST_TIMEOUT):
        """Initialize Supabase client.

        Args:
            base_url: Project URL (e.g. https://xyz.supabase.co)
            service_role_key: Privileged API key
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.service_role_key = service_role_key
        self.timeout = timeout

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def get(self, path: str, params: Optional[Dict] = None, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        """Execute GET request.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        resp = requests.get(
            f"{self.base_url}{path}",
            params=params,
            headers=self._headers(headers),
            timeout=self.timeout,
        )
        self._handle_error(resp)
        return resp

    def post(self, path: str, json: Optional[Any] = None, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        """Execute POST request.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        resp = requests.post(
            f"{self.base_url}{path}",
            json=json,
            headers=self._headers(headers),
            timeout=self.timeout,
        )
        self._handle_error(resp)
        return resp

    def delete(self, path: str, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        """Execute DELETE request.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        resp = requests.delete(
            f"{self.base_url}{path}",
            headers=self._headers(headers),
            timeout=self.timeout,
        )
        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            UserAlreadyExistsError: On a duplicate registration
            SupabaseAPIError: If response status indicates any other error
        """
        if resp.status_code < 400:
            return

        message, code = extract_error(resp)
        if code in DUPLICATE_USER_CODES or "already been registered" in message.lower():
            raise UserAlreadyExistsError(resp.status_code, message, resp.url, code)
        raise SupabaseAPIError(resp.status_code, message, resp.url, code)


def extract_error(resp: requests.Response) -> tuple[str, str | None]:
    """Pull a human-readable message and error code out of an error response.

    GoTrue answers with `msg`/`error_code` (or `error_description`), PostgREST
    with `message`/`code`.
    """
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or f"HTTP {resp.status_code}").strip(), None

    if not isinstance(body, dict):
        return str(body), None

    message = (
        body.get("msg")
        or body.get("message")
        or body.get("error_description")
        or body.get("error")
        or f"HTTP {resp.status_code}"
    )
    code = body.get("error_code") or body.get("code")
    return str(message), (str(code) if code is not None else None)
