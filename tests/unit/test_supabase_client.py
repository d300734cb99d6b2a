"""Unit tests for the Supabase HTTP client and its auth/profile services."""
import pytest
import requests

from useradmin.core.models import ProfileRecord
from useradmin.core.supabase import client as client_module
from useradmin.core.supabase.auth_admin import AuthAdminService
from useradmin.core.supabase.client import SupabaseClient, extract_error
from useradmin.core.supabase.exceptions import (
    InvalidTokenError,
    ProfileNotFoundError,
    SupabaseAPIError,
    UserAlreadyExistsError,
)
from useradmin.core.supabase.profiles import ProfileService

BASE_URL = "http://supabase.test"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text="", url=BASE_URL):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.url = url

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class Recorder:
    """Stand-in for requests.get/post/delete returning queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        return self.responses.pop(0)


@pytest.fixture
def supabase():
    return SupabaseClient(BASE_URL + "/", "service-role-key", timeout=3)


def test_base_url_is_normalised(supabase):
    assert supabase.base_url == BASE_URL


def test_service_role_key_sent_as_apikey_and_bearer(monkeypatch, supabase):
    recorder = Recorder(FakeResponse(200, {"ok": True}))
    monkeypatch.setattr(requests, "get", recorder)

    supabase.get("/rest/v1/profiles", params={"select": "role"})

    call = recorder.calls[0]
    assert call["url"] == BASE_URL + "/rest/v1/profiles"
    assert call["headers"]["apikey"] == "service-role-key"
    assert call["headers"]["Authorization"] == "Bearer service-role-key"
    assert call["timeout"] == 3
    assert call["params"] == {"select": "role"}


def test_extra_headers_override_defaults(monkeypatch, supabase):
    recorder = Recorder(FakeResponse(200, {}))
    monkeypatch.setattr(requests, "get", recorder)

    supabase.get("/auth/v1/user", headers={"Authorization": "Bearer user-token"})

    headers = recorder.calls[0]["headers"]
    assert headers["Authorization"] == "Bearer user-token"
    assert headers["apikey"] == "service-role-key"


def test_http_error_raises_api_error(monkeypatch, supabase):
    monkeypatch.setattr(requests, "post", Recorder(
        FakeResponse(400, {"message": "null value in column", "code": "23502"}, url=BASE_URL + "/rest/v1/profiles")
    ))

    with pytest.raises(SupabaseAPIError) as exc:
        supabase.post("/rest/v1/profiles", json={})

    assert exc.value.status_code == 400
    assert exc.value.message == "null value in column"
    assert exc.value.code == "23502"
    assert exc.value.endpoint == BASE_URL + "/rest/v1/profiles"


@pytest.mark.parametrize("payload", [
    {"msg": "A user with this email address has already been registered"},
    {"msg": "Email exists", "error_code": "email_exists"},
    {"message": "duplicate key", "code": "23505"},
])
def test_duplicate_registration_raises_user_already_exists(monkeypatch, supabase, payload):
    monkeypatch.setattr(requests, "post", Recorder(FakeResponse(422, payload)))

    with pytest.raises(UserAlreadyExistsError):
        supabase.post("/auth/v1/admin/users", json={})


@pytest.mark.parametrize("response, expected", [
    (FakeResponse(400, {"msg": "weak password", "error_code": "weak_password"}), ("weak password", "weak_password")),
    (FakeResponse(400, {"error": "invalid_grant", "error_description": "expired"}), ("expired", None)),
    (FakeResponse(502, None, text="Bad Gateway\n"), ("Bad Gateway", None)),
    (FakeResponse(500, None, text=""), ("HTTP 500", None)),
    (FakeResponse(500, ["unexpected"]), ("['unexpected']", None)),
])
def test_extract_error(response, expected):
    assert extract_error(response) == expected


def test_delete_uses_timeout(monkeypatch, supabase):
    recorder = Recorder(FakeResponse(204))
    monkeypatch.setattr(requests, "delete", recorder)

    supabase.delete("/auth/v1/admin/users/abc")

    assert recorder.calls[0]["timeout"] == 3


def test_default_timeout():
    assert SupabaseClient(BASE_URL, "k").timeout == client_module.REQUEST_TIMEOUT


# ─────────────────────────────────────────────────────────────────────────────
# AuthAdminService
# ─────────────────────────────────────────────────────────────────────────────
def test_verify_returns_identity(monkeypatch, supabase):
    recorder = Recorder(FakeResponse(200, {"id": "u-1", "email": "boss@example.com"}))
    monkeypatch.setattr(requests, "get", recorder)

    identity = AuthAdminService(supabase).verify("user-token")

    assert identity.id == "u-1"
    assert identity.email == "boss@example.com"
    assert recorder.calls[0]["url"] == BASE_URL + "/auth/v1/user"
    assert recorder.calls[0]["headers"]["Authorization"] == "Bearer user-token"


@pytest.mark.parametrize("status", [401, 403])
def test_verify_rejected_token(monkeypatch, supabase, status):
    monkeypatch.setattr(requests, "get", Recorder(FakeResponse(status, {"msg": "invalid JWT"})))

    with pytest.raises(InvalidTokenError):
        AuthAdminService(supabase).verify("bad")


def test_verify_without_user_id(monkeypatch, supabase):
    monkeypatch.setattr(requests, "get", Recorder(FakeResponse(200, {"email": "x@example.com"})))

    with pytest.raises(InvalidTokenError):
        AuthAdminService(supabase).verify("token")


def test_verify_propagates_server_errors(monkeypatch, supabase):
    monkeypatch.setattr(requests, "get", Recorder(FakeResponse(500, {"msg": "down"})))

    with pytest.raises(SupabaseAPIError) as exc:
        AuthAdminService(supabase).verify("token")
    assert not isinstance(exc.value, InvalidTokenError)


def test_create_user_payload(monkeypatch, supabase):
    recorder = Recorder(FakeResponse(200, {"id": "new-1", "email": "a@x.com", "user_metadata": {"full_name": "Ada"}}))
    monkeypatch.setattr(requests, "post", recorder)

    identity = AuthAdminService(supabase).create_user(
        "a@x.com", "pw123456", email_confirm=True, user_metadata={"full_name": "Ada"}
    )

    assert identity.id == "new-1"
    assert identity.metadata == {"full_name": "Ada"}
    call = recorder.calls[0]
    assert call["url"] == BASE_URL + "/auth/v1/admin/users"
    assert call["json"] == {
        "email": "a@x.com",
        "password": "pw123456",
        "email_confirm": True,
        "user_metadata": {"full_name": "Ada"},
    }


def test_create_user_unwraps_user_envelope(monkeypatch, supabase):
    monkeypatch.setattr(requests, "post", Recorder(FakeResponse(200, {"user": {"id": "new-2", "email": "b@x.com"}})))

    identity = AuthAdminService(supabase).create_user("b@x.com", "pw", email_confirm=False)

    assert identity.id == "new-2"


def test_create_user_without_user_returns_none(monkeypatch, supabase):
    monkeypatch.setattr(requests, "post", Recorder(FakeResponse(200, {"user": None})))

    assert AuthAdminService(supabase).create_user("b@x.com", "pw", email_confirm=True) is None


def test_delete_user_quotes_id(monkeypatch, supabase):
    recorder = Recorder(FakeResponse(200, {}))
    monkeypatch.setattr(requests, "delete", recorder)

    AuthAdminService(supabase).delete_user("a/b")

    assert recorder.calls[0]["url"] == BASE_URL + "/auth/v1/admin/users/a%2Fb"


# ─────────────────────────────────────────────────────────────────────────────
# ProfileService
# ─────────────────────────────────────────────────────────────────────────────
def test_select_role_requests_single_object(monkeypatch, supabase):
    recorder = Recorder(FakeResponse(200, {"role": "admin"}))
    monkeypatch.setattr(requests, "get", recorder)

    assert ProfileService(supabase).select_role("u-1") == "admin"

    call = recorder.calls[0]
    assert call["url"] == BASE_URL + "/rest/v1/profiles"
    assert call["params"] == {"id": "eq.u-1", "select": "role"}
    assert call["headers"]["Accept"] == "application/vnd.pgrst.object+json"


def test_select_role_missing_row(monkeypatch, supabase):
    monkeypatch.setattr(requests, "get", Recorder(
        FakeResponse(406, {"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows returned"})
    ))

    with pytest.raises(ProfileNotFoundError):
        ProfileService(supabase).select_role("ghost")


def test_select_role_accepts_list_response(monkeypatch, supabase):
    monkeypatch.setattr(requests, "get", Recorder(FakeResponse(200, [{"role": "user"}])))
    assert ProfileService(supabase).select_role("u-1") == "user"

    monkeypatch.setattr(requests, "get", Recorder(FakeResponse(200, [])))
    with pytest.raises(ProfileNotFoundError):
        ProfileService(supabase).select_role("u-1")


def test_insert_profile_row(monkeypatch, supabase):
    recorder = Recorder(FakeResponse(201, None))
    monkeypatch.setattr(requests, "post", recorder)
    profile = ProfileRecord(id="u-1", full_name=None, role="user", status="active", updated_at="2024-01-01T00:00:00+00:00")

    ProfileService(supabase).insert(profile)

    call = recorder.calls[0]
    assert call["json"] == {
        "id": "u-1",
        "full_name": None,
        "role": "user",
        "status": "active",
        "updated_at": "2024-01-01T00:00:00+00:00",
    }
    assert call["headers"]["Prefer"] == "return=minimal"
