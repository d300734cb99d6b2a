"""Pytest shared fixtures: in-memory stores and a Flask test client."""
import pathlib
import sys
import threading
import uuid

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from useradmin.config.settings import AppConfig
from useradmin.core.audit import AuditService
from useradmin.core.models import IdentityRecord
from useradmin.core.stores import Stores
from useradmin.core.supabase.exceptions import (
    InvalidTokenError,
    ProfileNotFoundError,
    SupabaseAPIError,
    UserAlreadyExistsError,
)
from useradmin.flask_app import create_app


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from hitting a live Supabase project.

    Tests that exercise the HTTP client install their own stubs on top of
    these; integration tests marked @pytest.mark.integration are exempt.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _forbidden(method):
        def _stub(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _stub

    monkeypatch.setattr(requests, "get", _forbidden("GET"))
    monkeypatch.setattr(requests, "post", _forbidden("POST"))
    monkeypatch.setattr(requests, "delete", _forbidden("DELETE"))


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Stores
# ─────────────────────────────────────────────────────────────────────────────
class FakeIdentityStore:
    """Auth users keyed by id, with email uniqueness and fault injection."""

    def __init__(self):
        self._lock = threading.Lock()
        self.users: dict[str, IdentityRecord] = {}
        self.passwords: dict[str, str] = {}
        self.tokens: dict[str, str] = {}
        self.create_calls: list[dict] = []
        self.delete_calls: list[str] = []
        self.verify_calls: list[str] = []
        self.fail_delete = False
        self.return_no_user = False

    def add_user(self, email: str, token: str | None = None) -> IdentityRecord:
        identity = IdentityRecord(id=str(uuid.uuid4()), email=email, metadata={})
        self.users[identity.id] = identity
        if token:
            self.tokens[token] = identity.id
        return identity

    def has_email(self, email: str) -> bool:
        return any(user.email == email for user in self.users.values())

    def verify(self, access_token):
        self.verify_calls.append(access_token)
        user_id = self.tokens.get(access_token)
        if user_id is None or user_id not in self.users:
            raise InvalidTokenError("invalid JWT")
        return self.users[user_id]

    def create_user(self, email, password, *, email_confirm, user_metadata=None):
        self.create_calls.append({
            "email": email,
            "email_confirm": email_confirm,
            "user_metadata": user_metadata,
        })
        if self.return_no_user:
            return None
        with self._lock:
            if self.has_email(email):
                raise UserAlreadyExistsError(
                    422,
                    "A user with this email address has already been registered",
                    "/auth/v1/admin/users",
                    "email_exists",
                )
            identity = IdentityRecord(id=str(uuid.uuid4()), email=email, metadata=dict(user_metadata or {}))
            self.users[identity.id] = identity
            self.passwords[identity.id] = password
            return identity

    def delete_user(self, user_id):
        self.delete_calls.append(user_id)
        if self.fail_delete:
            raise SupabaseAPIError(500, "database unavailable", f"/auth/v1/admin/users/{user_id}")
        with self._lock:
            self.users.pop(user_id, None)

    @property
    def mutation_count(self) -> int:
        return len(self.create_calls) + len(self.delete_calls)


class FakeProfileStore:
    """Profile rows keyed by id, with fault injection."""

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.insert_calls: list[dict] = []
        self.fail_insert = False
        self.fail_select = False

    def set_role(self, user_id: str, role: str) -> None:
        self.rows[user_id] = {"id": user_id, "role": role}

    def select_role(self, user_id):
        if self.fail_select:
            raise SupabaseAPIError(500, "relation does not exist", "/rest/v1/profiles")
        row = self.rows.get(user_id)
        if row is None:
            raise ProfileNotFoundError(f"No profile for user {user_id}")
        return row.get("role")

    def insert(self, profile):
        row = profile.to_row()
        self.insert_calls.append(row)
        if self.fail_insert:
            raise SupabaseAPIError(409, "duplicate key value violates unique constraint", "/rest/v1/profiles", "23505")
        self.rows[profile.id] = row


class FakeAuditSink:
    def __init__(self):
        self.entries = []
        self.fail = False

    def append(self, entry):
        if self.fail:
            raise RuntimeError("audit table is read-only")
        self.entries.append(entry)


# ─────────────────────────────────────────────────────────────────────────────
# Application Fixtures
# ─────────────────────────────────────────────────────────────────────────────
ADMIN_TOKEN = "admin-access-token"
USER_TOKEN = "user-access-token"


def make_config(**overrides) -> AppConfig:
    base = dict(
        supabase_url="http://supabase.test",
        supabase_service_role_key="service-role-key",
    )
    base.update(overrides)
    return AppConfig(**base)


@pytest.fixture()
def identity_store():
    return FakeIdentityStore()


@pytest.fixture()
def profile_store():
    return FakeProfileStore()


@pytest.fixture()
def audit_sink():
    return FakeAuditSink()


@pytest.fixture()
def stores(identity_store, profile_store, audit_sink):
    admin = identity_store.add_user("admin@example.com", token=ADMIN_TOKEN)
    profile_store.set_role(admin.id, "admin")
    member = identity_store.add_user("member@example.com", token=USER_TOKEN)
    profile_store.set_role(member.id, "user")
    return Stores(identity=identity_store, profiles=profile_store, audit=AuditService([audit_sink]))


@pytest.fixture()
def app(stores):
    flask_app = create_app(make_config(), stores=stores)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


def auth_headers(token: str = ADMIN_TOKEN) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires running stack)"
    )
