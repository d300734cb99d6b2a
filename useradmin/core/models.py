"""Records exchanged between the provisioning components."""
from __future__ import annotations
import datetime
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Optional


def utc_now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@dataclass(frozen=True)
class Caller:
    """Authenticated user making the request."""
    id: str
    role: Optional[str]


@dataclass
class NewUserRequest:
    """Payload of a provisioning request.

    Only shape is enforced here; required fields and role/status domains
    are checked by the provisioning service before any store is touched.
    """
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    send_verification_email: bool = False


@dataclass
class IdentityRecord:
    id: str
    email: Optional[str]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProfileRecord:
    id: str
    full_name: Optional[str]
    role: str
    status: str
    updated_at: str = field(default_factory=utc_now_iso)

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AuditLogEntry:
    admin_user_id: str
    action_type: str
    table_name: str
    record_id: str
    new_values: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProvisionedUser:
    id: str
    email: str

    def to_response(self) -> dict[str, Any]:
        return {"success": True, "user_id": self.id, "email": self.email}


class CompensationStatus(str, Enum):
    OK = "ok"
    FAILED = "compensation_failed"


@dataclass(frozen=True)
class CompensationResult:
    """Outcome of deleting an orphaned identity record."""
    status: CompensationStatus
    user_id: str
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is CompensationStatus.OK
