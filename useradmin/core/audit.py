"""Audit logging for provisioning operations.

Two sinks are available:
- SupabaseAuditSink: calls the `admin_create_audit_log` RPC
- JsonlAuditSink: append-only JSONL file with HMAC-SHA256 signatures

Auditing never affects the outcome of a request: `AuditService.record`
catches and logs every sink failure.
"""
from __future__ import annotations
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Iterable, Optional

from useradmin.core.models import AuditLogEntry, Caller, NewUserRequest, ProvisionedUser

logger = logging.getLogger(__name__)

ACTION_USER_CREATED = "user_created"
PROFILES_TABLE = "profiles"
AUDIT_RPC_PATH = "/rest/v1/rpc/admin_create_audit_log"
AUDIT_LOG_FILENAME = "admin-events.jsonl"


def _sign_event(event: dict[str, Any], signing_key: bytes) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    if not signing_key:
        return ""
    # Canonical JSON representation for signing
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


class SupabaseAuditSink:
    """Append audit entries through the database RPC."""

    def __init__(self, client):
        self.client = client

    def append(self, entry: AuditLogEntry) -> None:
        # The RPC stamps its own timestamp
        params = {f"p_{key}": value for key, value in entry.to_dict().items() if key != "timestamp"}
        self.client.post(AUDIT_RPC_PATH, json=params)


class JsonlAuditSink:
    """Append audit entries to a signed JSONL file."""

    def __init__(self, directory: str | Path, signing_key: str = ""):
        self.directory = Path(directory)
        self.path = self.directory / AUDIT_LOG_FILENAME
        self.signing_key = signing_key.strip().encode("utf-8")

    def _ensure_dir(self) -> None:
        """Create audit directory with restricted permissions."""
        self.directory.mkdir(parents=True, exist_ok=True)
        self.directory.chmod(0o700)

    def append(self, entry: AuditLogEntry) -> None:
        self._ensure_dir()

        event = entry.to_dict()
        signature = _sign_event(event, self.signing_key)
        if signature:
            event["signature"] = signature

        # One JSON object per line
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event, ensure_ascii=False) + "\n")

        self.path.chmod(0o600)

    def verify(self) -> tuple[int, int]:
        """Verify all signatures in the audit log.

        Returns:
            Tuple of (total_events, valid_signatures)
        """
        if not self.path.exists():
            return 0, 0

        total = 0
        valid = 0

        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                total += 1
                try:
                    event = json.loads(line)
                except json.JSONDecodeError:
                    continue
                stored_sig = event.pop("signature", "")
                if not stored_sig:
                    continue
                computed_sig = _sign_event(event, self.signing_key)
                if computed_sig and hmac.compare_digest(stored_sig, computed_sig):
                    valid += 1

        return total, valid


class AuditService:
    """Fan an audit entry out to every configured sink."""

    def __init__(self, sinks: Iterable[Any]):
        self.sinks = list(sinks)

    def record(self, entry: AuditLogEntry) -> bool:
        """Append entry to all sinks; never raises.

        Returns:
            True if every sink accepted the entry
        """
        all_ok = True
        for sink in self.sinks:
            try:
                sink.append(entry)
            except Exception as exc:
                all_ok = False
                logger.error(
                    "Audit log error (%s) for %s on %s: %s",
                    type(sink).__name__, entry.action_type, entry.record_id, exc,
                )
        if all_ok and self.sinks:
            logger.info("Audit log created for %s", entry.record_id)
        return all_ok

    def record_user_created(
        self,
        caller: Caller,
        user: ProvisionedUser,
        new_user: NewUserRequest,
        *,
        role: str,
        status: str,
    ) -> bool:
        try:
            entry = user_created_entry(caller, user, new_user, role=role, status=status)
        except Exception as exc:
            logger.error("Audit entry could not be built for %s: %s", user.id, exc)
            return False
        return self.record(entry)


def user_created_entry(
    caller: Caller,
    user: ProvisionedUser,
    new_user: NewUserRequest,
    *,
    role: str,
    status: str,
) -> AuditLogEntry:
    """Describe a completed provisioning. Passwords are never included."""
    return AuditLogEntry(
        admin_user_id=caller.id,
        action_type=ACTION_USER_CREATED,
        table_name=PROFILES_TABLE,
        record_id=user.id,
        new_values={
            "email": user.email,
            "full_name": new_user.full_name,
            "role": role,
            "status": status,
        },
        metadata={"send_verification_email": bool(new_user.send_verification_email)},
    )


def build_audit_sinks(cfg, client: Optional[Any] = None) -> list[Any]:
    """Sinks enabled by configuration."""
    sinks: list[Any] = []
    if client is not None:
        sinks.append(SupabaseAuditSink(client))
    if cfg.audit_log_file_enabled:
        sinks.append(JsonlAuditSink(cfg.audit_log_dir, cfg.audit_log_signing_key))
    return sinks


def verify_audit_log(directory: str | Path, signing_key: str = "") -> tuple[int, int]:
    """Verify the signatures of the JSONL audit log in directory.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    return JsonlAuditSink(directory, signing_key).verify()


if __name__ == "__main__":
    import sys
    total, valid = verify_audit_log(
        os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"),
        os.environ.get("AUDIT_LOG_SIGNING_KEY", ""),
    )
    print(f"Audit log: {valid}/{total} events with valid signatures")
    sys.exit(0 if total == valid else 1)
