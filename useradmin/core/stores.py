"""Collaborators shared by every request, built once at startup."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from useradmin.core.audit import AuditService, build_audit_sinks
from useradmin.core.supabase import AuthAdminService, ProfileService, SupabaseClient


@dataclass(frozen=True)
class Stores:
    """Identity store, profile store and audit service.

    Any object with the same methods can stand in, which is how tests
    inject in-memory doubles.
    """
    identity: Any
    profiles: Any
    audit: AuditService


def build_stores(cfg) -> Stores | None:
    """Create the Supabase-backed collaborators.

    Returns:
        None when the store configuration is incomplete
    """
    if cfg.store_config_missing:
        return None

    client = SupabaseClient(cfg.supabase_url, cfg.supabase_service_role_key, timeout=cfg.request_timeout)
    return Stores(
        identity=AuthAdminService(client),
        profiles=ProfileService(client),
        audit=AuditService(build_audit_sinks(cfg, client)),
    )
