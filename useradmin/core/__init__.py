"""Core Business Logic Module

Provisioning logic independent of the HTTP layer.

Module Structure:
    - supabase/               : Supabase auth + REST API client
    - provisioning_service.py : Identity/profile creation with rollback
    - rbac.py                 : Caller resolution and admin role check
    - audit.py                : Audit sinks (database RPC, signed JSONL file)
    - validators.py           : Request parsing and validation
    - models.py               : Records passed between components
    - errors.py               : Typed failures mapped to HTTP statuses
    - stores.py               : Collaborator bundle built at startup

Usage Pattern:
    Import explicitly when needed:
        from useradmin.core.provisioning_service import ProvisioningService
        from useradmin.core.rbac import Authorizer
        from useradmin.core.stores import build_stores
"""
