"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path

SECRETS_DIR = Path("/run/secrets")


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name

    # Priority 1: Read from /run/secrets
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    # Priority 2: Fallback to environment variable
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _split_csv(raw: str) -> list[str]:
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


def _get_bool(var_name: str, default: str = "false") -> bool:
    return os.environ.get(var_name, default).strip().lower() == "true"


@dataclass
class AppConfig:
    """Application configuration container."""
    # Supabase backend
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    request_timeout: float = 10.0

    # Roles and statuses
    admin_role: str = "admin"
    default_role: str = "user"
    default_status: str = "active"
    assignable_roles: list[str] = field(default_factory=lambda: ["admin", "user"])
    allowed_statuses: list[str] = field(default_factory=lambda: ["active", "inactive", "suspended"])

    # Audit
    audit_log_file_enabled: bool = False
    audit_log_dir: str = ".runtime/audit"
    audit_log_signing_key: str = ""

    # HTTP
    max_content_length: int = 65536
    log_level: str = "INFO"

    @property
    def store_config_missing(self) -> list[str]:
        """Names of the store settings that are absent.

        Startup never fails on these; the provisioning endpoint reports a
        configuration error per request instead.
        """
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_service_role_key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")
        return missing

    @property
    def local_jwt_check_enabled(self) -> bool:
        return bool(self.supabase_jwt_secret)


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    supabase_url = os.environ.get("SUPABASE_URL", "").strip().rstrip("/")

    service_role_key = _load_secret_from_file(
        "supabase_service_role_key",
        "SUPABASE_SERVICE_ROLE_KEY",
    ) or ""

    jwt_secret = _load_secret_from_file("supabase_jwt_secret", "SUPABASE_JWT_SECRET") or ""

    audit_log_signing_key = _load_secret_from_file(
        "audit_log_signing_key",
        "AUDIT_LOG_SIGNING_KEY",
    ) or ""

    try:
        request_timeout = float(os.environ.get("SUPABASE_REQUEST_TIMEOUT", "10"))
    except ValueError:
        print("[settings] ✗ SUPABASE_REQUEST_TIMEOUT is not a number; using 10s")
        request_timeout = 10.0

    try:
        max_content_length = int(os.environ.get("MAX_CONTENT_LENGTH", "65536"))
    except ValueError:
        print("[settings] ✗ MAX_CONTENT_LENGTH is not an integer; using 65536")
        max_content_length = 65536

    # Roles
    admin_role = os.environ.get("ADMIN_ROLE", "admin").strip().lower() or "admin"
    default_role = os.environ.get("DEFAULT_ROLE", "user").strip().lower() or "user"
    default_status = os.environ.get("DEFAULT_STATUS", "active").strip().lower() or "active"

    assignable_roles = _split_csv(os.environ.get("ASSIGNABLE_ROLES", f"{admin_role},{default_role}"))
    for role in (admin_role, default_role):
        if role not in assignable_roles:
            assignable_roles.append(role)

    allowed_statuses = _split_csv(os.environ.get("ALLOWED_STATUSES", "active,inactive,suspended"))
    if default_status not in allowed_statuses:
        allowed_statuses.append(default_status)

    cfg = AppConfig(
        supabase_url=supabase_url,
        supabase_service_role_key=service_role_key,
        supabase_jwt_secret=jwt_secret,
        request_timeout=request_timeout,
        admin_role=admin_role,
        default_role=default_role,
        default_status=default_status,
        assignable_roles=assignable_roles,
        allowed_statuses=allowed_statuses,
        audit_log_file_enabled=_get_bool("AUDIT_LOG_FILE_ENABLED"),
        audit_log_dir=os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"),
        audit_log_signing_key=audit_log_signing_key,
        max_content_length=max_content_length,
        log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )

    print(f"[settings] supabase_url={supabase_url or '<unset>'}; admin_role={admin_role}")
    if cfg.store_config_missing:
        print(f"[settings] WARNING: missing {', '.join(cfg.store_config_missing)}; provisioning requests will fail")

    return cfg
