"""Gunicorn configuration file with secret loading.

Secret Loading Priority (post_fork hook):
1. /run/secrets (Docker secrets) -> read by useradmin.config.settings
2. Azure Key Vault direct access (only when AZURE_USE_KEYVAULT=true and
   /run/secrets is empty; requires the `keyvault` extra)

The app is not preloaded, so each worker builds it after post_fork has
populated the environment.
"""
import os

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
wsgi_app = "useradmin.flask_app:app"
accesslog = "-"
errorlog = "-"
preload_app = False


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Loads missing secrets from Azure Key Vault into the environment when
    enabled and no Docker secrets are mounted.
    """
    from pathlib import Path
    secrets_dir = Path("/run/secrets")
    if secrets_dir.exists() and secrets_dir.is_dir():
        secret_files = list(secrets_dir.glob("*"))
        if secret_files:
            worker.log.info(f"Found {len(secret_files)} secrets in /run/secrets (using mounted secrets)")
            return

    use_kv = os.environ.get("AZURE_USE_KEYVAULT", "false").lower() == "true"
    if not use_kv:
        worker.log.info("Skipping Azure Key Vault direct access (AZURE_USE_KEYVAULT=false)")
        return

    try:
        from azure.identity import DefaultAzureCredential
        from azure.keyvault.secrets import SecretClient
    except ImportError:
        worker.log.error("Azure Key Vault requested but azure-keyvault-secrets not installed")
        return

    vault_name = os.environ.get("AZURE_KEY_VAULT_NAME")
    if not vault_name:
        worker.log.error("AZURE_KEY_VAULT_NAME required when AZURE_USE_KEYVAULT=true")
        return

    vault_uri = f"https://{vault_name}.vault.azure.net"
    secret_client = SecretClient(vault_url=vault_uri, credential=DefaultAzureCredential())

    # Map environment variables to Key Vault secret names
    secret_mapping = {
        "SUPABASE_SERVICE_ROLE_KEY": os.environ.get(
            "AZURE_SECRET_SUPABASE_SERVICE_ROLE_KEY", "supabase-service-role-key"
        ),
        "SUPABASE_JWT_SECRET": os.environ.get("AZURE_SECRET_SUPABASE_JWT_SECRET", "supabase-jwt-secret"),
        "AUDIT_LOG_SIGNING_KEY": os.environ.get("AZURE_SECRET_AUDIT_LOG_SIGNING_KEY", "audit-log-signing-key"),
    }

    for env_name, secret_name in secret_mapping.items():
        if os.environ.get(env_name):
            continue
        secret_name = secret_name.strip()
        if not secret_name:
            continue
        try:
            secret = secret_client.get_secret(secret_name)
            os.environ[env_name] = secret.value
            worker.log.info(f"Loaded secret '{secret_name}' into {env_name}")
        except Exception as exc:
            worker.log.error(f"Failed to load secret '{secret_name}': {exc}")
