"""Health check endpoints."""
from flask import Blueprint, current_app, jsonify

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Basic health check endpoint."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Readiness check: store configuration must be present."""
    cfg = current_app.config["APP_CONFIG"]
    missing = cfg.store_config_missing
    if missing or current_app.config.get("STORES") is None:
        return jsonify({"status": "not ready", "missing": missing}), 503
    return ("ready", 200, {"Content-Type": "text/plain"})
