"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, error handlers and the store
collaborators shared by every request.
"""
from __future__ import annotations
import logging
from typing import Optional

from flask import Flask

from useradmin.config import AppConfig, load_settings
from useradmin.core.stores import Stores, build_stores


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, stores: Optional[Stores] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Configuration (loaded from the environment when omitted)
        stores: Store collaborators (built from cfg when omitted)
    """
    cfg = cfg or load_settings()
    _configure_logging(cfg)

    app = Flask(__name__)

    # Read-only for the lifetime of the process
    app.config["APP_CONFIG"] = cfg
    app.config["STORES"] = stores if stores is not None else build_stores(cfg)
    app.config["MAX_CONTENT_LENGTH"] = cfg.max_content_length

    from useradmin.api import cors, errors, health, users

    app.register_blueprint(health.bp)
    app.register_blueprint(users.bp)

    errors.register_error_handlers(app)
    cors.init_cors(app)

    if app.config["STORES"] is None:
        app.logger.warning("Store configuration incomplete; provisioning requests will answer 500")
    print("[flask_app] Admin user provisioning registered at /admin-create-user")

    return app


def _configure_logging(cfg: AppConfig) -> None:
    level = getattr(logging, cfg.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("useradmin").setLevel(level)


# ─────────────────────────────────────────────────────────────────────────────
# Application Instance (for Gunicorn)
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=False)
