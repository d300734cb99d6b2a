"""Admin user creation endpoint.

Pipeline per request, strictly sequential:

    gate (preflight, config, method) -> bearer token -> authorize
    -> parse body -> provision (identity, profile, rollback) -> audit -> respond

Every outcome is rendered as JSON by `handle_provisioning_error` or the
app-wide handlers in `useradmin.api.errors`; CORS headers are attached to
all of them by `useradmin.api.cors`.
"""

from __future__ import annotations
import logging

from flask import Blueprint, current_app, g, jsonify, request

from useradmin.api.cors import preflight_response
from useradmin.api.decorators import require_bearer_token
from useradmin.api.errors import error_response
from useradmin.core.errors import ConfigError, InternalError, MethodNotAllowed, ProvisioningError
from useradmin.core.provisioning_service import ProvisioningService
from useradmin.core.rbac import Authorizer
from useradmin.core.validators import parse_new_user_request

bp = Blueprint("users", __name__)

logger = logging.getLogger(__name__)

# Routing accepts every method so that the 405 body comes from this blueprint
ROUTE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@bp.errorhandler(ProvisioningError)
def handle_provisioning_error(error: ProvisioningError):
    return error_response(error)


def _stores():
    stores = current_app.config.get("STORES")
    if stores is None:
        raise ConfigError("Server configuration error")
    return stores


@bp.before_request
def gate_request():
    """Short-circuit preflight, missing configuration and wrong methods."""
    if request.method == "OPTIONS":
        return preflight_response()

    cfg = current_app.config["APP_CONFIG"]
    if cfg.store_config_missing or current_app.config.get("STORES") is None:
        logger.error("Missing %s", ", ".join(cfg.store_config_missing) or "store collaborators")
        raise ConfigError("Server configuration error")

    if request.method != "POST":
        raise MethodNotAllowed("Method not allowed")
    return None


def _read_payload():
    """Decode the JSON body; anything unparseable is an internal failure."""
    payload = request.get_json(force=True, silent=True)
    if payload is None:
        raise InternalError("Internal server error", details="Request body is not valid JSON")
    return payload


@bp.route("/admin-create-user", methods=ROUTE_METHODS)
@bp.route("/functions/v1/admin-create-user", methods=ROUTE_METHODS)
@require_bearer_token
def admin_create_user():
    """Create a user in the identity and profile stores (admin only)."""
    cfg = current_app.config["APP_CONFIG"]
    stores = _stores()

    authorizer = Authorizer(stores.identity, stores.profiles, admin_role=cfg.admin_role)
    caller = authorizer.authorize(g.access_token)

    new_user = parse_new_user_request(_read_payload())

    service = ProvisioningService(
        stores.identity,
        stores.profiles,
        default_role=cfg.default_role,
        default_status=cfg.default_status,
        assignable_roles=cfg.assignable_roles,
        allowed_statuses=cfg.allowed_statuses,
    )
    user = service.provision_user(caller, new_user)

    stores.audit.record_user_created(
        caller,
        user,
        new_user,
        role=service.resolve_role(new_user),
        status=service.resolve_status(new_user),
    )

    logger.info("Success! Returning user_id: %s", user.id)
    return jsonify(user.to_response()), 200
