"""Error handlers for the application.

Every error is rendered as JSON `{error[, details]}`; the provisioning
blueprint handles its own typed errors, these cover everything else.
"""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from useradmin.core.errors import ProvisioningError


def error_response(error: ProvisioningError):
    """Render a typed provisioning error."""
    return jsonify(error.to_dict()), error.status


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(ProvisioningError)
    def provisioning_error(error):
        return error_response(error)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(413)
    def request_too_large(error):
        return jsonify({"error": "Request payload too large"}), 413

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        if isinstance(error, HTTPException):
            return jsonify({"error": error.name}), error.code

        # ALWAYS log the full error - logs are secure
        app.logger.error(f"Unexpected error: {error}", exc_info=True)

        return jsonify({
            "error": "Internal server error",
            "details": str(error) or type(error).__name__,
        }), 500
