"""Error handlers for the application."""
import logging

from flask import jsonify

from app_identity.core.current_user import AuthenticationCredentialsNotFoundError
from app_identity.core.keycloak.exceptions import UserInfoLookupError

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request errors."""
        return jsonify({"error": "Bad Request", "message": getattr(error, "description", str(error))}), 400

    @app.errorhandler(401)
    def unauthorized(error):
        """Handle 401 Unauthorized errors."""
        return jsonify({"error": "Unauthorized", "message": "Authentication required"}), 401

    @app.errorhandler(AuthenticationCredentialsNotFoundError)
    def no_current_user(error):
        """Handle CurrentUser.require() outside an authenticated request."""
        return jsonify({"error": "Unauthorized", "message": str(error)}), 401

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        return jsonify({"error": "Not Found", "message": "Resource not found"}), 404

    @app.errorhandler(UserInfoLookupError)
    def lookup_unavailable(error):
        """Handle identity provider failures during user lookups."""
        logger.error("User info lookup failed: %s", error)
        return jsonify({"error": "Bad Gateway", "message": "User information is temporarily unavailable"}), 502

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error."""
        logger.error("Internal error: %s", error, exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500
