# Overview: JSON error responses for the service-layer exception taxonomy.

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from .services.auth_service import AuthenticationError
from .services.tenant_service import AuthorizationError
from .validation import ConflictError, NotFoundError, ValidationError


def register_error_handlers(app) -> None:
    """
    Map domain exceptions to HTTP responses.

    SECURITY: AuthorizationError always renders the same body, so a missing
    record and another farm's record look identical to the client.
    """

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return jsonify({"error": "Validation failed", "errors": exc.errors}), 422

    @app.errorhandler(AuthenticationError)
    def handle_authentication_error(exc: AuthenticationError):
        return jsonify({"error": str(exc)}), 401

    @app.errorhandler(AuthorizationError)
    def handle_authorization_error(exc: AuthorizationError):
        return jsonify({"error": "Not authorized"}), 403

    @app.errorhandler(NotFoundError)
    def handle_not_found(exc: NotFoundError):
        return jsonify({"error": str(exc) or "Not found"}), 404

    @app.errorhandler(ConflictError)
    def handle_conflict(exc: ConflictError):
        return jsonify({"error": str(exc)}), 409

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return jsonify({"error": exc.description or exc.name}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500
