from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
import logging

from utils.exceptions import AuthError, StoreUnavailable

logger = logging.getLogger(__name__)


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Marshmallow validation errors map to 400
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("VALIDATION_ERROR", "Please correct input errors", 400, details=err.messages)

    # Store outages: logged here once, never echoed to the client
    @app.errorhandler(StoreUnavailable)
    def handle_store_unavailable(err: StoreUnavailable):
        logger.error("%s", err.message, exc_info=err)
        return error_response(err.error, StoreUnavailable.default_message, err.status_code)

    # Session and authorization failures carry their own status
    @app.errorhandler(AuthError)
    def handle_auth_error(err: AuthError):
        return error_response(err.error, err.message, err.status_code, details=err.details)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        code = err.code or 400
        error = (err.name or "Bad Request").upper().replace(" ", "_")
        return error_response(error, err.description, code)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        # In dev, include exception details to speed up debugging
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
