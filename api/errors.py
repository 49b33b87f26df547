import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError

from services.errors import AuthError, StorageError

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    415: "UNSUPPORTED_MEDIA_TYPE",
    422: "VALIDATION_ERROR",
}


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details; password values never echo back
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    @app.errorhandler(StorageError)
    def handle_storage_error(err: StorageError):
        # The cause may hold raw SQL; it stays in the server log only
        logger.error("Storage failure", exc_info=err.__cause__ or err)
        return error_response(err.error, err.message, err.status)

    # Credential core errors carry their own status
    @app.errorhandler(AuthError)
    def handle_auth_error(err: AuthError):
        return error_response(err.error, err.message, err.status)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 400
        return error_response(_HTTP_CODES.get(status, "BAD_REQUEST"), err.description, status)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)
