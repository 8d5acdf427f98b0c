import logging
import traceback

from flask import jsonify, current_app, request
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from utils.exceptions import AppError, DuplicateAccount, StoreUnavailable

logger = logging.getLogger(__name__)


def error_response(error: str, message: str, status: int, details: dict | None = None, exc: BaseException | None = None):
    payload = {"success": False, "error": error, "message": message}
    if details:
        payload["details"] = details
    # stack traces only in debug (non-production diagnostic) mode
    if exc is not None and current_app and current_app.debug:
        payload["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return jsonify(payload), status


def register_error_handlers(app):
    # Typed failures from the stores, session service and access guard
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if err.status_code >= 500:
            logger.error("%s: %s", err.error, err.message, exc_info=err)
        return error_response(err.error, err.message, err.status_code, exc=err)

    # 404 Not Found (unknown routes)
    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", f"Route {request.path} not found", 404)

    # 429 Too Many Requests (Flask-Limiter)
    @app.errorhandler(429)
    def rate_limited(e):
        logger.warning("Rate limit exceeded for %s on %s (%s)", request.remote_addr, request.path, getattr(e, "description", ""))
        return error_response("RATE_LIMITED", "Too many requests from this IP, please try again later.", 429)

    # Marshmallow validation errors map to 400
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("VALIDATION_ERROR", _first_message(err.messages), 400, details=err.messages)

    # Integrity errors (unique email raced past the up-front check)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err)).lower()
        if "unique" in message or "duplicate" in message:
            dup = DuplicateAccount()
            return error_response(dup.error, dup.message, dup.status_code, exc=err)
        logger.exception("Integrity error", exc_info=err)
        return error_response("BAD_REQUEST", "Integrity error.", 400, exc=err)

    # Any other database failure surfaces as the store being unavailable
    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(err: SQLAlchemyError):
        logger.exception("Database error", exc_info=err)
        unavailable = StoreUnavailable()
        return error_response(unavailable.error, unavailable.message, unavailable.status_code, exc=err)

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
        return error_response("INTERNAL_ERROR", "Something went very wrong", 500, exc=err)


def _first_message(messages) -> str:
    """Flatten marshmallow's nested messages to the first human-readable one."""
    while isinstance(messages, (dict, list)) and messages:
        messages = next(iter(messages.values())) if isinstance(messages, dict) else messages[0]
    return messages if isinstance(messages, str) else "Invalid input data"
