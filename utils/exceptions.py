"""
Typed failures raised by the stores, the session service and the access guard.

Every AppError carries the HTTP status and error code the boundary layer
renders (see api/errors.py).
"""


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings (signing secrets) are missing."""


class AppError(Exception):
    status_code = 500
    error = "INTERNAL_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidInput(AppError):
    status_code = 400
    error = "VALIDATION_ERROR"
    message = "Invalid input"


class DuplicateAccount(AppError):
    status_code = 400
    error = "DUPLICATE_ACCOUNT"
    message = "Admin with this email already exists"


class InvalidCredentials(AppError):
    status_code = 401
    error = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class AccountDeactivated(AppError):
    status_code = 401
    error = "ACCOUNT_DEACTIVATED"
    message = "Account is deactivated"


class InvalidRefreshToken(AppError):
    status_code = 401
    error = "INVALID_REFRESH_TOKEN"
    message = "Invalid or expired refresh token"


class ReuseDetected(AppError):
    status_code = 401
    error = "REFRESH_TOKEN_REUSE"
    message = "Refresh token reuse detected. All sessions revoked. Please log in again."


class TokenExpired(AppError):
    status_code = 401
    error = "TOKEN_EXPIRED"
    message = "Token expired"


class InvalidToken(AppError):
    status_code = 401
    error = "INVALID_TOKEN"
    message = "Token is not valid"


class Forbidden(AppError):
    status_code = 403
    error = "FORBIDDEN"
    message = "Not allowed to access this route"


class NotFound(AppError):
    status_code = 404
    error = "NOT_FOUND"
    message = "Resource not found"


class StoreUnavailable(AppError):
    status_code = 500
    error = "STORE_UNAVAILABLE"
    message = "Database connection error. Please try again later."
