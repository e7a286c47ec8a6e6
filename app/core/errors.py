"""
Error taxonomy shared by services, routes and the HTTP client.
Every AppError carries an HTTP status, a stable code and a short user-facing message.
Raw internal details go to logs only (detail), never to the caller.
"""
from typing import Any


class AppError(Exception):
    status_code: int = 500
    code: str = "internal"
    default_message: str = "Something went wrong. Please try again later."
    retryable: bool = False

    def __init__(self, message: str | None = None, detail: dict[str, Any] | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.detail = detail or {}

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message, "code": self.code}


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class Unauthorized(AppError):
    status_code = 401
    code = "unauthorized"
    default_message = "Please log in to continue"


class InsufficientBalance(AppError):
    status_code = 402
    code = "insufficient_balance"
    default_message = "Not enough coins to unlock this chapter"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "You are not allowed to do this"


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class AlreadyUnlocked(AppError):
    status_code = 409
    code = "already_unlocked"
    default_message = "You have already unlocked this chapter"


class RateLimited(AppError):
    status_code = 429
    code = "rate_limited"
    default_message = "Too many attempts. Try again in a minute."


class InternalError(AppError):
    retryable = True


class StorageError(InternalError):
    code = "storage_error"
    default_message = "Failed to access image storage"


class EmailDeliveryError(InternalError):
    code = "email_delivery_failed"
    default_message = "Failed to send email"


_BY_STATUS: dict[int, type[AppError]] = {
    400: ValidationError,
    401: Unauthorized,
    402: InsufficientBalance,
    403: Forbidden,
    404: NotFound,
    409: AlreadyUnlocked,
    429: RateLimited,
}


def error_from_response(status_code: int, message: str | None = None, code: str | None = None) -> AppError:
    """Rebuild the matching AppError from an HTTP error response (used by app.client)."""
    cls = _BY_STATUS.get(status_code)
    if cls is None:
        cls = InternalError if status_code >= 500 else ValidationError
    error = cls(message)
    if code:
        error.code = code
    return error
