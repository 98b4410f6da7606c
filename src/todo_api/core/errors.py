"""Application error taxonomy.

Services raise these; the HTTP layer maps them to status codes and a
``{"msg": ...}`` body. Messages are user-visible and must stay generic.
"""


class AppError(Exception):
    """Base class for errors that carry a user-visible message and status."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AppError):
    status_code = 400
    default_message = "Invalid input"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthorized"


class InvalidToken(Unauthorized):
    """Token is malformed, tampered with, expired or otherwise unverifiable."""

    default_message = "Invalid token"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class TooManyRequests(AppError):
    status_code = 429
    default_message = "Too Many Requests"

    def __init__(self, message: str | None = None, retry_after: int = 0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class Internal(AppError):
    status_code = 500
    default_message = "Internal Server Error"


class Unavailable(AppError):
    status_code = 503
    default_message = "Service unavailable"
