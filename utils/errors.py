"""Application error taxonomy.

Every domain error carries the HTTP status it maps to and a message that is
safe to show to the caller. The exception handlers registered in ``main.py``
are the only place these are rendered into responses.

Example:
    >>> raise ConflictError("Email already registered for this gym")
"""

from typing import Any, Dict


class AppError(Exception):
    """Base class for errors that translate into an HTTP error envelope.

    Args:
        message: Caller-facing message
        status_code: HTTP status for the response
        **context: Extra fields for server-side logging (never rendered)
    """

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str = "", status_code: int = 0, **context: Any):
        self.message = message or self.default_message
        if status_code:
            self.status_code = status_code
        self.context: Dict[str, Any] = context
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, message={self.message!r})"


class BadRequestError(AppError):
    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Not authenticated"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists"


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing or invalid.

    Not an ``AppError``: it aborts process initialization and is never
    rendered to a client.
    """
    pass
