"""Utility modules for the Gym Check-in Service

Provides the application error taxonomy and retry logic.
"""

from utils.errors import (
    AppError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    ConfigurationError,
)

from utils.retry import retry_with_backoff

__all__ = [
    # Errors
    "AppError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "ConfigurationError",

    # Retry utilities
    "retry_with_backoff",
]
