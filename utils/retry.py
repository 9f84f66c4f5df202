"""Retry Utilities

Exponential backoff for async operations, built on ``tenacity``. Used at
startup to wait for the database to accept connections.

Example:
    >>> from utils.retry import retry_with_backoff
    >>>
    >>> @retry_with_backoff(max_attempts=5, exceptions=(OSError,))
    ... async def connect():
    ...     return await engine.connect()
"""

import logging
from functools import wraps
from typing import Callable, Optional, Tuple, Type

from tenacity import (
    AsyncRetrying,
    after_log,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import settings

logger = logging.getLogger(__name__)


def retry_with_backoff(
    max_attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    max_delay: float = 30.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    logger_instance: Optional[logging.Logger] = None
):
    """Decorator for retrying async functions with exponential backoff.

    The last exception is re-raised once attempts are exhausted.

    Args:
        max_attempts: Maximum attempts (default: settings.DATABASE_CONNECT_ATTEMPTS)
        base_delay: Initial delay in seconds (default: settings.DATABASE_CONNECT_DELAY)
        max_delay: Maximum delay between attempts in seconds
        exceptions: Exception types that trigger a retry
        logger_instance: Custom logger (default: module logger)

    Returns:
        Decorated async function with retry logic
    """
    max_attempts = max_attempts or settings.DATABASE_CONNECT_ATTEMPTS
    base_delay = base_delay if base_delay is not None else settings.DATABASE_CONNECT_DELAY
    log = logger_instance or logger

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_exponential(multiplier=base_delay, max=max_delay),
                retry=retry_if_exception_type(exceptions),
                before_sleep=before_sleep_log(log, logging.WARNING),
                after=after_log(log, logging.DEBUG),
                reraise=True
            ):
                with attempt:
                    return await func(*args, **kwargs)

        return wrapper

    return decorator
