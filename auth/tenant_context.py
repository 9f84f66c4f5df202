"""Tenant Context Management

Holds the authenticated gym id for the duration of a request so that code far
from the route (logging, repositories) can see which tenant it is serving.

The value is only ever set from a verified access token, by the access
control dependency. Nothing here reads tenant ids from request headers.

Example:
    >>> set_tenant_context("gym-123")
    >>> get_tenant_context()
    'gym-123'
"""

import logging
from contextvars import ContextVar
from typing import Optional

logger = logging.getLogger(__name__)

# Context variable for storing gym id across async calls
_tenant_context: ContextVar[Optional[str]] = ContextVar("tenant_context", default=None)


def set_tenant_context(gym_id: str) -> None:
    """Set the gym id in the current context.

    Args:
        gym_id: Gym identifier to set
    """
    _tenant_context.set(gym_id)
    logger.debug(f"Tenant context set: {gym_id}")


def get_tenant_context() -> Optional[str]:
    """Get the gym id from the current context.

    Returns:
        Current gym id, or None if not set
    """
    return _tenant_context.get()


def clear_tenant_context() -> None:
    """Clear the tenant context.

    Useful for cleanup in test scenarios or error handling.
    """
    _tenant_context.set(None)


class TenantLogFilter(logging.Filter):
    """Stamp the current gym id onto every log record as ``gym_id``.

    Example:
        >>> handler.addFilter(TenantLogFilter())
        >>> logging.basicConfig(format="%(gym_id)s %(message)s")
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "gym_id"):
            record.gym_id = get_tenant_context() or "-"
        return True


class TenantContextMiddleware:
    """ASGI middleware that guarantees a clean tenant context per request.

    The context is cleared before the request is handled and again once the
    response has been sent, so a value set while serving one request can never
    be observed by the next one on the same task.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> app.add_middleware(TenantContextMiddleware)
    """

    def __init__(self, app):
        """Initialize middleware.

        Args:
            app: ASGI application
        """
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        token = _tenant_context.set(None)
        try:
            await self.app(scope, receive, send)
        finally:
            _tenant_context.reset(token)
