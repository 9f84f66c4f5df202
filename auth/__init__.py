"""Authentication and Authorization modules for the Gym Check-in Service

Provides password hashing, the JWT token codec, the access control gate and
tenant context management.
"""

from auth.access_control import (
    Identity,
    RequestContext,
    authenticate,
    authorize,
    tenant_scope,
    run_stages,
)

from auth.jwt_handler import (
    TokenCodec,
    TokenConfig,
    AccessClaims,
    RefreshClaims,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
)

from auth.password import (
    hash_password,
    verify_password,
    hash_password_async,
    verify_password_async,
)

from auth.tenant_context import (
    set_tenant_context,
    get_tenant_context,
    clear_tenant_context,
    TenantContextMiddleware,
    TenantLogFilter,
)

__all__ = [
    # Access control
    "Identity",
    "RequestContext",
    "authenticate",
    "authorize",
    "tenant_scope",
    "run_stages",

    # Token codec
    "TokenCodec",
    "TokenConfig",
    "AccessClaims",
    "RefreshClaims",
    "TokenError",
    "TokenExpiredError",
    "TokenInvalidError",

    # Passwords
    "hash_password",
    "verify_password",
    "hash_password_async",
    "verify_password_async",

    # Tenant context
    "set_tenant_context",
    "get_tenant_context",
    "clear_tenant_context",
    "TenantContextMiddleware",
    "TenantLogFilter",
]
