"""Access Control Gate

Request-time authentication, role authorization and tenant isolation,
expressed as pure stages over an immutable ``RequestContext``.

A stage takes a context and returns either a (possibly updated) context or an
``AppError`` value. ``run_stages`` applies stages in order and stops at the
first error. Nothing here raises or touches framework objects; the FastAPI
binding lives in ``api.dependencies``.

Example:
    >>> ctx = RequestContext(headers={"authorization": f"Bearer {token}"})
    >>> result = run_stages(ctx, authenticate(codec), authorize(Role.ADMIN), tenant_scope)
    >>> if isinstance(result, AppError):
    ...     raise result
    >>> result.identity.role
    <Role.ADMIN: 'ADMIN'>
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from auth.jwt_handler import TokenCodec, TokenError
from models.user import Role
from utils.errors import AppError, ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"

# Where a request may name the gym it targets, checked in this order per source.
GYM_ID_KEYS = ("gymId", "gym_id")


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, taken from a verified access token."""
    user_id: str
    gym_id: str
    role: Role


@dataclass(frozen=True)
class RequestContext:
    """The parts of a request the gate looks at.

    Header names are expected lower-cased.
    """
    cookies: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    path_params: Mapping[str, Any] = field(default_factory=dict)
    query_params: Mapping[str, Any] = field(default_factory=dict)
    body: Mapping[str, Any] = field(default_factory=dict)
    identity: Optional[Identity] = None

    def with_identity(self, identity: Identity) -> "RequestContext":
        return replace(self, identity=identity)


StageResult = Union[RequestContext, AppError]
Stage = Callable[[RequestContext], StageResult]


def extract_bearer_token(auth_header: Optional[str]) -> Optional[str]:
    """Extract a token from an ``Authorization: Bearer <token>`` header.

    Returns:
        The token, or None if the header is absent or not a bearer header
    """
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def extract_access_token(ctx: RequestContext) -> Optional[str]:
    """Cookie first, then Authorization header."""
    return ctx.cookies.get(ACCESS_TOKEN_COOKIE) or extract_bearer_token(ctx.headers.get("authorization"))


def authenticate(codec: TokenCodec) -> Stage:
    """Build the authentication stage.

    The stage verifies the access token and attaches the caller's identity.
    Whether the token was expired or otherwise invalid is not revealed.
    """

    def _authenticate(ctx: RequestContext) -> StageResult:
        token = extract_access_token(ctx)
        if not token:
            return UnauthorizedError("No authentication token supplied")

        try:
            claims = codec.verify_access_token(token)
        except TokenError as e:
            logger.info(f"Access token rejected: {e}")
            return UnauthorizedError("Invalid or expired token")

        return ctx.with_identity(
            Identity(user_id=claims.user_id, gym_id=claims.gym_id, role=claims.role)
        )

    return _authenticate


def authorize(*allowed_roles: Role) -> Stage:
    """Build a stage that admits only the given roles.

    Example:
        >>> stage = authorize(Role.ADMIN, Role.INSTRUCTOR)
    """
    allowed: Tuple[Role, ...] = tuple(Role(role) for role in allowed_roles)
    if not allowed:
        raise ValueError("authorize() needs at least one role")

    def _authorize(ctx: RequestContext) -> StageResult:
        if ctx.identity is None:
            return UnauthorizedError("Not authenticated")

        if ctx.identity.role not in allowed:
            return ForbiddenError(
                f"Access denied. Required roles: {', '.join(role.value for role in allowed)}",
                role=ctx.identity.role.value,
            )

        return ctx

    return _authorize


def _first_gym_id(source: Mapping[str, Any]) -> Optional[str]:
    for key in GYM_ID_KEYS:
        value = source.get(key)
        if value:
            return str(value)
    return None


def requested_gym_id(ctx: RequestContext) -> Optional[str]:
    """Gym id named by the request: path, then query, then body."""
    for source in (ctx.path_params, ctx.query_params, ctx.body):
        gym_id = _first_gym_id(source)
        if gym_id:
            return gym_id
    return None


def tenant_scope(ctx: RequestContext) -> StageResult:
    """Reject requests that target a gym other than the caller's own."""
    if ctx.identity is None or not ctx.identity.gym_id:
        return UnauthorizedError("Gym information missing from session")

    target = requested_gym_id(ctx)
    if target and target != ctx.identity.gym_id:
        logger.warning(
            "Cross-gym access denied",
            extra={"user_id": ctx.identity.user_id, "target_gym_id": target},
        )
        return ForbiddenError("Access to another gym's resources is not allowed")

    return ctx


def run_stages(ctx: RequestContext, *stages: Stage) -> StageResult:
    """Apply stages left to right, stopping at the first error."""
    result: StageResult = ctx
    for stage in stages:
        result = stage(result)
        if isinstance(result, AppError):
            return result
    return result
