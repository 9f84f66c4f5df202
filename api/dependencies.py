"""
FastAPI dependencies

Binds the access control stages to Starlette requests and wires services to
the objects held on ``app.state`` (token codec, database).

Example:
    >>> @router.get("/users")
    ... async def list_users(identity: Identity = Depends(require_staff)):
    ...     ...
"""

import logging
from typing import Any, Dict

from fastapi import Depends, Request

from auth.access_control import (
    Identity,
    RequestContext,
    authenticate,
    authorize,
    run_stages,
    tenant_scope,
)
from auth.jwt_handler import TokenCodec
from auth.tenant_context import set_tenant_context
from models.user import Role
from services.auth_service import AuthService
from services.check_in_repository import CheckInRepository
from services.check_in_service import CheckInService
from services.database import DatabaseService
from services.user_repository import SQLAlchemyUserRepository, UserRepository
from services.user_service import UserService
from utils.errors import AppError

logger = logging.getLogger(__name__)

_BODY_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


async def _json_body(request: Request) -> Dict[str, Any]:
    if request.method not in _BODY_METHODS:
        return {}
    if "application/json" not in request.headers.get("content-type", ""):
        return {}
    try:
        payload = await request.json()
    except ValueError:
        # Malformed JSON is reported by body validation, not by the gate.
        return {}
    return payload if isinstance(payload, dict) else {}


async def build_request_context(request: Request) -> RequestContext:
    return RequestContext(
        cookies=dict(request.cookies),
        headers={key.lower(): value for key, value in request.headers.items()},
        path_params=dict(request.path_params),
        query_params=dict(request.query_params),
        body=await _json_body(request),
    )


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def require_access(*roles: Role):
    """Build a dependency that authenticates, authorizes and tenant-scopes.

    With no roles any authenticated user passes the role check. The tenant
    check always runs; it only rejects when the request names a gym other than
    the caller's.

    Returns:
        Dependency resolving to the caller's ``Identity``
    """
    stages = [tenant_scope]
    if roles:
        stages.insert(0, authorize(*roles))

    async def dependency(
        request: Request,
        codec: TokenCodec = Depends(get_token_codec),
    ) -> Identity:
        ctx = await build_request_context(request)
        result = run_stages(ctx, authenticate(codec), *stages)

        if isinstance(result, AppError):
            logger.info(
                f"Access denied: {result.message}",
                extra={"path": request.url.path, "status_code": result.status_code}
            )
            raise result

        set_tenant_context(result.identity.gym_id)
        return result.identity

    return dependency


require_user = require_access()
require_staff = require_access(Role.ADMIN, Role.INSTRUCTOR)
require_admin = require_access(Role.ADMIN)
require_member = require_access(Role.MEMBER)


# ============================================================================
# SERVICES
# ============================================================================


def get_db(request: Request) -> DatabaseService:
    return request.app.state.db


def get_user_repository(db: DatabaseService = Depends(get_db)) -> UserRepository:
    return SQLAlchemyUserRepository(db)


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    codec: TokenCodec = Depends(get_token_codec),
) -> AuthService:
    return AuthService(users, codec)


def get_user_service(users: UserRepository = Depends(get_user_repository)) -> UserService:
    return UserService(users)


def get_check_in_service(
    db: DatabaseService = Depends(get_db),
    users: UserRepository = Depends(get_user_repository),
) -> CheckInService:
    return CheckInService(CheckInRepository(db), users)
