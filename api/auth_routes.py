"""
Auth API Routes

Endpoints:
    POST   /api/auth/register - Create account, set auth cookies
    POST   /api/auth/login    - Sign in, set auth cookies
    POST   /api/auth/refresh  - New access token from the refresh token
    POST   /api/auth/logout   - Clear auth cookies
    GET    /api/auth/me       - Profile of the authenticated user

Tokens are returned both as httpOnly cookies and in the response body, so
browser and non-browser clients can use the same endpoints.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response, status

from api.dependencies import get_auth_service, require_user
from api.responses import (
    REFRESH_TOKEN_COOKIE,
    clear_auth_cookies,
    set_access_cookie,
    set_auth_cookies,
    success,
)
from api.schemas import LoginRequest, RefreshRequest, RegisterRequest
from auth.access_control import Identity
from services.auth_service import AuthResult, AuthService, RegisterData
from utils.errors import UnauthorizedError


router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_payload(result: AuthResult) -> Dict[str, Any]:
    return {
        "user": result.user,
        "accessToken": result.access_token,
        "refreshToken": result.refresh_token,
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Register a user in a gym and sign them in.

    Returns 409 when the email is taken in that gym or the CPF is taken in
    any gym.
    """
    result = await auth_service.register(RegisterData(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        gym_id=str(payload.gym_id),
        role=payload.role,
        cpf=payload.cpf,
        phone=payload.phone,
        birth_date=payload.birth_date,
    ))

    set_auth_cookies(response, result.access_token, result.refresh_token)
    return success(_auth_payload(result), "User registered successfully")


@router.post("/login")
async def login(
    payload: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    result = await auth_service.login(payload.email, payload.password, str(payload.gym_id))

    set_auth_cookies(response, result.access_token, result.refresh_token)
    return success(_auth_payload(result), "Login successful")


@router.post("/refresh")
async def refresh(
    request: Request,
    response: Response,
    payload: Optional[RefreshRequest] = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Issue a new access token.

    The refresh token is read from the ``refreshToken`` cookie, falling back
    to the request body. It is not rotated.
    """
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not refresh_token and payload is not None:
        refresh_token = payload.refresh_token
    if not refresh_token:
        raise UnauthorizedError("Refresh token not supplied")

    access_token = await auth_service.refresh_access_token(refresh_token)

    set_access_cookie(response, access_token)
    return success({"accessToken": access_token}, "Token refreshed")


@router.post("/logout")
async def logout(response: Response) -> Dict[str, Any]:
    # Tokens are stateless; logging out only drops the cookies.
    clear_auth_cookies(response)
    return success(message="Logout successful")


@router.get("/me")
async def me(
    identity: Identity = Depends(require_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    profile = await auth_service.get_profile(identity.user_id)
    return success(profile)
