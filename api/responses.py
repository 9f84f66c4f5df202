"""
Response helpers

Success/error envelope and the auth cookies.

Envelope:
    {"status": "success" | "error", "message"?: str, "data"?: any}
"""

from typing import Any, Dict, Optional

from fastapi import Response

from auth.access_control import ACCESS_TOKEN_COOKIE
from config import settings

REFRESH_TOKEN_COOKIE = "refreshToken"


def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def error(message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": "error", "message": message}
    body.update(extra)
    return body


def _cookie_options() -> Dict[str, Any]:
    """Cookie attributes for the current environment.

    Development runs over plain HTTP on localhost, so cookies are not marked
    secure there and no domain is pinned.
    """
    if settings.is_development:
        return {"httponly": True, "secure": False, "samesite": "lax", "path": "/"}

    options: Dict[str, Any] = {"httponly": True, "secure": True, "samesite": "strict", "path": "/"}
    if settings.COOKIE_DOMAIN:
        options["domain"] = settings.COOKIE_DOMAIN
    return options


def set_access_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        max_age=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        **_cookie_options()
    )


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    set_access_cookie(response, access_token)
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        refresh_token,
        max_age=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        **_cookie_options()
    )


def clear_auth_cookies(response: Response) -> None:
    options = _cookie_options()
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            name,
            path=options["path"],
            domain=options.get("domain"),
            secure=options["secure"],
            httponly=options["httponly"],
            samesite=options["samesite"],
        )
