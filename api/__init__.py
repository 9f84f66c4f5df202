"""HTTP API for the Gym Check-in Service.

All routers are mounted under ``/api``.
"""

from fastapi import APIRouter

from api.auth_routes import router as auth_router
from api.check_in_routes import router as check_in_router
from api.user_routes import router as user_router

router = APIRouter(prefix="/api")
router.include_router(auth_router)
router.include_router(user_router)
router.include_router(check_in_router)

__all__ = ["router"]
