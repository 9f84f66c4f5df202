"""
User API Routes

Endpoints:
    GET    /api/users/me                  - Own profile
    PATCH  /api/users/me                  - Update own profile
    GET    /api/users                     - List gym users (staff)
    GET    /api/gyms/{gym_id}/users       - List users of a named gym (staff, same gym)
    GET    /api/users/{user_id}           - Get user (self or staff)
    PATCH  /api/users/{user_id}           - Admin edit
    POST   /api/users/{user_id}/deactivate - Soft delete (admin)
    POST   /api/users/{user_id}/reactivate - Undo soft delete (admin)
    DELETE /api/users/{user_id}           - Hard delete (admin)
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_user_service, require_admin, require_staff, require_user
from api.responses import success
from api.schemas import AdminUserUpdate, ProfileUpdate
from auth.access_control import Identity
from models.user import Role
from services.user_service import UserService


router = APIRouter(tags=["Users"])


@router.get("/users/me")
async def get_own_profile(
    identity: Identity = Depends(require_user),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    return success(await user_service.get_user(identity.user_id, identity))


@router.patch("/users/me")
async def update_own_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(require_user),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    user = await user_service.update_own_profile(
        identity.user_id, payload.model_dump(exclude_unset=True)
    )
    return success(user, "Profile updated")


@router.get("/users")
async def list_users(
    role: Optional[Role] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    search: Optional[str] = Query(None, max_length=100),
    identity: Identity = Depends(require_staff),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    """List users of the caller's gym, optionally filtered."""
    users = await user_service.list_users(identity, role=role, is_active=is_active, search=search)
    return success(users)


@router.get("/gyms/{gym_id}/users")
async def list_gym_users(
    gym_id: str,
    role: Optional[Role] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    identity: Identity = Depends(require_staff),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    """Same listing, addressed by gym id. The gate rejects any other gym."""
    users = await user_service.list_users(identity, role=role, is_active=is_active)
    return success(users)


@router.get("/users/{user_id}")
async def get_user(
    user_id: str,
    identity: Identity = Depends(require_user),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    return success(await user_service.get_user(user_id, identity))


@router.patch("/users/{user_id}")
async def update_user(
    user_id: str,
    payload: AdminUserUpdate,
    identity: Identity = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    user = await user_service.update_user(user_id, payload.model_dump(exclude_unset=True), identity)
    return success(user, "User updated")


@router.post("/users/{user_id}/deactivate")
async def deactivate_user(
    user_id: str,
    identity: Identity = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    user = await user_service.deactivate_user(user_id, identity)
    return success(user, "User deactivated")


@router.post("/users/{user_id}/reactivate")
async def reactivate_user(
    user_id: str,
    identity: Identity = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    user = await user_service.reactivate_user(user_id, identity)
    return success(user, "User reactivated")


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    identity: Identity = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    await user_service.delete_user(user_id, identity)
    return success(message="User deleted")
