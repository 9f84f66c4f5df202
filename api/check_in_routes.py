"""
Check-in API Routes

Endpoints:
    POST   /api/check-ins                       - Check in (member)
    GET    /api/check-ins/can-check-in          - Whether the caller may check in today
    GET    /api/check-ins/me/history            - Caller's recent check-ins
    GET    /api/check-ins                       - Gym check-ins (members see their own)
    GET    /api/check-ins/history/{user_id}     - A user's recent check-ins
    PATCH  /api/check-ins/{check_in_id}/validate - Confirm a check-in (staff)
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_check_in_service, require_member, require_staff, require_user
from api.responses import success
from auth.access_control import Identity
from services.check_in_service import CheckInService


router = APIRouter(prefix="/check-ins", tags=["Check-ins"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_check_in(
    identity: Identity = Depends(require_member),
    check_in_service: CheckInService = Depends(get_check_in_service),
) -> Dict[str, Any]:
    check_in = await check_in_service.create(identity)
    return success(check_in, "Check-in registered")


@router.get("/can-check-in")
async def can_check_in(
    identity: Identity = Depends(require_user),
    check_in_service: CheckInService = Depends(get_check_in_service),
) -> Dict[str, Any]:
    allowed, reason = await check_in_service.can_check_in_today(identity)
    return success({"canCheckIn": allowed, "reason": reason})


@router.get("/me/history")
async def own_history(
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(require_user),
    check_in_service: CheckInService = Depends(get_check_in_service),
) -> Dict[str, Any]:
    history = await check_in_service.get_user_history(identity.user_id, identity, limit)
    return success(history)


@router.get("")
async def list_check_ins(
    user_id: Optional[str] = Query(None, alias="userId"),
    validated: Optional[bool] = Query(None),
    days: Optional[int] = Query(None, ge=1, le=365),
    identity: Identity = Depends(require_user),
    check_in_service: CheckInService = Depends(get_check_in_service),
) -> Dict[str, Any]:
    check_ins = await check_in_service.list_check_ins(
        identity, user_id=user_id, validated=validated, days=days
    )
    return success(check_ins)


@router.get("/history/{user_id}")
async def user_history(
    user_id: str,
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(require_user),
    check_in_service: CheckInService = Depends(get_check_in_service),
) -> Dict[str, Any]:
    history = await check_in_service.get_user_history(user_id, identity, limit)
    return success(history)


@router.patch("/{check_in_id}/validate")
async def validate_check_in(
    check_in_id: str,
    identity: Identity = Depends(require_staff),
    check_in_service: CheckInService = Depends(get_check_in_service),
) -> Dict[str, Any]:
    check_in = await check_in_service.validate(check_in_id, identity)
    return success(check_in, "Check-in validated")
