"""
Check-in Service

Gym entry registration and validation, with the permission rules that go
with them.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from auth.access_control import Identity
from models.user import STAFF_ROLES, Role
from services.check_in_repository import CheckInRepository
from services.user_repository import UserRepository
from utils.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

ALREADY_CHECKED_IN = "Already checked in today"
MEMBERS_ONLY = "Only members can check in"


class CheckInService:
    """Attendance operations.

    Args:
        check_ins: Check-in storage
        users: Credential store, for active-status and gym lookups
    """

    def __init__(self, check_ins: CheckInRepository, users: UserRepository):
        self.check_ins = check_ins
        self.users = users

    async def create(self, requester: Identity) -> Dict[str, Any]:
        """Register the requester's entry into their gym. Members only."""
        if requester.role != Role.MEMBER:
            raise ForbiddenError(MEMBERS_ONLY)

        user = await self.users.find_by_id(requester.user_id)
        if not user:
            raise NotFoundError("User not found")
        if not user.is_active:
            raise ForbiddenError("Inactive users cannot check in")

        if await self.check_ins.has_checked_in_today(user.id, requester.gym_id):
            raise ConflictError(ALREADY_CHECKED_IN)

        check_in = await self.check_ins.create(user.id, requester.gym_id)
        return check_in.to_dict()

    async def can_check_in_today(self, requester: Identity) -> Tuple[bool, Optional[str]]:
        if requester.role != Role.MEMBER:
            return False, MEMBERS_ONLY

        user = await self.users.find_by_id(requester.user_id)
        if not user or not user.is_active:
            return False, "User is inactive"

        if await self.check_ins.has_checked_in_today(user.id, requester.gym_id):
            return False, ALREADY_CHECKED_IN

        return True, None

    async def list_check_ins(
        self,
        requester: Identity,
        user_id: Optional[str] = None,
        validated: Optional[bool] = None,
        days: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """List the gym's check-ins. Members only ever see their own."""
        if requester.role == Role.MEMBER:
            user_id = requester.user_id

        rows = await self.check_ins.find_by_gym(
            requester.gym_id, user_id=user_id, validated=validated, days=days
        )
        return [row.to_dict() for row in rows]

    async def get_user_history(
        self,
        user_id: str,
        requester: Identity,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        if user_id != requester.user_id and requester.role not in STAFF_ROLES:
            raise ForbiddenError("Not allowed to view this history")

        user = await self.users.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if user.gym_id != requester.gym_id:
            raise ForbiddenError("User belongs to another gym")

        rows = await self.check_ins.find_by_user(user_id, limit)
        return [row.to_dict() for row in rows]

    async def validate(self, check_in_id: str, requester: Identity) -> Dict[str, Any]:
        """Confirm a check-in. Staff only, same gym, once."""
        if requester.role not in STAFF_ROLES:
            raise ForbiddenError("Not allowed to validate check-ins")

        check_in = await self.check_ins.find_by_id(check_in_id)
        if not check_in:
            raise NotFoundError("Check-in not found")
        if check_in.gym_id != requester.gym_id:
            raise ForbiddenError("Check-in belongs to another gym")
        if check_in.is_validated:
            raise BadRequestError("Check-in already validated")

        validated = await self.check_ins.mark_validated(check_in_id)
        logger.info("Check-in validated", extra={"check_in_id": check_in_id, "staff_id": requester.user_id})
        return validated.to_dict()
