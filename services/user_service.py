"""
User Service

User administration inside a gym. Route-level role checks happen in the access
control gate; the rules here also cover ownership and same-gym checks that
depend on the target record.
"""

import logging
from typing import Any, Dict, List, Optional

from auth.access_control import Identity
from models.user import STAFF_ROLES, Role, User
from services.user_repository import UserRepository
from utils.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({"name", "phone", "birth_date", "avatar_url"})
ADMIN_FIELDS = PROFILE_FIELDS | {"email", "role", "is_active", "cpf"}


class UserService:
    """Permission-checked user operations.

    Args:
        users: Credential store
    """

    def __init__(self, users: UserRepository):
        self.users = users

    async def _get(self, user_id: str) -> User:
        user = await self.users.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def _require_admin(requester: Identity, action: str) -> None:
        if requester.role != Role.ADMIN:
            raise ForbiddenError(f"Not allowed to {action} users")

    @staticmethod
    def _require_same_gym(user: User, requester: Identity, action: str) -> None:
        if user.gym_id != requester.gym_id:
            raise ForbiddenError(f"Cannot {action} users from another gym")

    async def list_users(
        self,
        requester: Identity,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """List users of the requester's own gym. Staff only."""
        if requester.role not in STAFF_ROLES:
            raise ForbiddenError("Not allowed to list users")

        users = await self.users.find_many(
            requester.gym_id, role=role, is_active=is_active, search=search
        )
        return [user.to_dict() for user in users]

    async def get_user(self, user_id: str, requester: Identity) -> Dict[str, Any]:
        """Fetch a user: one's own record, or any record of the gym for staff."""
        user = await self._get(user_id)

        is_self = user.id == requester.user_id
        is_staff_of_gym = user.gym_id == requester.gym_id and requester.role in STAFF_ROLES
        if not (is_self or is_staff_of_gym):
            raise ForbiddenError("Not allowed to view this user")

        return user.to_dict()

    async def update_own_profile(self, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Update the caller's own name, phone, birth date or avatar."""
        user = await self._get(user_id)
        if not user.is_active:
            raise ForbiddenError("User is inactive")

        allowed = {key: value for key, value in changes.items() if key in PROFILE_FIELDS}
        if not allowed:
            return user.to_dict()

        updated = await self.users.update(user_id, allowed)
        if updated is None:
            raise NotFoundError("User not found")
        return updated.to_dict()

    async def update_user(
        self,
        user_id: str,
        changes: Dict[str, Any],
        requester: Identity,
    ) -> Dict[str, Any]:
        """Admin edit of any user in the admin's gym, including role and status."""
        self._require_admin(requester, "edit")
        user = await self._get(user_id)
        self._require_same_gym(user, requester, "edit")

        allowed = {key: value for key, value in changes.items() if key in ADMIN_FIELDS}

        email = allowed.get("email")
        if email and email != user.email:
            if await self.users.exists_by_email_and_gym(email, user.gym_id):
                raise ConflictError("Email already registered for this gym")

        cpf = allowed.get("cpf")
        if cpf and cpf != user.cpf:
            if await self.users.exists_by_cpf(cpf):
                raise ConflictError("CPF already registered")

        if not allowed:
            return user.to_dict()

        updated = await self.users.update(user_id, allowed)
        if updated is None:
            raise NotFoundError("User not found")

        logger.info(
            "User updated by admin",
            extra={"user_id": user_id, "admin_id": requester.user_id, "fields": sorted(allowed)}
        )
        return updated.to_dict()

    async def deactivate_user(self, user_id: str, requester: Identity) -> Dict[str, Any]:
        """Soft delete: flip ``is_active`` off, keep the record."""
        self._require_admin(requester, "deactivate")
        if user_id == requester.user_id:
            raise ForbiddenError("Cannot deactivate your own account")

        user = await self._get(user_id)
        self._require_same_gym(user, requester, "deactivate")
        if not user.is_active:
            raise BadRequestError("User is already inactive")

        updated = await self.users.soft_delete(user_id)
        logger.info("User deactivated", extra={"user_id": user_id, "admin_id": requester.user_id})
        return updated.to_dict()

    async def reactivate_user(self, user_id: str, requester: Identity) -> Dict[str, Any]:
        self._require_admin(requester, "reactivate")

        user = await self._get(user_id)
        self._require_same_gym(user, requester, "reactivate")
        if user.is_active:
            raise BadRequestError("User is already active")

        updated = await self.users.reactivate(user_id)
        logger.info("User reactivated", extra={"user_id": user_id, "admin_id": requester.user_id})
        return updated.to_dict()

    async def delete_user(self, user_id: str, requester: Identity) -> None:
        """Hard delete. The record is gone for good."""
        self._require_admin(requester, "delete")
        if user_id == requester.user_id:
            raise ForbiddenError("Cannot delete your own account")

        user = await self._get(user_id)
        self._require_same_gym(user, requester, "delete")

        await self.users.delete(user_id)
        logger.warning("User permanently deleted", extra={"user_id": user_id, "admin_id": requester.user_id})
