"""
User Repository

Credential store adapter used by the auth and user services. The abstract
``UserRepository`` is what services depend on; ``SQLAlchemyUserRepository``
is the relational implementation.

Uniqueness of (email, gym) and of CPF is enforced by the database. A unique
violation that slips past the service-level existence checks (two concurrent
registrations) is reported as ``ConflictError``.

Example:
    >>> repo = SQLAlchemyUserRepository(db)
    >>> user = await repo.find_by_email_and_gym("ana@example.com", gym_id)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.user import Role, User
from services.database import DatabaseError, DatabaseService
from utils.errors import ConflictError

logger = logging.getLogger(__name__)

# Columns a caller may change through ``update``.
UPDATABLE_FIELDS = frozenset({
    "name", "email", "password_hash", "role", "cpf", "phone",
    "birth_date", "avatar_url", "is_active",
})


@dataclass
class NewUser:
    """Data needed to persist a new credential record."""
    gym_id: str
    name: str
    email: str
    password_hash: str
    role: Role = Role.MEMBER
    cpf: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None


class UserRepository(ABC):
    """Contract for credential record storage."""

    @abstractmethod
    async def create(self, data: NewUser) -> User:
        ...

    @abstractmethod
    async def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def find_by_email_and_gym(self, email: str, gym_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def find_by_cpf(self, cpf: str) -> Optional[User]:
        ...

    @abstractmethod
    async def find_many(
        self,
        gym_id: str,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = 100,
    ) -> List[User]:
        ...

    @abstractmethod
    async def update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        ...

    async def exists_by_email_and_gym(self, email: str, gym_id: str) -> bool:
        return await self.find_by_email_and_gym(email, gym_id) is not None

    async def exists_by_cpf(self, cpf: str) -> bool:
        return await self.find_by_cpf(cpf) is not None

    async def soft_delete(self, user_id: str) -> Optional[User]:
        return await self.update(user_id, {"is_active": False})

    async def reactivate(self, user_id: str) -> Optional[User]:
        return await self.update(user_id, {"is_active": True})


def _is_unique_violation(detail: str) -> bool:
    # SQLite: "UNIQUE constraint failed", PostgreSQL: "duplicate key value violates unique constraint"
    return "unique constraint" in detail


def _conflict_from(error: IntegrityError) -> Exception:
    """Map a unique violation to ConflictError; other integrity failures stay database errors."""
    detail = str(getattr(error, "orig", error)).lower()
    if not _is_unique_violation(detail):
        logger.error(f"Integrity violation: {detail}")
        return DatabaseError(f"Integrity violation: {detail}")
    if "cpf" in detail:
        return ConflictError("CPF already registered")
    return ConflictError("Email already registered for this gym")


class SQLAlchemyUserRepository(UserRepository):
    """User repository backed by the async SQLAlchemy session.

    Args:
        db: Initialized database service
    """

    def __init__(self, db: DatabaseService):
        self.db = db

    async def create(self, data: NewUser) -> User:
        try:
            async with self.db.session() as session:
                user = User(**asdict(data))
                session.add(user)
                await session.flush()
                await session.refresh(user)

            logger.info(f"Created user: {user.id}", extra={"user_id": user.id})
            return user

        except IntegrityError as e:
            logger.info(f"User insert hit an integrity constraint: {type(e.orig).__name__}")
            raise _conflict_from(e)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create user: {str(e)}")
            raise DatabaseError(f"Failed to create user: {str(e)}")

    async def _first(self, statement) -> Optional[User]:
        try:
            async with self.db.session() as session:
                result = await session.execute(statement)
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"User lookup failed: {str(e)}")
            raise DatabaseError(f"User lookup failed: {str(e)}")

    async def find_by_id(self, user_id: str) -> Optional[User]:
        return await self._first(select(User).where(User.id == user_id))

    async def find_by_email_and_gym(self, email: str, gym_id: str) -> Optional[User]:
        return await self._first(
            select(User).where(User.email == email, User.gym_id == gym_id)
        )

    async def find_by_cpf(self, cpf: str) -> Optional[User]:
        return await self._first(select(User).where(User.cpf == cpf))

    async def find_many(
        self,
        gym_id: str,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = 100,
    ) -> List[User]:
        query = select(User).where(User.gym_id == gym_id)

        if role is not None:
            query = query.where(User.role == role)
        if is_active is not None:
            query = query.where(User.is_active == is_active)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern))
            )

        query = query.order_by(User.name).limit(limit)

        try:
            async with self.db.session() as session:
                result = await session.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to list users: {str(e)}")
            raise DatabaseError(f"Failed to list users: {str(e)}")

    async def update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        try:
            async with self.db.session() as session:
                result = await session.execute(select(User).where(User.id == user_id))
                user = result.scalar_one_or_none()

                if not user:
                    return None

                for key, value in changes.items():
                    setattr(user, key, value)

                await session.flush()
                await session.refresh(user)

            logger.info(f"Updated user: {user_id}", extra={"fields": sorted(changes)})
            return user

        except IntegrityError as e:
            raise _conflict_from(e)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update user {user_id}: {str(e)}")
            raise DatabaseError(f"Failed to update user: {str(e)}")

    async def delete(self, user_id: str) -> bool:
        try:
            async with self.db.session() as session:
                result = await session.execute(delete(User).where(User.id == user_id))

            if result.rowcount > 0:
                logger.info(f"Deleted user: {user_id}")
                return True
            return False

        except SQLAlchemyError as e:
            logger.error(f"Failed to delete user {user_id}: {str(e)}")
            raise DatabaseError(f"Failed to delete user: {str(e)}")
