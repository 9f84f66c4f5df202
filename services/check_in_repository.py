"""
Check-in Repository

Storage for attendance records. Every query is scoped by gym.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError

from models.check_in import CheckIn
from services.database import DatabaseError, DatabaseService

logger = logging.getLogger(__name__)


class CheckInRepository:
    """Check-in persistence backed by the async SQLAlchemy session.

    Args:
        db: Initialized database service
    """

    def __init__(self, db: DatabaseService):
        self.db = db

    async def _all(self, statement) -> List[CheckIn]:
        try:
            async with self.db.session() as session:
                result = await session.execute(statement)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Check-in query failed: {str(e)}")
            raise DatabaseError(f"Check-in query failed: {str(e)}")

    async def create(self, user_id: str, gym_id: str) -> CheckIn:
        try:
            async with self.db.session() as session:
                check_in = CheckIn(user_id=user_id, gym_id=gym_id)
                session.add(check_in)
                await session.flush()
                await session.refresh(check_in)

            logger.info(f"Created check-in: {check_in.id}", extra={"user_id": user_id})
            return check_in

        except SQLAlchemyError as e:
            logger.error(f"Failed to create check-in: {str(e)}")
            raise DatabaseError(f"Failed to create check-in: {str(e)}")

    async def find_by_id(self, check_in_id: str) -> Optional[CheckIn]:
        rows = await self._all(select(CheckIn).where(CheckIn.id == check_in_id))
        return rows[0] if rows else None

    async def has_checked_in_since(self, user_id: str, gym_id: str, since: datetime) -> bool:
        rows = await self._all(
            select(CheckIn)
            .where(
                CheckIn.user_id == user_id,
                CheckIn.gym_id == gym_id,
                CheckIn.created_at >= since,
            )
            .limit(1)
        )
        return bool(rows)

    async def has_checked_in_today(self, user_id: str, gym_id: str) -> bool:
        """True if the user already checked in at this gym on the current UTC day."""
        start_of_day = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        return await self.has_checked_in_since(user_id, gym_id, start_of_day)

    async def find_by_gym(
        self,
        gym_id: str,
        user_id: Optional[str] = None,
        validated: Optional[bool] = None,
        days: Optional[int] = None,
        limit: int = 100,
    ) -> List[CheckIn]:
        query = select(CheckIn).where(CheckIn.gym_id == gym_id)

        if user_id:
            query = query.where(CheckIn.user_id == user_id)
        if validated is True:
            query = query.where(CheckIn.validated_at.is_not(None))
        elif validated is False:
            query = query.where(CheckIn.validated_at.is_(None))
        if days:
            query = query.where(CheckIn.created_at >= datetime.utcnow() - timedelta(days=days))

        return await self._all(query.order_by(desc(CheckIn.created_at)).limit(limit))

    async def find_by_user(self, user_id: str, limit: int = 10) -> List[CheckIn]:
        return await self._all(
            select(CheckIn)
            .where(CheckIn.user_id == user_id)
            .order_by(desc(CheckIn.created_at))
            .limit(limit)
        )

    async def mark_validated(self, check_in_id: str) -> Optional[CheckIn]:
        try:
            async with self.db.session() as session:
                result = await session.execute(select(CheckIn).where(CheckIn.id == check_in_id))
                check_in = result.scalar_one_or_none()
                if not check_in:
                    return None

                check_in.validated_at = datetime.utcnow()
                await session.flush()
                await session.refresh(check_in)

            return check_in

        except SQLAlchemyError as e:
            logger.error(f"Failed to validate check-in {check_in_id}: {str(e)}")
            raise DatabaseError(f"Failed to validate check-in: {str(e)}")
