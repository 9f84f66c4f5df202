"""
Check-in Model

One row per gym entry by a member. Staff may later mark the entry as
validated.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from models.user import Base


class CheckIn(Base):
    """Attendance record.

    Attributes:
        id: Unique identifier (UUID string)
        user_id: Member who checked in
        gym_id: Gym the check-in belongs to
        created_at: Check-in timestamp (UTC)
        validated_at: When staff confirmed the attendance, if ever
    """

    __tablename__ = "check_ins"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    gym_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    validated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_check_ins_user_gym_created", "user_id", "gym_id", "created_at"),
        Index("idx_check_ins_gym_created", "gym_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<CheckIn(id='{self.id}', user_id='{self.user_id}', gym_id='{self.gym_id}')>"

    @property
    def is_validated(self) -> bool:
        return self.validated_at is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "gymId": self.gym_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "validatedAt": self.validated_at.isoformat() if self.validated_at else None,
        }
