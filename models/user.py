"""
User Model for Credential Storage

Database model for gym users (members, instructors and administrators) using
SQLAlchemy 2.0. A user belongs to exactly one gym; email is unique per gym and
CPF (national ID) is unique across all gyms.

Example:
    >>> from models.user import User, Role
    >>> user = User(
    ...     gym_id="8f7c...",
    ...     name="Ana Souza",
    ...     email="ana@example.com",
    ...     password_hash="$2b$10$...",
    ...     role=Role.MEMBER
    ... )
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy import Boolean, Date, DateTime, Enum as SQLEnum, Index, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""
    pass


class Role(str, Enum):
    """Closed set of roles used for every permission decision."""
    ADMIN = "ADMIN"
    INSTRUCTOR = "INSTRUCTOR"
    MEMBER = "MEMBER"


STAFF_ROLES = frozenset({Role.ADMIN, Role.INSTRUCTOR})


def _new_id() -> str:
    return str(uuid4())


class User(Base):
    """Credential record for a gym user.

    Attributes:
        id: Opaque unique identifier (UUID string)
        gym_id: Tenant (gym) the user belongs to
        name: Display name
        email: Login email, unique within the gym
        password_hash: bcrypt digest, never serialized
        role: ADMIN, INSTRUCTOR or MEMBER
        cpf: National ID, unique across gyms when present
        phone: Optional phone number
        birth_date: Optional birth date
        avatar_url: Optional avatar URL
        is_active: False once soft-deactivated
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    gym_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        SQLEnum(Role, native_enum=False, length=20),
        nullable=False,
        default=Role.MEMBER
    )

    cpf: Mapped[Optional[str]] = mapped_column(String(11), nullable=True, unique=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("email", "gym_id", name="uq_users_email_gym"),
        Index("idx_users_gym_role", "gym_id", "role"),
        Index("idx_users_gym_active", "gym_id", "is_active"),
    )

    def __repr__(self) -> str:
        """String representation of User."""
        return (
            f"<User(id='{self.id}', email='{self.email}', "
            f"role='{self.role}', gym_id='{self.gym_id}')>"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert user to a client-safe dictionary (no password hash).

        Returns:
            Dictionary representation of the user

        Example:
            >>> data = user.to_dict()
            >>> "passwordHash" in data
            False
        """
        return {
            "id": self.id,
            "gymId": self.gym_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value if isinstance(self.role, Role) else self.role,
            "cpf": self.cpf,
            "phone": self.phone,
            "birthDate": self.birth_date.isoformat() if self.birth_date else None,
            "avatarUrl": self.avatar_url,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_summary(self) -> Dict[str, Any]:
        """Short profile returned alongside freshly issued tokens."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value if isinstance(self.role, Role) else self.role,
            "gymId": self.gym_id,
        }
