"""
Request Schemas

Pydantic v2 models for request bodies. JSON field names are camelCase
(``gymId``, ``birthDate``); snake_case names are accepted too.
"""

import re
from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.password import BCRYPT_MAX_BYTES
from models.user import Role

_DIGITS = re.compile(r"\D")


def _digits_or_none(value: Optional[str], lengths: tuple, label: str) -> Optional[str]:
    """Strip formatting from a document/phone number; empty means absent."""
    if value is None:
        return None
    digits = _DIGITS.sub("", value)
    if not digits:
        return None
    if len(digits) not in lengths:
        raise ValueError(f"{label} must have {' or '.join(str(n) for n in lengths)} digits")
    return digits


def _required(value, label: str):
    """Reject an explicit null for a column that cannot be cleared."""
    if value is None:
        raise ValueError(f"{label} cannot be null")
    return value


class CamelModel(BaseModel):
    """Base for request bodies: camelCase aliases, whitespace trimmed."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class RegisterRequest(CamelModel):
    """Body of ``POST /api/auth/register``.

    Example:
        >>> RegisterRequest(
        ...     name="Ana Souza",
        ...     email="Ana@Example.com",
        ...     password="Secret123",
        ...     gymId="0b6f8c4e-3a8e-4f7e-9a43-2f1a1c0d9b11",
        ... ).email
        'ana@example.com'
    """

    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    gym_id: UUID
    role: Role = Role.MEMBER
    cpf: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if not re.search(r"[a-z]", value) or not re.search(r"[A-Z]", value) or not re.search(r"\d", value):
            raise ValueError("Password must contain an uppercase letter, a lowercase letter and a number")
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        return value

    @field_validator("cpf")
    @classmethod
    def normalize_cpf(cls, value: Optional[str]) -> Optional[str]:
        return _digits_or_none(value, (11,), "CPF")

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: Optional[str]) -> Optional[str]:
        return _digits_or_none(value, (10, 11), "Phone")


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)
    gym_id: UUID

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class RefreshRequest(CamelModel):
    """Refresh token in the body, for clients that do not keep cookies."""

    refresh_token: Optional[str] = None


class ProfileUpdate(CamelModel):
    """Fields a user may change on their own profile."""

    name: Optional[str] = Field(None, min_length=3, max_length=100)
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    avatar_url: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, value: Optional[str]) -> str:
        return _required(value, "Name")

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: Optional[str]) -> Optional[str]:
        return _digits_or_none(value, (10, 11), "Phone")


class AdminUserUpdate(ProfileUpdate):
    """Fields an admin may change on any user of their gym."""

    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    cpf: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: Optional[str]) -> str:
        return _required(value, "Email").lower()

    @field_validator("role", "is_active")
    @classmethod
    def not_null(cls, value, info):
        return _required(value, info.field_name)

    @field_validator("cpf")
    @classmethod
    def normalize_cpf(cls, value: Optional[str]) -> Optional[str]:
        return _digits_or_none(value, (11,), "CPF")
