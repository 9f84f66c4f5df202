"""
Auth Service

Registration, login, access token refresh and profile lookup. This is the only
service that hashes passwords or signs tokens.

Example:
    >>> service = AuthService(SQLAlchemyUserRepository(db), codec)
    >>> result = await service.login("ana@example.com", "S3cret-pass", gym_id)
    >>> result.access_token
    'eyJhbGciOiJIUzI1NiIs...'
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from auth.jwt_handler import TokenCodec, TokenError
from auth.password import hash_password_async, verify_password_async
from models.user import Role, User
from services.user_repository import NewUser, UserRepository
from utils.errors import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)

# Same message for unknown email and wrong password.
INVALID_CREDENTIALS = "Invalid credentials"


@dataclass
class RegisterData:
    """Validated registration input."""
    name: str
    email: str
    password: str
    gym_id: str
    role: Role = Role.MEMBER
    cpf: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None


@dataclass
class AuthResult:
    """Outcome of a successful register or login."""
    user: Dict[str, Any]
    access_token: str
    refresh_token: str


class AuthService:
    """Credential issuance and token lifecycle.

    Args:
        users: Credential store
        codec: Token codec holding both signing secrets
    """

    def __init__(self, users: UserRepository, codec: TokenCodec):
        self.users = users
        self.codec = codec

    def _issue_pair(self, user: User) -> AuthResult:
        return AuthResult(
            user=user.to_summary(),
            access_token=self.codec.issue_access_token(user.id, user.gym_id, user.role),
            refresh_token=self.codec.issue_refresh_token(user.id),
        )

    async def register(self, data: RegisterData) -> AuthResult:
        """Create a user and sign them in.

        Raises:
            ConflictError: Email already used in this gym, or CPF already used
                in any gym
        """
        if await self.users.exists_by_email_and_gym(data.email, data.gym_id):
            raise ConflictError("Email already registered for this gym")

        if data.cpf and await self.users.exists_by_cpf(data.cpf):
            raise ConflictError("CPF already registered")

        password_hash = await hash_password_async(data.password)

        user = await self.users.create(NewUser(
            gym_id=data.gym_id,
            name=data.name,
            email=data.email,
            password_hash=password_hash,
            role=data.role or Role.MEMBER,
            cpf=data.cpf,
            phone=data.phone,
            birth_date=data.birth_date,
        ))

        logger.info(
            "User registered",
            extra={"user_id": user.id, "role": user.role.value}
        )
        return self._issue_pair(user)

    async def login(self, email: str, password: str, gym_id: str) -> AuthResult:
        """Authenticate with email and password within a gym.

        Raises:
            UnauthorizedError: Unknown email or wrong password (same message)
            ForbiddenError: Account is deactivated
        """
        user = await self.users.find_by_email_and_gym(email, gym_id)

        if not user:
            logger.info("Login failed: unknown email")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if not user.is_active:
            raise ForbiddenError("User is inactive")

        if not await verify_password_async(password, user.password_hash):
            logger.info("Login failed: wrong password", extra={"user_id": user.id})
            raise UnauthorizedError(INVALID_CREDENTIALS)

        logger.info("User logged in", extra={"user_id": user.id})
        return self._issue_pair(user)

    async def refresh_access_token(self, refresh_token: str) -> str:
        """Mint a new access token from a refresh token.

        Role and gym come from the current user record, not from any earlier
        token. The refresh token itself is returned to the caller unchanged.

        Raises:
            UnauthorizedError: Refresh token invalid or expired
            NotFoundError: User no longer exists
            ForbiddenError: User is inactive
        """
        try:
            claims = self.codec.verify_refresh_token(refresh_token)
        except TokenError as e:
            logger.info(f"Refresh token rejected: {e}")
            raise UnauthorizedError("Invalid or expired refresh token")

        user = await self._active_user(claims.user_id)
        return self.codec.issue_access_token(user.id, user.gym_id, user.role)

    async def get_profile(self, user_id: str) -> Dict[str, Any]:
        """Return the user's record without the password hash.

        Raises:
            NotFoundError: User does not exist
            ForbiddenError: User is inactive
        """
        user = await self._active_user(user_id)
        return user.to_dict()

    async def _active_user(self, user_id: str) -> User:
        user = await self.users.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not user.is_active:
            raise ForbiddenError("User is inactive")
        return user
