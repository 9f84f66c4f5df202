"""JWT Token Codec for the Gym Check-in Service

Signs and verifies the two bearer token classes used by the service.

Features:
    - Access tokens carrying user, gym and role claims (short lived)
    - Refresh tokens carrying only the user id (long lived)
    - Separate signing secret per token class
    - Issuer/audience binding checked on every verification
    - Distinct expired vs. invalid failures

Example:
    >>> from config import settings
    >>> from auth.jwt_handler import TokenCodec, TokenConfig
    >>>
    >>> codec = TokenCodec(TokenConfig.from_settings(settings))
    >>> token = codec.issue_access_token("user-1", "gym-1", Role.MEMBER)
    >>> claims = codec.verify_access_token(token)
    >>> print(claims.gym_id)
    gym-1
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Union

from jose import ExpiredSignatureError, JWTError, jwt

from models.user import Role
from utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenError(Exception):
    """Base exception for token verification failures."""
    pass


class TokenExpiredError(TokenError):
    """The token was well formed and correctly signed but is past expiry."""
    pass


class TokenInvalidError(TokenError):
    """Signature, issuer, audience, type or structure did not check out."""
    pass


@dataclass(frozen=True)
class TokenConfig:
    """Signing configuration for both token classes.

    Attributes:
        access_secret: Secret for access tokens
        refresh_secret: Secret for refresh tokens
        algorithm: HMAC algorithm
        access_expires: Access token lifetime
        refresh_expires: Refresh token lifetime
        issuer: ``iss`` claim value
        audience: ``aud`` claim value

    Raises:
        ConfigurationError: If either secret is missing or empty
    """

    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    issuer: str = "gym-saas-api"
    audience: str = "gym-saas-client"

    def __post_init__(self):
        missing = [
            name for name, value in (
                ("JWT_SECRET", self.access_secret),
                ("JWT_REFRESH_SECRET", self.refresh_secret),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ConfigurationError(
                f"JWT secrets are not defined: {', '.join(missing)}"
            )
        if self.access_secret == self.refresh_secret:
            logger.warning("Access and refresh tokens share one signing secret")

    @classmethod
    def from_settings(cls, settings) -> "TokenConfig":
        """Build the config from application settings.

        Example:
            >>> from config import settings
            >>> config = TokenConfig.from_settings(settings)
        """
        return cls(
            access_secret=settings.JWT_SECRET,
            refresh_secret=settings.JWT_REFRESH_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            access_expires=timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_expires=timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS),
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
        )


@dataclass(frozen=True)
class AccessClaims:
    """Verified access token contents."""
    user_id: str
    gym_id: str
    role: Role
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class RefreshClaims:
    """Verified refresh token contents."""
    user_id: str
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    """Issues and verifies access and refresh tokens.

    Args:
        config: Signing configuration
        clock: Returns the current UTC time; used for ``iat``/``exp`` at
            issue time. Verification always checks against the real clock.

    Example:
        >>> codec = TokenCodec(config)
        >>> refresh = codec.issue_refresh_token("user-1")
        >>> codec.verify_refresh_token(refresh).user_id
        'user-1'
    """

    def __init__(self, config: TokenConfig, clock: Optional[Callable[[], datetime]] = None):
        self.config = config
        self._clock = clock or datetime.utcnow

    def _encode(self, claims: Dict[str, Any], secret: str, lifetime: timedelta) -> str:
        now = self._clock()
        payload = dict(claims)
        payload.update({
            "iat": now,
            "exp": now + lifetime,
            "iss": self.config.issuer,
            "aud": self.config.audience,
        })
        return jwt.encode(payload, secret, algorithm=self.config.algorithm)

    def _decode(self, token: str, secret: str, expected_type: str) -> Dict[str, Any]:
        if not token or not isinstance(token, str):
            raise TokenInvalidError("Token is empty")

        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.config.algorithm],
                audience=self.config.audience,
                issuer=self.config.issuer,
                options={
                    "require_iat": True,
                    "require_exp": True,
                    "require_sub": True,
                    "require_aud": True,
                    "require_iss": True,
                },
            )
        except ExpiredSignatureError:
            raise TokenExpiredError(f"{expected_type.capitalize()} token expired")
        except JWTError as e:
            logger.debug(f"{expected_type} token rejected: {e}")
            raise TokenInvalidError(f"Invalid {expected_type} token")

        if payload.get("type") != expected_type:
            raise TokenInvalidError(f"Invalid {expected_type} token")

        return payload

    def issue_access_token(self, user_id: str, gym_id: str, role: Union[Role, str]) -> str:
        """Create a signed access token.

        Args:
            user_id: Subject user id
            gym_id: Gym the user belongs to
            role: User role

        Returns:
            Encoded JWT access token
        """
        return self._encode(
            {
                "sub": str(user_id),
                "gym_id": str(gym_id),
                "role": Role(role).value,
                "type": ACCESS_TOKEN_TYPE,
            },
            self.config.access_secret,
            self.config.access_expires,
        )

    def issue_refresh_token(self, user_id: str) -> str:
        """Create a signed refresh token.

        Only the subject is encoded; role and gym are looked up again when the
        refresh token is redeemed.

        Args:
            user_id: Subject user id

        Returns:
            Encoded JWT refresh token
        """
        return self._encode(
            {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE},
            self.config.refresh_secret,
            self.config.refresh_expires,
        )

    def verify_access_token(self, token: str) -> AccessClaims:
        """Verify an access token and return its claims.

        Raises:
            TokenExpiredError: If the token is past expiry
            TokenInvalidError: On signature, issuer, audience, type or
                structure mismatch
        """
        payload = self._decode(token, self.config.access_secret, ACCESS_TOKEN_TYPE)

        gym_id = payload.get("gym_id")
        if not gym_id:
            raise TokenInvalidError("Invalid access token")
        try:
            role = Role(payload.get("role"))
        except ValueError:
            raise TokenInvalidError("Invalid access token")

        return AccessClaims(
            user_id=payload["sub"],
            gym_id=gym_id,
            role=role,
            issued_at=datetime.utcfromtimestamp(payload["iat"]),
            expires_at=datetime.utcfromtimestamp(payload["exp"]),
        )

    def verify_refresh_token(self, token: str) -> RefreshClaims:
        """Verify a refresh token and return its claims.

        Raises:
            TokenExpiredError: If the token is past expiry
            TokenInvalidError: On any other verification failure
        """
        payload = self._decode(token, self.config.refresh_secret, REFRESH_TOKEN_TYPE)
        return RefreshClaims(
            user_id=payload["sub"],
            issued_at=datetime.utcfromtimestamp(payload["iat"]),
            expires_at=datetime.utcfromtimestamp(payload["exp"]),
        )

    @staticmethod
    def decode_unverified(token: str) -> Optional[Dict[str, Any]]:
        """Read claims without checking signature or expiry.

        For diagnostics only. The result must never be used for an access
        decision.

        Returns:
            Claims dict, or None if the token cannot be parsed
        """
        try:
            return jwt.get_unverified_claims(token)
        except (JWTError, AttributeError, TypeError):
            return None
