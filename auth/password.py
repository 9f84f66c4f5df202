"""Password hashing for stored credentials.

bcrypt through passlib's ``CryptContext``. Digests are self-describing
(``$2b$10$<salt><hash>``) so verification reads the cost and salt back out of
the stored value.

Example:
    >>> digest = hash_password("S3cret-pass")
    >>> verify_password("S3cret-pass", digest)
    True
"""

import asyncio
import logging

from passlib.context import CryptContext

from config import settings

logger = logging.getLogger(__name__)

# bcrypt reads at most this many bytes of the secret
BCRYPT_MAX_BYTES = 72

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.PASSWORD_HASH_ROUNDS,
    # refuse longer secrets instead of silently truncating them
    bcrypt__truncate_error=True,
)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    A fresh salt is drawn on every call, so hashing the same password twice
    gives two different digests.

    Args:
        password: Plain text password

    Returns:
        Hashed password

    Raises:
        ValueError: If the password is longer than BCRYPT_MAX_BYTES in UTF-8

    Example:
        >>> hashed = hash_password("my-secret-password")
        >>> print(hashed[:7])
        $2b$10$
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Args:
        plain_password: Plain text password
        hashed_password: Stored digest

    Returns:
        True if password matches; False otherwise, including passwords over
        BCRYPT_MAX_BYTES and unreadable digests
    """
    if not hashed_password:
        return False
    if isinstance(plain_password, str) and len(plain_password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.warning(f"Password verification against malformed digest: {type(e).__name__}")
        return False


async def hash_password_async(password: str) -> str:
    """Hash off the event loop; bcrypt is CPU-bound."""
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(plain_password: str, hashed_password: str) -> bool:
    """Verify off the event loop; bcrypt is CPU-bound."""
    return await asyncio.to_thread(verify_password, plain_password, hashed_password)
