"""Pytest Configuration and Fixtures for the Gym Check-in Tests

Provides shared fixtures, test utilities, and configuration for the test
suite. Tests run against an in-memory SQLite database (aiosqlite) with low
bcrypt cost so hashing stays fast.

Example:
    >>> async def test_login(auth_service, member):
    ...     result = await auth_service.login(member.email, PASSWORD, member.gym_id)
"""

import os
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import AsyncGenerator, Dict, Generator, Optional
from uuid import uuid4

# Test environment, set before any application module reads settings
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-access-secret-0123456789abcdef"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-0123456789abcdef"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["DATABASE_CONNECT_DELAY"] = "0"

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from main import app
from auth.access_control import Identity
from auth.jwt_handler import TokenCodec, TokenConfig
from auth.password import hash_password
from models.user import Role, User
from services.auth_service import AuthService
from services.check_in_repository import CheckInRepository
from services.check_in_service import CheckInService
from services.database import DatabaseService
from services.user_repository import NewUser, SQLAlchemyUserRepository
from services.user_service import UserService

PASSWORD = "Secret123"

GYM_A = str(uuid4())
GYM_B = str(uuid4())


# ============================================================================
# Token Codec Fixtures
# ============================================================================

@pytest.fixture
def token_config() -> TokenConfig:
    return TokenConfig(
        access_secret="unit-access-secret",
        refresh_secret="unit-refresh-secret",
    )


@pytest.fixture
def codec(token_config) -> TokenCodec:
    return TokenCodec(token_config)


@pytest.fixture
def past_codec(token_config) -> TokenCodec:
    """Codec whose clock runs 30 days behind, so everything it issues is expired."""
    return TokenCodec(token_config, clock=lambda: datetime.utcnow() - timedelta(days=30))


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_db() -> AsyncGenerator[DatabaseService, None]:
    """Fresh in-memory database with all tables created.

    Yields:
        Initialized DatabaseService
    """
    db = DatabaseService("sqlite+aiosqlite:///:memory:")
    await db.init()
    await db.create_all()
    yield db
    await db.close()


@pytest.fixture
def user_repository(test_db) -> SQLAlchemyUserRepository:
    return SQLAlchemyUserRepository(test_db)


@pytest.fixture
def check_in_repository(test_db) -> CheckInRepository:
    return CheckInRepository(test_db)


@pytest.fixture
def auth_service(user_repository, codec) -> AuthService:
    return AuthService(user_repository, codec)


@pytest.fixture
def user_service(user_repository) -> UserService:
    return UserService(user_repository)


@pytest.fixture
def check_in_service(check_in_repository, user_repository) -> CheckInService:
    return CheckInService(check_in_repository, user_repository)


# ============================================================================
# User Fixtures
# ============================================================================

_PASSWORD_HASH = None


def _password_hash() -> str:
    global _PASSWORD_HASH
    if _PASSWORD_HASH is None:
        _PASSWORD_HASH = hash_password(PASSWORD)
    return _PASSWORD_HASH


async def create_user(
    repository: SQLAlchemyUserRepository,
    role: Role = Role.MEMBER,
    gym_id: str = GYM_A,
    email: Optional[str] = None,
    cpf: Optional[str] = None,
    is_active: bool = True,
) -> User:
    """Insert a user directly through the repository.

    Example:
        >>> admin = await create_user(user_repository, role=Role.ADMIN)
    """
    user = await repository.create(NewUser(
        gym_id=gym_id,
        name=f"{role.value.title()} User",
        email=email or f"{role.value.lower()}-{uuid4().hex[:8]}@example.com",
        password_hash=_password_hash(),
        role=role,
        cpf=cpf,
    ))
    if not is_active:
        user = await repository.soft_delete(user.id)
    return user


def identity_of(user: User) -> Identity:
    return Identity(user_id=user.id, gym_id=user.gym_id, role=user.role)


@pytest_asyncio.fixture
async def admin(user_repository) -> User:
    return await create_user(user_repository, Role.ADMIN)


@pytest_asyncio.fixture
async def instructor(user_repository) -> User:
    return await create_user(user_repository, Role.INSTRUCTOR)


@pytest_asyncio.fixture
async def member(user_repository) -> User:
    return await create_user(user_repository, Role.MEMBER)


@pytest_asyncio.fixture
async def other_gym_member(user_repository) -> User:
    return await create_user(user_repository, Role.MEMBER, gym_id=GYM_B)


# ============================================================================
# FastAPI Test Client Fixtures
# ============================================================================

@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a FastAPI test client.

    Startup runs the lifespan, so each client gets a fresh in-memory database.

    Yields:
        TestClient instance

    Example:
        >>> def test_health(client):
        ...     response = client.get("/health")
        ...     assert response.status_code == 200
    """
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Cleanup Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def reset_context():
    """Reset tenant context after each test."""
    yield
    from auth.tenant_context import clear_tenant_context
    clear_tenant_context()


# ============================================================================
# Helper Functions
# ============================================================================

def registration_payload(
    gym_id: str = GYM_A,
    role: Role = Role.MEMBER,
    email: Optional[str] = None,
    **overrides
) -> Dict:
    """Build a valid registration body.

    Example:
        >>> response = client.post("/api/auth/register", json=registration_payload())
    """
    payload = {
        "name": "Ana Souza",
        "email": email or f"user-{uuid4().hex[:8]}@example.com",
        "password": PASSWORD,
        "gymId": gym_id,
        "role": role.value,
    }
    payload.update(overrides)
    return payload


def register(client: TestClient, **kwargs) -> Dict:
    """Register through the API and return the response ``data``.

    Cookies set by the response are dropped so later requests authenticate
    only with the headers a test passes explicitly.
    """
    response = client.post("/api/auth/register", json=registration_payload(**kwargs))
    assert response.status_code == 201, response.text
    client.cookies.clear()
    return response.json()["data"]


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
