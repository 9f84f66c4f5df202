"""
Tests for the User Repository

Uniqueness is enforced by the database; these tests go straight to the
repository, bypassing the service-level existence checks, to make sure a
constraint violation surfaces as ConflictError.

Example:
    >>> pytest tests/unit/test_user_repository.py -v
"""

import pytest

from conftest import GYM_A, GYM_B, create_user
from models.user import Role
from services.database import DatabaseError, DatabaseService
from services.user_repository import NewUser, SQLAlchemyUserRepository
from utils.errors import ConflictError


def _new_user(email="dup@example.com", gym_id=GYM_A, cpf=None) -> NewUser:
    return NewUser(
        gym_id=gym_id,
        name="Dup User",
        email=email,
        password_hash="$2b$04$notarealhashnotarealhashnotarealhashnotarealhashnot",
        cpf=cpf,
    )


class TestCreate:
    """Test inserts and constraint translation."""

    @pytest.mark.asyncio
    async def test_defaults(self, user_repository):
        user = await user_repository.create(_new_user())

        assert len(user.id) == 36
        assert user.role == Role.MEMBER
        assert user.is_active is True
        assert user.created_at is not None

    @pytest.mark.asyncio
    async def test_email_gym_unique(self, user_repository):
        await user_repository.create(_new_user())
        with pytest.raises(ConflictError, match="Email"):
            await user_repository.create(_new_user())

    @pytest.mark.asyncio
    async def test_same_email_different_gym(self, user_repository):
        await user_repository.create(_new_user(gym_id=GYM_A))
        user = await user_repository.create(_new_user(gym_id=GYM_B))
        assert user.gym_id == GYM_B

    @pytest.mark.asyncio
    async def test_cpf_unique(self, user_repository):
        await user_repository.create(_new_user(email="a@example.com", cpf="11122233344"))
        with pytest.raises(ConflictError, match="CPF"):
            await user_repository.create(_new_user(email="b@example.com", gym_id=GYM_B, cpf="11122233344"))


class TestQueries:
    """Test lookups."""

    @pytest.mark.asyncio
    async def test_find_by_email_scoped_to_gym(self, user_repository, member):
        assert (await user_repository.find_by_email_and_gym(member.email, GYM_A)).id == member.id
        assert await user_repository.find_by_email_and_gym(member.email, GYM_B) is None

    @pytest.mark.asyncio
    async def test_exists(self, user_repository):
        await create_user(user_repository, email="x@example.com", cpf="55566677788")

        assert await user_repository.exists_by_email_and_gym("x@example.com", GYM_A) is True
        assert await user_repository.exists_by_cpf("55566677788") is True
        assert await user_repository.exists_by_cpf("00000000000") is False

    @pytest.mark.asyncio
    async def test_find_many_filters(self, user_repository, admin, member):
        inactive = await create_user(user_repository, is_active=False)

        active_ids = [u.id for u in await user_repository.find_many(GYM_A, is_active=True)]
        inactive_ids = [u.id for u in await user_repository.find_many(GYM_A, is_active=False)]
        admin_ids = [u.id for u in await user_repository.find_many(GYM_A, role=Role.ADMIN)]

        assert set(active_ids) == {admin.id, member.id}
        assert inactive_ids == [inactive.id]
        assert admin_ids == [admin.id]


class TestUpdateAndDelete:
    """Test mutations."""

    @pytest.mark.asyncio
    async def test_update(self, user_repository, member):
        updated = await user_repository.update(member.id, {"name": "Renamed"})
        assert updated.name == "Renamed"

    @pytest.mark.asyncio
    async def test_update_missing(self, user_repository):
        assert await user_repository.update("missing", {"name": "Renamed"}) is None

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_fields(self, user_repository, member):
        with pytest.raises(ValueError):
            await user_repository.update(member.id, {"gym_id": GYM_B})

    @pytest.mark.asyncio
    async def test_null_into_required_column_is_not_a_conflict(self, user_repository, member):
        with pytest.raises(DatabaseError) as exc_info:
            await user_repository.update(member.id, {"name": None})

        assert "not null" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_soft_delete_and_reactivate(self, user_repository, member):
        assert (await user_repository.soft_delete(member.id)).is_active is False
        assert (await user_repository.reactivate(member.id)).is_active is True

    @pytest.mark.asyncio
    async def test_delete(self, user_repository, member):
        assert await user_repository.delete(member.id) is True
        assert await user_repository.find_by_id(member.id) is None
        assert await user_repository.delete(member.id) is False


class TestDatabaseService:
    """Test database service lifecycle."""

    @pytest.mark.asyncio
    async def test_session_before_init(self):
        db = DatabaseService("sqlite+aiosqlite:///:memory:")
        with pytest.raises(DatabaseError):
            async with db.session():
                pass

    @pytest.mark.asyncio
    async def test_health_check(self, test_db):
        assert await test_db.health_check() is True

    @pytest.mark.asyncio
    async def test_wait_until_ready(self, test_db):
        await test_db.wait_until_ready()

    @pytest.mark.asyncio
    async def test_repository_on_uninitialized_database(self):
        repo = SQLAlchemyUserRepository(DatabaseService("sqlite+aiosqlite:///:memory:"))
        with pytest.raises(DatabaseError):
            await repo.find_by_id("anything")
