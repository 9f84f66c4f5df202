"""
Database Service

Owns the async SQLAlchemy 2.0 engine and session factory shared by the
repositories.

Example:
    >>> from services.database import DatabaseService
    >>> db = DatabaseService()
    >>> await db.init()
    >>> async with db.session() as session:
    ...     await session.execute(select(User))
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from config import settings
from models.user import Base
import models.check_in  # noqa: F401  (registers the check_ins table on Base.metadata)
from utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """Exception raised when database operation fails."""

    def __init__(self, message: str, **context):
        self.message = message
        self.context = context
        super().__init__(message)


class DatabaseService:
    """Service for async database access.

    Attributes:
        database_url: SQLAlchemy async URL
        engine: Async SQLAlchemy engine (after ``init``)

    Example:
        >>> db = DatabaseService("sqlite+aiosqlite:///:memory:")
        >>> await db.init()
        >>> await db.create_all()
    """

    def __init__(self, database_url: Optional[str] = None):
        """Initialize database service.

        Args:
            database_url: Database connection URL (defaults to settings)
        """
        self.database_url = database_url or settings.DATABASE_URL
        self._engine = None
        self._session_factory = None

    def _engine_options(self) -> Dict[str, Any]:
        if self.database_url.startswith("sqlite"):
            # One shared connection so an in-memory database survives across sessions.
            return {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        return {
            "pool_size": settings.DATABASE_POOL_SIZE,
            "max_overflow": settings.DATABASE_MAX_OVERFLOW,
            "pool_pre_ping": True,
        }

    async def init(self) -> None:
        """Initialize database engine and session factory.

        Should be called during application startup.

        Raises:
            DatabaseError: If the engine cannot be created
        """
        try:
            self._engine = create_async_engine(
                self.database_url,
                echo=False,
                **self._engine_options()
            )

            self._session_factory = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            logger.info("Database service initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database: {str(e)}")
            raise DatabaseError(f"Database initialization failed: {str(e)}")

    async def close(self) -> None:
        """Close database connections.

        Should be called during application shutdown.
        """
        if self._engine:
            await self._engine.dispose()
            logger.info("Database connections closed")

    async def create_all(self) -> None:
        """Create all tables. Used for tests and local development."""
        if not self._engine:
            raise DatabaseError("Database not initialized. Call init() first.")
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Get async database session.

        Commits on clean exit, rolls back on error.

        Yields:
            AsyncSession: Database session
        """
        if not self._session_factory:
            raise DatabaseError("Database not initialized. Call init() first.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def wait_until_ready(self) -> None:
        """Block until the database answers, retrying with backoff.

        Raises:
            DatabaseError: If the database is still unreachable after the
                configured number of attempts
        """

        @retry_with_backoff(exceptions=(SQLAlchemyError, OSError), logger_instance=logger)
        async def _ping() -> None:
            async with self.session() as session:
                await session.execute(select(1))

        try:
            await _ping()
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseError(f"Database unreachable: {str(e)}")

    async def health_check(self) -> bool:
        """Check database connectivity.

        Returns:
            True if healthy, False otherwise
        """
        try:
            if not self._engine:
                return False

            async with self.session() as session:
                await session.execute(select(1))
            return True

        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False


# Global database service instance
_db_service: Optional[DatabaseService] = None


def get_database() -> DatabaseService:
    """Get global database service instance.

    Returns:
        DatabaseService instance
    """
    global _db_service
    if _db_service is None:
        _db_service = DatabaseService()
    return _db_service
