"""
Database Manager with async operations and connection pooling.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from autotune.database.models import Base
from autotune.utils.logger import LoggerMixin


class DatabaseManager(LoggerMixin):
    """
    Async database manager.

    Features:
    - Async SQLAlchemy with asyncpg (PostgreSQL) or aiosqlite (SQLite)
    - Connection pooling for server databases
    - Session context manager with commit/rollback
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        echo: bool = False,
    ) -> None:
        """
        Args:
            database_url: Async connection URL (postgresql+asyncpg://... or sqlite+aiosqlite://...)
            pool_size: Number of connections to maintain
            max_overflow: Maximum overflow connections beyond pool_size
            pool_pre_ping: Enable connection health checks
            echo: Whether to log all SQL statements
        """
        self.database_url = database_url
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._pool_pre_ping = pool_pre_ping
        self._echo = echo

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def engine(self) -> AsyncEngine:
        if not self._engine:
            raise RuntimeError("Database not initialized")
        return self._engine

    async def initialize(self) -> None:
        """Initialize database engine and session factory"""
        engine_kwargs: dict[str, Any] = {"echo": self._echo}
        if not self.is_sqlite:
            # SQLite uses its own pool classes which reject sizing arguments
            engine_kwargs.update(
                pool_size=self._pool_size,
                max_overflow=self._max_overflow,
                pool_pre_ping=self._pool_pre_ping,
            )

        try:
            self._engine = create_async_engine(self.database_url, **engine_kwargs)
            self._session_factory = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            self.logger.info(
                "Database engine initialized",
                dialect=self._engine.dialect.name,
                pool_size=None if self.is_sqlite else self._pool_size,
            )
        except Exception as e:
            self.logger.error("Failed to initialize database", error=str(e))
            raise

    async def close(self) -> None:
        """Close database connections"""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self.logger.info("Database connections closed")

    async def health_check(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            async with self.session() as session:
                await session.execute(select(1))
            return True
        except Exception as e:
            self.logger.error("database_health_check_failed", error=str(e))
            return False

    async def create_all_tables(self) -> None:
        """Create all tables in the database"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            self.logger.info("All database tables created")

    async def drop_all_tables(self) -> None:
        """Drop all tables from the database (use with caution!)"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            self.logger.warning("All database tables dropped")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Transactional session; commits on success, rolls back on error.

        Usage:
            async with db.session() as session:
                session.add(record)
        """
        if not self._session_factory:
            raise RuntimeError("Database not initialized")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
