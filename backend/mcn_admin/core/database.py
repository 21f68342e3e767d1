"""
MCN Admin Dashboard - Database Engine
=====================================
Async SQLAlchemy engine with an explicit open/close lifecycle.

The engine is owned by a ``Database`` instance that the application opens at
startup and disposes at shutdown; request handlers receive sessions through
the ``get_db`` dependency instead of a module-level pool.
"""

from collections.abc import AsyncIterator
from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from mcn_admin.core.config import Settings
from mcn_admin.core.logging import get_logger

logger = get_logger("database")


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


class Database:
    def __init__(self, url: str, *, echo: bool = False, pool_size: int = 10, max_overflow: int = 10):
        self.url = url
        self._echo = echo
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.app_debug,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )

    def connect(self) -> None:
        if self._engine is not None:
            return
        kwargs = {"echo": self._echo, "pool_pre_ping": True}
        if not self.url.startswith("sqlite"):
            kwargs.update(pool_size=self._pool_size, max_overflow=self._max_overflow)
        self._engine = create_async_engine(self.url, **kwargs)
        self._sessionmaker = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("database_connected", dialect=self._engine.dialect.name)

    async def dispose(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("database_disposed")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    def session(self) -> AsyncSession:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected")
        return self._sessionmaker()

    async def create_all(self) -> None:
        """Create tables directly. Only for development and tests; production uses Alembic."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a session from the application's Database."""
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()
