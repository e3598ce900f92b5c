"""Async engine and unit-of-work sessions for listen storage."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Self

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from scrobbles.config.database import DatabaseSettings
from scrobbles.db.base import Base


class DatabaseManager:
    """Owns the async engine; hands out sessions that commit or roll back as a whole.

    An import batch runs inside one session, so a storage error anywhere in it
    leaves nothing of the batch behind.

    Usage:
        db = DatabaseManager.from_env()

        async with db.session() as session:
            await repository.add_listen(...)

        # FastAPI: Depends(db.dependency); tests override that key
        await db.dispose()
    """

    def __init__(self, settings: DatabaseSettings) -> None:
        self._settings = settings
        self._engine = create_async_engine(settings.database_url, **settings.engine_options())
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_env(cls) -> Self:
        return cls(DatabaseSettings())

    @classmethod
    def from_url(cls, database_url: str) -> Self:
        return cls(DatabaseSettings(database_url=database_url))

    @property
    def is_sqlite(self) -> bool:
        return self._settings.is_sqlite

    async def create_schema(self) -> None:
        """Create missing tables directly from the models (SQLite installs, no Alembic)."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Session scope: commit on success, roll back on any exception."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def dependency(self) -> AsyncGenerator[AsyncSession]:
        """FastAPI Depends() compatible session provider."""
        async with self.session() as session:
            yield session

    async def dispose(self) -> None:
        await self._engine.dispose()
