"""Database engine and session utilities."""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from position_service.config import get_settings
from position_service.db.base import Base


class Database:
    """Configure an async SQLAlchemy engine and session factory."""

    def __init__(self, url: str | None = None, *, echo: bool | None = None):
        settings = get_settings()
        self._url = url or settings.database_url
        self._engine = create_async_engine(
            self._url,
            future=True,
            echo=settings.database_echo if echo is None else echo,
        )
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False, class_=AsyncSession)

    @property
    def url(self) -> str:
        return self._url

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_all(self) -> None:
        """Create all tables defined on the declarative metadata."""

        import position_service.models  # noqa: F401  # pylint: disable=unused-import

        async with self._engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            yield session


@lru_cache(maxsize=1)
def get_database() -> Database:
    """Return the shared database for the configured URL."""

    return Database()


__all__ = ["Database", "get_database"]
