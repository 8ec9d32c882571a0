"""Database configuration and session management."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from project_ledger.config import Settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


class Database:
    """Owns the async engine and session factory for the transaction store.

    Constructed once at process start and shared by every request; sessions
    are short-lived and opened per request through ``session()``.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,  # Max persistent connections
            max_overflow=settings.db_max_overflow,  # Additional transient connections under load
            pool_recycle=3600,  # Recycle connections after 1 hour
        )
        return cls(engine)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_maker() as session:
            try:
                yield session
            finally:
                await session.close()

    async def dispose(self) -> None:
        await self.engine.dispose()
