"""Process-wide connection handles.

A single ``Connections`` instance is built in the application lifespan and
kept on ``app.state``; routes reach it through FastAPI dependencies rather
than module-level clients.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from project_ledger.config import Settings
from project_ledger.database import Database
from project_ledger.logger import get_logger
from project_ledger.services.cache import ReportCache, build_report_cache

logger = get_logger(__name__)


@dataclass
class Connections:
    """Database engine and report cache shared by all requests."""

    database: Database
    cache: ReportCache

    @classmethod
    def open(cls, settings: Settings) -> Connections:
        connections = cls(
            database=Database.from_settings(settings),
            cache=build_report_cache(settings),
        )
        logger.info("Connections opened", cache_configured=connections.cache.configured)
        return connections

    async def close(self) -> None:
        await self.cache.close()
        await self.database.dispose()
        logger.info("Connections closed")


def get_connections(request: Request) -> Connections:
    return request.app.state.connections


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency for a request-scoped database session."""
    async with get_connections(request).database.session() as session:
        yield session


def get_report_cache(request: Request) -> ReportCache:
    return get_connections(request).cache
