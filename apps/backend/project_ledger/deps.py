"""Common FastAPI dependencies for consistent type annotations.

Usage:
    from project_ledger.deps import DbSession, ReportCacheDep

    async def my_endpoint(db: DbSession, cache: ReportCacheDep):
        ...
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from project_ledger.connections import Connections, get_connections, get_db, get_report_cache
from project_ledger.services.cache import ReportCache

DbSession = Annotated[AsyncSession, Depends(get_db)]
ReportCacheDep = Annotated[ReportCache, Depends(get_report_cache)]
ConnectionsDep = Annotated[Connections, Depends(get_connections)]

__all__ = ["ConnectionsDep", "DbSession", "ReportCacheDep"]
