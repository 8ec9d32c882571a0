"""Report cache backed by Redis.

The cache only ever holds derived values, so every failure is logged and
degraded to a miss (``get``) or a no-op (``set``/``delete``). When no Redis
URL is configured a ``NullReportCache`` stands in and the cache is simply
always cold.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from enum import IntEnum
from typing import Any, Protocol

import redis.asyncio as redis
from pydantic import BaseModel
from redis.exceptions import RedisError

from project_ledger.config import Settings
from project_ledger.logger import get_logger
from project_ledger.schemas.reporting import ReportFilters

logger = get_logger(__name__)


class CacheTTL(IntEnum):
    """Expiration tiers in seconds."""

    INSTANT = 10  # real-time data
    SHORT = 60  # frequently changing
    MEDIUM = 300  # reports
    LONG = 3600  # historical data
    DAY = 86400  # archived data


def generate_cache_key(prefix: str, params: Mapping[str, Any]) -> str:
    """Derive a cache key that does not depend on parameter order."""
    sorted_params = "|".join(f"{key}:{params[key]}" for key in sorted(params))
    return f"{prefix}:{sorted_params}"


def report_cache_key(kind: str, filters: ReportFilters) -> str:
    return generate_cache_key(f"report:{kind}", filters.cache_params())


def ttl_for_range(end: datetime, default: CacheTTL, *, now: datetime | None = None) -> CacheTTL:
    """Use the LONG tier for ranges that closed before the current month."""
    current = (now or datetime.now(UTC)).astimezone(UTC)
    month_start = current.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if end < month_start:
        return CacheTTL.LONG
    return default


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return value


class ReportCache(Protocol):
    configured: bool

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class NullReportCache:
    """Cache used when Redis is not configured: every lookup misses."""

    configured = False

    async def get(self, key: str) -> Any | None:
        return None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class RedisReportCache:
    """JSON values stored with SETEX; failures never reach the caller."""

    configured = True

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float | None = None) -> RedisReportCache:
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(key)
        except RedisError as exc:
            logger.warning("Cache get failed", key=key, error=str(exc), error_type=type(exc).__name__)
            return None

        if raw is None:
            logger.debug("Cache miss", key=key)
            return None

        try:
            value = json.loads(raw)
        except ValueError as exc:
            logger.warning("Cache value is not valid JSON", key=key, error=str(exc))
            return None

        logger.debug("Cache hit", key=key)
        return value

    async def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            payload = json.dumps(_to_jsonable(value))
            await self._client.setex(key, int(ttl), payload)
        except (RedisError, TypeError, ValueError) as exc:
            logger.warning("Cache set failed", key=key, error=str(exc), error_type=type(exc).__name__)
            return
        logger.debug("Cache set", key=key, ttl=int(ttl))

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as exc:
            logger.warning("Cache delete failed", key=key, error=str(exc), error_type=type(exc).__name__)
            return
        logger.debug("Cache delete", key=key)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as exc:
            logger.warning("Cache ping failed", error=str(exc), error_type=type(exc).__name__)
            return False

    async def close(self) -> None:
        await self._client.aclose()


def build_report_cache(settings: Settings) -> ReportCache:
    """Pick the Redis-backed cache when configured, the null cache otherwise."""
    if not settings.cache_configured:
        logger.info("Report cache disabled (REDIS_URL not set)")
        return NullReportCache()
    return RedisReportCache.from_url(
        settings.redis_url,
        socket_timeout=settings.redis_socket_timeout_seconds,
    )
