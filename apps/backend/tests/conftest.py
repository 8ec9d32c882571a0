"""Test fixtures and configuration."""

import logging
import sys
from collections.abc import Iterable
from unittest.mock import AsyncMock, patch

import fakeredis.aioredis
import pytest
import pytest_asyncio
import structlog
from httpx import ASGITransport, AsyncClient

from project_ledger.connections import get_db, get_report_cache
from project_ledger.services.cache import NullReportCache, RedisReportCache
from project_ledger.services.query_builder import NormalizedTransaction


# --- Structlog Configuration for Tests ---
@pytest.fixture(autouse=True, scope="session")
def configure_structlog_for_tests():
    """Configure structlog for proper capsys capture in tests."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(),
        foreign_pre_chain=processors[:-1],
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    yield

    structlog.reset_defaults()


@pytest.fixture
def db() -> AsyncMock:
    """Stand-in session; report tests patch the transaction query instead."""
    session = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest_asyncio.fixture
async def fake_redis():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    try:
        yield client
    finally:
        await client.flushall()
        await client.aclose()


@pytest.fixture
def redis_cache(fake_redis) -> RedisReportCache:
    return RedisReportCache(fake_redis)


@pytest.fixture
def null_cache() -> NullReportCache:
    return NullReportCache()


@pytest.fixture
def transactions_source():
    """Patch the transaction query with an in-memory list.

    Usage:
        with transactions_source([txn_a, txn_b]) as mock_query:
            report = await generate_profit_loss_report(db, filters)
    """

    def _patch(transactions: Iterable[NormalizedTransaction]):
        return patch(
            "project_ledger.services.reporting.query_transactions",
            new_callable=AsyncMock,
            return_value=list(transactions),
        )

    return _patch


@pytest_asyncio.fixture
async def app_client(db, redis_cache):
    """Async client against the app with database and cache overridden."""
    from project_ledger.main import app

    async def _override_db():
        yield db

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_report_cache] = lambda: redis_cache
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
