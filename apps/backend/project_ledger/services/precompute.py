"""Scheduled cache warming for the most requested reports."""

from __future__ import annotations

import calendar
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from project_ledger.logger import get_logger, log_exception
from project_ledger.schemas.base import CamelModel
from project_ledger.schemas.reporting import GroupBy, PrecomputeResult, ReportFilters
from project_ledger.services.cache import CacheTTL, ReportCache, report_cache_key
from project_ledger.services.reporting import (
    generate_cash_flow_report,
    generate_profit_loss_report,
    generate_transaction_summary,
)

logger = get_logger(__name__)

ReportGenerator = Callable[[AsyncSession, ReportFilters], Awaitable[CamelModel]]


def today_window(now: datetime) -> tuple[datetime, datetime]:
    """Whole current UTC day, bounded the way date-only request bounds are."""
    day = now.astimezone(UTC).date()
    return datetime.combine(day, time.min, tzinfo=UTC), datetime.combine(day, time.max, tzinfo=UTC)


def trailing_month_window(now: datetime) -> tuple[datetime, datetime]:
    """Same instant one calendar month ago up to now."""
    current = now.astimezone(UTC)
    year, month = (current.year, current.month - 1) if current.month > 1 else (current.year - 1, 12)
    day = min(current.day, calendar.monthrange(year, month)[1])
    return current.replace(year=year, month=month, day=day), current


def _month_start(value: datetime) -> datetime:
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class PrecomputeJob:
    name: str
    generate: ReportGenerator
    filters: ReportFilters
    ttl: CacheTTL


def build_precompute_jobs(now: datetime) -> list[PrecomputeJob]:
    """Jobs for current/last month and YTD P&L, this month's cash flow, today's summary."""
    current = now.astimezone(UTC)
    this_month_start = _month_start(current)
    last_month_end = this_month_start - timedelta(microseconds=1)
    last_month_start = _month_start(last_month_end)
    year_start = this_month_start.replace(month=1)
    today_start, today_end = today_window(current)

    return [
        PrecomputeJob(
            name="profit-loss-current-month",
            generate=generate_profit_loss_report,
            filters=ReportFilters(start_date=this_month_start, end_date=today_end, group_by=GroupBy.DAY),
            ttl=CacheTTL.MEDIUM,
        ),
        PrecomputeJob(
            name="profit-loss-last-month",
            generate=generate_profit_loss_report,
            filters=ReportFilters(start_date=last_month_start, end_date=last_month_end, group_by=GroupBy.DAY),
            ttl=CacheTTL.LONG,
        ),
        PrecomputeJob(
            name="profit-loss-ytd",
            generate=generate_profit_loss_report,
            filters=ReportFilters(start_date=year_start, end_date=today_end, group_by=GroupBy.MONTH),
            ttl=CacheTTL.MEDIUM,
        ),
        PrecomputeJob(
            name="cash-flow-current-month",
            generate=generate_cash_flow_report,
            filters=ReportFilters(start_date=this_month_start, end_date=today_end, group_by=GroupBy.DAY),
            ttl=CacheTTL.MEDIUM,
        ),
        PrecomputeJob(
            name="summary-today",
            generate=generate_transaction_summary,
            filters=ReportFilters(start_date=today_start, end_date=today_end),
            ttl=CacheTTL.SHORT,
        ),
    ]


async def _discard_transaction(db: AsyncSession, job_name: str) -> None:
    # A dropped connection can fail the rollback too; the next job still runs
    try:
        await db.rollback()
    except Exception as exc:
        log_exception(logger, exc, "Rollback after failed pre-computation failed", level="warning", report=job_name)


async def precompute_reports(
    db: AsyncSession,
    cache: ReportCache,
    *,
    now: datetime | None = None,
) -> list[PrecomputeResult]:
    """Generate each job's report and store it under the key the routes read.

    A failing job is recorded and does not stop the remaining ones.
    """
    results: list[PrecomputeResult] = []
    for job in build_precompute_jobs(now or datetime.now(UTC)):
        try:
            report = await job.generate(db, job.filters)
            await cache.set(report_cache_key(type(report).kind, job.filters), report, job.ttl)
        except Exception as exc:
            log_exception(logger, exc, "Report pre-computation failed", report=job.name)
            await _discard_transaction(db, job.name)
            results.append(PrecomputeResult(report=job.name, status="error", message=str(exc)))
            continue
        results.append(PrecomputeResult(report=job.name, status="success"))
    return results
