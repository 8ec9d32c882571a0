"""Financial reporting API router."""

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from project_ledger.deps import DbSession, ReportCacheDep
from project_ledger.logger import async_log_timing, get_logger, log_exception
from project_ledger.models import TransactionStatus
from project_ledger.schemas import (
    CashFlowReport,
    ExpenseCategoryReport,
    GroupBy,
    IncomeSourceReport,
    ProfitLossReport,
    ReportErrorResponse,
    ReportFilters,
    ReportMetadata,
    ReportRequest,
    ReportResult,
    TransactionSummaryReport,
    TypeFilter,
)
from project_ledger.schemas.base import CamelModel
from project_ledger.services.cache import CacheTTL, ReportCache, report_cache_key, ttl_for_range
from project_ledger.services.precompute import today_window, trailing_month_window
from project_ledger.services.reporting import (
    ReportError,
    generate_cash_flow_report,
    generate_expense_category_report,
    generate_income_source_report,
    generate_profit_loss_report,
    generate_transaction_summary,
)
from project_ledger.utils import raise_bad_request

router = APIRouter(prefix="/reports", tags=["reports"])
logger = get_logger(__name__)

DefaultWindow = Callable[[datetime], tuple[datetime, datetime]]


@dataclass(frozen=True)
class ReportEndpoint:
    """How one report kind is generated, cached and defaulted."""

    label: str
    model: type[CamelModel]
    generate: Callable[[AsyncSession, ReportFilters], Awaitable[CamelModel]]
    ttl: CacheTTL
    default_window: DefaultWindow


ENDPOINTS: dict[str, ReportEndpoint] = {
    "profit-loss": ReportEndpoint(
        label="Profit-Loss Report",
        model=ProfitLossReport,
        generate=generate_profit_loss_report,
        ttl=CacheTTL.MEDIUM,
        default_window=trailing_month_window,
    ),
    "cash-flow": ReportEndpoint(
        label="Cash Flow Report",
        model=CashFlowReport,
        generate=generate_cash_flow_report,
        ttl=CacheTTL.MEDIUM,
        default_window=trailing_month_window,
    ),
    "income-source": ReportEndpoint(
        label="Income Source Report",
        model=IncomeSourceReport,
        generate=generate_income_source_report,
        ttl=CacheTTL.MEDIUM,
        default_window=trailing_month_window,
    ),
    "expense-category": ReportEndpoint(
        label="Expense Category Report",
        model=ExpenseCategoryReport,
        generate=generate_expense_category_report,
        ttl=CacheTTL.MEDIUM,
        default_window=trailing_month_window,
    ),
    # Operational snapshot: short TTL, defaults to today
    "transaction-summary": ReportEndpoint(
        label="Transaction Summary",
        model=TransactionSummaryReport,
        generate=generate_transaction_summary,
        ttl=CacheTTL.SHORT,
        default_window=today_window,
    ),
}


def _filters_from_request(payload: ReportRequest) -> ReportFilters:
    if not payload.start_date or not payload.end_date:
        raise_bad_request("startDate and endDate are required")
    try:
        return ReportFilters(
            start_date=payload.start_date,
            end_date=payload.end_date,
            project_id=payload.project_id,
            project_name=payload.project_name,
            type=payload.type,
            category_id=payload.category_id,
            payment_method=payload.payment_method,
            status=tuple(payload.status) if payload.status else None,
            group_by=payload.group_by or GroupBy.MONTH,
        )
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise_bad_request(f"Invalid {field}: {first['msg']}", cause=exc)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


async def _cached_report(cache: ReportCache, key: str, model: type[CamelModel]) -> CamelModel | None:
    cached = await cache.get(key)
    if cached is None:
        return None
    try:
        return model.model_validate(cached)
    except ValidationError as exc:
        logger.warning("Discarding cached report with unexpected shape", key=key, error=str(exc))
        return None


async def _serve_report(
    endpoint: ReportEndpoint,
    payload: ReportRequest,
    db: AsyncSession,
    cache: ReportCache,
) -> ReportResult | JSONResponse:
    started = time.perf_counter()
    filters = _filters_from_request(payload)

    try:
        key = report_cache_key(endpoint.model.kind, filters)
        report = await _cached_report(cache, key, endpoint.model)
        cached = report is not None
        if report is None:
            async with async_log_timing(endpoint.model.kind, logger=logger, level="debug") as timing:
                report = await endpoint.generate(db, filters)
                timing["record_count"] = report.record_count
            await cache.set(key, report, ttl_for_range(filters.end_date, endpoint.ttl))
    except ReportError as exc:
        logger.warning(f"[{endpoint.label}] Invalid request", error=str(exc))
        return _error_response(str(exc), status.HTTP_400_BAD_REQUEST, filters, started)
    except Exception as exc:
        log_exception(logger, exc, f"[{endpoint.label}] Error")
        return _error_response(
            str(exc) or "Failed to generate report",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            None,
            started,
        )

    return ReportResult[endpoint.model](
        data=report,
        metadata=ReportMetadata(
            filters=filters,
            generated_at=datetime.now(UTC),
            record_count=report.record_count,
            cached=cached,
            latency=_elapsed_ms(started),
        ),
    )


def _error_response(
    message: str,
    status_code: int,
    filters: ReportFilters | None,
    started: float,
) -> JSONResponse:
    body = ReportErrorResponse(
        error=message,
        metadata=ReportMetadata(
            filters=filters,
            generated_at=datetime.now(UTC),
            latency=_elapsed_ms(started),
        ),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


def _query_request(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    project_id: UUID | None = Query(default=None, alias="projectId"),
    project_name: str | None = Query(default=None, alias="projectName"),
    type: TypeFilter | None = Query(default=None),
    category_id: UUID | None = Query(default=None, alias="categoryId"),
    payment_method: str | None = Query(default=None, alias="paymentMethod"),
    status: list[TransactionStatus] | None = Query(default=None),
    group_by: GroupBy | None = Query(default=None, alias="groupBy"),
) -> ReportRequest:
    return ReportRequest(
        start_date=start_date,
        end_date=end_date,
        project_id=project_id,
        project_name=project_name,
        type=type,
        category_id=category_id,
        payment_method=payment_method,
        status=status,
        group_by=group_by,
    )


QueryRequest = Annotated[ReportRequest, Depends(_query_request)]


def _with_default_window(request: ReportRequest, window: DefaultWindow) -> ReportRequest:
    default_start, default_end = window(datetime.now(UTC))
    return request.model_copy(
        update={
            "start_date": request.start_date or default_start.isoformat(),
            "end_date": request.end_date or default_end.isoformat(),
        }
    )


async def _serve_get(name: str, request: ReportRequest, db: AsyncSession, cache: ReportCache):
    endpoint = ENDPOINTS[name]
    return await _serve_report(endpoint, _with_default_window(request, endpoint.default_window), db, cache)


@router.post("/profit-loss", response_model=ReportResult[ProfitLossReport])
async def profit_loss(payload: ReportRequest, db: DbSession, cache: ReportCacheDep):
    """Profit & loss for the requested range."""
    return await _serve_report(ENDPOINTS["profit-loss"], payload, db, cache)


@router.get("/profit-loss", response_model=ReportResult[ProfitLossReport])
async def profit_loss_query(request: QueryRequest, db: DbSession, cache: ReportCacheDep):
    return await _serve_get("profit-loss", request, db, cache)


@router.post("/cash-flow", response_model=ReportResult[CashFlowReport])
async def cash_flow(payload: ReportRequest, db: DbSession, cache: ReportCacheDep):
    """Cash inflow and outflow for the requested range."""
    return await _serve_report(ENDPOINTS["cash-flow"], payload, db, cache)


@router.get("/cash-flow", response_model=ReportResult[CashFlowReport])
async def cash_flow_query(request: QueryRequest, db: DbSession, cache: ReportCacheDep):
    return await _serve_get("cash-flow", request, db, cache)


@router.post("/income-source", response_model=ReportResult[IncomeSourceReport])
async def income_source(payload: ReportRequest, db: DbSession, cache: ReportCacheDep):
    """Income grouped by source."""
    return await _serve_report(ENDPOINTS["income-source"], payload, db, cache)


@router.get("/income-source", response_model=ReportResult[IncomeSourceReport])
async def income_source_query(request: QueryRequest, db: DbSession, cache: ReportCacheDep):
    return await _serve_get("income-source", request, db, cache)


@router.post("/expense-category", response_model=ReportResult[ExpenseCategoryReport])
async def expense_category(payload: ReportRequest, db: DbSession, cache: ReportCacheDep):
    """Expenses grouped by cost category."""
    return await _serve_report(ENDPOINTS["expense-category"], payload, db, cache)


@router.get("/expense-category", response_model=ReportResult[ExpenseCategoryReport])
async def expense_category_query(request: QueryRequest, db: DbSession, cache: ReportCacheDep):
    return await _serve_get("expense-category", request, db, cache)


@router.post("/transaction-summary", response_model=ReportResult[TransactionSummaryReport])
async def transaction_summary(payload: ReportRequest, db: DbSession, cache: ReportCacheDep):
    """Counts, totals and recent activity; defaults to today on GET."""
    return await _serve_report(ENDPOINTS["transaction-summary"], payload, db, cache)


@router.get("/transaction-summary", response_model=ReportResult[TransactionSummaryReport])
async def transaction_summary_query(request: QueryRequest, db: DbSession, cache: ReportCacheDep):
    return await _serve_get("transaction-summary", request, db, cache)
