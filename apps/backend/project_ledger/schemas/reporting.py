"""Pydantic schemas for report filters, report records and API envelopes."""

from __future__ import annotations

from datetime import UTC, date, datetime, time
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar
from uuid import UUID

from pydantic import Field, field_validator

from project_ledger.models import TransactionStatus
from project_ledger.schemas.base import CamelModel

ALL = "all"


class GroupBy(str, Enum):
    """Period granularity for time-bucketed breakdowns."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class TypeFilter(str, Enum):
    """Transaction type constraint; ``all`` imposes none."""

    INCOME = "income"
    EXPENSE = "expense"
    ALL = "all"


def _coerce_bound(value: Any, *, end_of_day: bool) -> Any:
    """Turn a date-only bound into a datetime covering the whole day."""
    if isinstance(value, str) and len(value) == 10:
        value = date.fromisoformat(value)
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.max if end_of_day else time.min, tzinfo=UTC)
    return value


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class ReportFilters(CamelModel):
    """Immutable parameters that scope a report.

    Drives both the transaction query and the cache key, so every field that
    can change the result must appear in ``cache_params``.
    """

    start_date: datetime
    end_date: datetime
    project_id: UUID | None = None
    project_name: str | None = None
    type: TypeFilter | None = None
    category_id: UUID | None = None
    payment_method: str | None = None
    status: tuple[TransactionStatus, ...] | None = None
    group_by: GroupBy = GroupBy.MONTH

    @field_validator("start_date", mode="before")
    @classmethod
    def _start_of_day(cls, value: Any) -> Any:
        return _coerce_bound(value, end_of_day=False)

    @field_validator("end_date", mode="before")
    @classmethod
    def _end_of_day(cls, value: Any) -> Any:
        return _coerce_bound(value, end_of_day=True)

    @field_validator("start_date", "end_date")
    @classmethod
    def _normalize_tz(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def with_type(self, transaction_type: TypeFilter) -> ReportFilters:
        """Return a copy constrained to a single transaction type."""
        return self.model_copy(update={"type": transaction_type})

    def cache_params(self) -> dict[str, str]:
        """Flatten filters into string parameters for cache-key derivation."""
        statuses = sorted({s.value for s in self.status}) if self.status else []
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "projectId": str(self.project_id) if self.project_id else ALL,
            "projectName": self.project_name or ALL,
            "type": self.type.value if self.type else ALL,
            "categoryId": str(self.category_id) if self.category_id else ALL,
            "paymentMethod": self.payment_method or ALL,
            "status": ",".join(statuses) or ALL,
            "groupBy": self.group_by.value,
        }


class ReportRequest(CamelModel):
    """Incoming report body; dates are checked by the route, not by schema."""

    start_date: str | None = None
    end_date: str | None = None
    project_id: UUID | None = None
    project_name: str | None = None
    type: TypeFilter | None = None
    category_id: UUID | None = None
    payment_method: str | None = None
    status: list[TransactionStatus] | None = None
    group_by: GroupBy | None = None


# =============================================================================
# Shared breakdown rows
# =============================================================================


class PeriodAmount(CamelModel):
    period: str
    amount: float


class CategoryShare(CamelModel):
    category: str
    amount: float
    percentage: float
    count: int


class CategoryShareWithAverage(CategoryShare):
    avg_transaction: float


# =============================================================================
# Profit & Loss
# =============================================================================


class ProfitLossSummary(CamelModel):
    total_income: float
    total_expense: float
    net_profit: float
    profit_margin: float


class ProfitLossPeriod(CamelModel):
    period: str
    income: float
    expense: float
    net: float


class ProfitLossReport(CamelModel):
    """Income versus expense over the filtered range."""

    kind: ClassVar[str] = "profit-loss"

    summary: ProfitLossSummary
    breakdown: list[ProfitLossPeriod]
    income_by_category: list[CategoryShare]
    expense_by_category: list[CategoryShare]

    @property
    def record_count(self) -> int:
        return len(self.breakdown)


# =============================================================================
# Cash Flow
# =============================================================================


class CashFlowSummary(CamelModel):
    total_inflow: float
    total_outflow: float
    net_flow: float
    opening_balance: float
    closing_balance: float


class PaymentMethodFlow(CamelModel):
    method: str
    inflow: float
    outflow: float
    net: float
    count: int


class CashFlowPeriod(CamelModel):
    period: str
    inflow: float
    outflow: float
    cumulative: float


class CashFlowReport(CamelModel):
    """Inflows and outflows by payment method and period."""

    kind: ClassVar[str] = "cash-flow"

    summary: CashFlowSummary
    by_payment_method: list[PaymentMethodFlow]
    by_period: list[CashFlowPeriod]

    @property
    def record_count(self) -> int:
        return len(self.by_period)


# =============================================================================
# Income Source
# =============================================================================


class IncomeSourceSummary(CamelModel):
    total_income: float
    source_count: int
    avg_per_source: float


class SourceShare(CamelModel):
    source: str
    amount: float
    percentage: float
    count: int
    avg_transaction: float


class IncomeSourceReport(CamelModel):
    """Where income came from."""

    kind: ClassVar[str] = "income-source"

    summary: IncomeSourceSummary
    by_sources: list[SourceShare]
    trend: list[PeriodAmount]

    @property
    def record_count(self) -> int:
        return len(self.by_sources)


# =============================================================================
# Expense Category
# =============================================================================


class ExpenseCategorySummary(CamelModel):
    total_expense: float
    category_count: int
    avg_per_category: float


class ExpenseCategoryReport(CamelModel):
    """Where money was spent."""

    kind: ClassVar[str] = "expense-category"

    summary: ExpenseCategorySummary
    by_category: list[CategoryShareWithAverage]
    trend: list[PeriodAmount]

    @property
    def record_count(self) -> int:
        return len(self.by_category)


# =============================================================================
# Transaction Summary
# =============================================================================


class TransactionSummaryTotals(CamelModel):
    total_transactions: int
    total_income: float
    total_expense: float
    pending_count: int
    today_count: int


class TypeTotals(CamelModel):
    count: int
    amount: float


class TypeBreakdown(CamelModel):
    income: TypeTotals
    expense: TypeTotals


class StatusCount(CamelModel):
    status: str
    count: int


class RecentTransaction(CamelModel):
    id: str
    type: str
    amount: float
    description: str | None = None
    date: datetime


class TransactionSummaryReport(CamelModel):
    """Operational snapshot: counts, totals and the latest activity."""

    kind: ClassVar[str] = "summary"

    summary: TransactionSummaryTotals
    by_type: TypeBreakdown
    by_status: list[StatusCount]
    recent: list[RecentTransaction]

    @property
    def record_count(self) -> int:
        return self.summary.total_transactions


# =============================================================================
# API envelopes
# =============================================================================

ReportT = TypeVar("ReportT")


class ReportMetadata(CamelModel):
    filters: ReportFilters | None = None
    generated_at: datetime
    record_count: int = 0
    cached: bool = False
    latency: float = 0.0


class ReportResult(CamelModel, Generic[ReportT]):  # noqa: UP046
    """Successful report response."""

    success: bool = True
    data: ReportT
    metadata: ReportMetadata


class ReportErrorResponse(CamelModel):
    """Failed report response."""

    success: bool = False
    error: str
    metadata: ReportMetadata | None = None


class PrecomputeResult(CamelModel):
    report: str
    status: str
    message: str | None = None


class PrecomputeResponse(CamelModel):
    success: bool
    timestamp: datetime
    duration: str
    results: list[PrecomputeResult] = Field(default_factory=list)
