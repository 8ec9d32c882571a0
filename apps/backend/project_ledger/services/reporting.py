"""Report generators for profit & loss, cash flow, income and expense analytics.

Each generator reads the filtered transactions once, then derives its summary
and breakdowns in memory. Database errors propagate to the caller.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from project_ledger.config import settings
from project_ledger.schemas.reporting import (
    CashFlowPeriod,
    CashFlowReport,
    CashFlowSummary,
    CategoryShare,
    CategoryShareWithAverage,
    ExpenseCategoryReport,
    ExpenseCategorySummary,
    IncomeSourceReport,
    IncomeSourceSummary,
    PaymentMethodFlow,
    PeriodAmount,
    ProfitLossPeriod,
    ProfitLossReport,
    ProfitLossSummary,
    RecentTransaction,
    ReportFilters,
    SourceShare,
    StatusCount,
    TransactionSummaryReport,
    TransactionSummaryTotals,
    TypeBreakdown,
    TypeFilter,
    TypeTotals,
)
from project_ledger.services.errors import ReportError
from project_ledger.services.grouping import (
    UNKNOWN,
    as_utc_datetime,
    calculate_percentages,
    group_by_field,
    group_by_period,
    sum_amounts,
)
from project_ledger.services.query_builder import NormalizedTransaction, query_transactions

INCOME = TypeFilter.INCOME.value
EXPENSE = TypeFilter.EXPENSE.value

__all__ = [
    "ReportError",
    "generate_cash_flow_report",
    "generate_expense_category_report",
    "generate_income_source_report",
    "generate_profit_loss_report",
    "generate_transaction_summary",
]


def _of_type(transactions: Sequence[NormalizedTransaction], kind: str) -> list[NormalizedTransaction]:
    return [t for t in transactions if t.type == kind]


def _split_totals(transactions: Sequence[NormalizedTransaction]) -> tuple[float, float]:
    return sum_amounts(_of_type(transactions, INCOME)), sum_amounts(_of_type(transactions, EXPENSE))


def _profit_margin(net: float, income: float) -> float:
    return (net / income) * 100 if income > 0 else 0.0


def _category_shares(
    transactions: Sequence[NormalizedTransaction], field: str
) -> list[CategoryShare]:
    rows = [
        {"category": bucket.key, "amount": bucket.total, "count": bucket.count}
        for bucket in group_by_field(transactions, field)
    ]
    return [CategoryShare(**row) for row in calculate_percentages(rows)]


def _trend(transactions: Sequence[NormalizedTransaction], filters: ReportFilters) -> list[PeriodAmount]:
    return [
        PeriodAmount(period=bucket.key, amount=bucket.total)
        for bucket in group_by_period(transactions, filters.group_by)
    ]


def _distinct_labels(transactions: Sequence[NormalizedTransaction], field: str) -> int:
    return len({getattr(t, field) or UNKNOWN for t in transactions})


async def generate_profit_loss_report(db: AsyncSession, filters: ReportFilters) -> ProfitLossReport:
    """Income, expense and net profit with period and category breakdowns."""
    transactions = await query_transactions(db, filters)

    income_transactions = _of_type(transactions, INCOME)
    expense_transactions = _of_type(transactions, EXPENSE)

    total_income = sum_amounts(income_transactions)
    total_expense = sum_amounts(expense_transactions)
    net_profit = total_income - total_expense

    breakdown = []
    for bucket in group_by_period(transactions, filters.group_by):
        income, expense = _split_totals(bucket.items)
        breakdown.append(
            ProfitLossPeriod(period=bucket.key, income=income, expense=expense, net=income - expense)
        )

    return ProfitLossReport(
        summary=ProfitLossSummary(
            total_income=total_income,
            total_expense=total_expense,
            net_profit=net_profit,
            profit_margin=_profit_margin(net_profit, total_income),
        ),
        breakdown=breakdown,
        income_by_category=_category_shares(income_transactions, "category_name"),
        expense_by_category=_category_shares(expense_transactions, "expense_category_name"),
    )


async def generate_cash_flow_report(db: AsyncSession, filters: ReportFilters) -> CashFlowReport:
    """Inflow/outflow by payment method and a running balance per period.

    The running balance starts at zero for the requested range; no balance
    is carried in from earlier periods.
    """
    transactions = await query_transactions(db, filters)
    total_inflow, total_outflow = _split_totals(transactions)

    by_payment_method = []
    for bucket in group_by_field(transactions, "payment_method"):
        inflow, outflow = _split_totals(bucket.items)
        by_payment_method.append(
            PaymentMethodFlow(
                method=bucket.key,
                inflow=inflow,
                outflow=outflow,
                net=inflow - outflow,
                count=bucket.count,
            )
        )

    cumulative = 0.0
    by_period = []
    for bucket in group_by_period(transactions, filters.group_by):
        inflow, outflow = _split_totals(bucket.items)
        cumulative += inflow - outflow
        by_period.append(
            CashFlowPeriod(period=bucket.key, inflow=inflow, outflow=outflow, cumulative=cumulative)
        )

    net_flow = total_inflow - total_outflow
    return CashFlowReport(
        summary=CashFlowSummary(
            total_inflow=total_inflow,
            total_outflow=total_outflow,
            net_flow=net_flow,
            opening_balance=0.0,
            closing_balance=net_flow,
        ),
        by_payment_method=by_payment_method,
        by_period=by_period,
    )


async def generate_income_source_report(db: AsyncSession, filters: ReportFilters) -> IncomeSourceReport:
    """Income grouped by payer, largest first."""
    transactions = await query_transactions(db, filters.with_type(TypeFilter.INCOME))
    total_income = sum_amounts(transactions)

    rows = sorted(
        (
            {
                "source": bucket.key,
                "amount": bucket.total,
                "count": bucket.count,
                "avg_transaction": bucket.total / bucket.count,
            }
            for bucket in group_by_field(transactions, "source")
        ),
        key=lambda row: row["amount"],
        reverse=True,
    )
    by_sources = [SourceShare(**row) for row in calculate_percentages(rows)]

    return IncomeSourceReport(
        summary=IncomeSourceSummary(
            total_income=total_income,
            source_count=_distinct_labels(transactions, "source"),
            avg_per_source=total_income / len(by_sources) if by_sources else 0.0,
        ),
        by_sources=by_sources,
        trend=_trend(transactions, filters),
    )


async def generate_expense_category_report(
    db: AsyncSession, filters: ReportFilters
) -> ExpenseCategoryReport:
    """Expenses grouped by cost category, largest first."""
    transactions = await query_transactions(db, filters.with_type(TypeFilter.EXPENSE))
    total_expense = sum_amounts(transactions)

    rows = sorted(
        (
            {
                "category": bucket.key,
                "amount": bucket.total,
                "count": bucket.count,
                "avg_transaction": bucket.total / bucket.count,
            }
            for bucket in group_by_field(transactions, "expense_category_name")
        ),
        key=lambda row: row["amount"],
        reverse=True,
    )
    by_category = [CategoryShareWithAverage(**row) for row in calculate_percentages(rows)]

    return ExpenseCategoryReport(
        summary=ExpenseCategorySummary(
            total_expense=total_expense,
            category_count=_distinct_labels(transactions, "expense_category_name"),
            avg_per_category=total_expense / len(by_category) if by_category else 0.0,
        ),
        by_category=by_category,
        trend=_trend(transactions, filters),
    )


async def generate_transaction_summary(
    db: AsyncSession,
    filters: ReportFilters,
    *,
    now: datetime | None = None,
) -> TransactionSummaryReport:
    """Counts, totals and the most recent transactions in range."""
    transactions = await query_transactions(db, filters)
    today = as_utc_datetime(now or datetime.now(UTC)).date()

    income_transactions = _of_type(transactions, INCOME)
    expense_transactions = _of_type(transactions, EXPENSE)
    total_income = sum_amounts(income_transactions)
    total_expense = sum_amounts(expense_transactions)

    recent = sorted(transactions, key=lambda t: t.date, reverse=True)[: settings.report_recent_limit]

    return TransactionSummaryReport(
        summary=TransactionSummaryTotals(
            total_transactions=len(transactions),
            total_income=total_income,
            total_expense=total_expense,
            pending_count=sum(1 for t in transactions if t.status == "pending"),
            today_count=sum(1 for t in transactions if as_utc_datetime(t.date).date() == today),
        ),
        by_type=TypeBreakdown(
            income=TypeTotals(count=len(income_transactions), amount=total_income),
            expense=TypeTotals(count=len(expense_transactions), amount=total_expense),
        ),
        by_status=[
            StatusCount(status=bucket.key, count=bucket.count)
            for bucket in group_by_field(transactions, "status")
        ],
        recent=[
            RecentTransaction(
                id=t.id,
                type=t.type,
                amount=t.amount,
                description=t.description,
                date=t.date,
            )
            for t in recent
        ],
    )
