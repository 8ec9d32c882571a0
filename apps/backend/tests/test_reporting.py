"""Tests for report generators over in-memory transaction sets."""

from datetime import UTC, datetime

import pytest

from project_ledger.schemas import GroupBy, ReportFilters, TypeFilter
from project_ledger.services.reporting import (
    generate_cash_flow_report,
    generate_expense_category_report,
    generate_income_source_report,
    generate_profit_loss_report,
    generate_transaction_summary,
)
from tests.factories import NormalizedTransactionFactory as Txn

JANUARY = ReportFilters(start_date="2024-01-01", end_date="2024-01-31", group_by=GroupBy.MONTH)


def _on(day: int, month: int = 1, hour: int = 12) -> datetime:
    return datetime(2024, month, day, hour, 0, tzinfo=UTC)


# =============================================================================
# Profit & Loss
# =============================================================================


@pytest.mark.asyncio
async def test_profit_loss_january_scenario(db, transactions_source) -> None:
    transactions = [
        Txn.build(type="income", amount=1000.0, date=_on(5), category_name="Progress Billing"),
        Txn.build(type="expense", amount=400.0, date=_on(20), expense_category_name="Materials"),
    ]

    with transactions_source(transactions) as mock_query:
        report = await generate_profit_loss_report(db, JANUARY)

    mock_query.assert_awaited_once_with(db, JANUARY)
    assert report.summary.total_income == 1000
    assert report.summary.total_expense == 400
    assert report.summary.net_profit == 600
    assert report.summary.profit_margin == 60
    assert [row.model_dump() for row in report.breakdown] == [
        {"period": "2024-01", "income": 1000.0, "expense": 400.0, "net": 600.0}
    ]
    assert [(c.category, c.percentage) for c in report.income_by_category] == [("Progress Billing", 100.0)]
    assert [(c.category, c.count) for c in report.expense_by_category] == [("Materials", 1)]
    assert report.record_count == 1


@pytest.mark.asyncio
async def test_profit_loss_empty_range(db, transactions_source) -> None:
    with transactions_source([]):
        report = await generate_profit_loss_report(db, JANUARY)

    assert report.summary.model_dump() == {
        "total_income": 0.0,
        "total_expense": 0.0,
        "net_profit": 0.0,
        "profit_margin": 0.0,
    }
    assert report.breakdown == []
    assert report.income_by_category == []
    assert report.expense_by_category == []


@pytest.mark.asyncio
async def test_profit_loss_margin_zero_when_only_expenses(db, transactions_source) -> None:
    with transactions_source([Txn.build(type="expense", amount=250.0)]):
        report = await generate_profit_loss_report(db, JANUARY)

    assert report.summary.net_profit == -250
    assert report.summary.profit_margin == 0


@pytest.mark.asyncio
async def test_profit_loss_is_idempotent(db, transactions_source) -> None:
    transactions = [
        Txn.build(type="income", amount=0.1, date=_on(2)),
        Txn.build(type="income", amount=0.2, date=_on(3)),
        Txn.build(type="expense", amount=0.3, date=_on(4)),
    ]

    with transactions_source(transactions):
        first = await generate_profit_loss_report(db, JANUARY)
        second = await generate_profit_loss_report(db, JANUARY)

    assert first.summary == second.summary
    assert first == second


@pytest.mark.asyncio
async def test_profit_loss_breakdown_by_day(db, transactions_source) -> None:
    transactions = [
        Txn.build(type="income", amount=50.0, date=_on(9)),
        Txn.build(type="expense", amount=20.0, date=_on(2)),
        Txn.build(type="income", amount=30.0, date=_on(2)),
    ]
    filters = JANUARY.model_copy(update={"group_by": GroupBy.DAY})

    with transactions_source(transactions):
        report = await generate_profit_loss_report(db, filters)

    assert [(p.period, p.income, p.expense, p.net) for p in report.breakdown] == [
        ("2024-01-02", 30.0, 20.0, 10.0),
        ("2024-01-09", 50.0, 0.0, 50.0),
    ]


# =============================================================================
# Cash Flow
# =============================================================================


@pytest.mark.asyncio
async def test_cash_flow_running_balance(db, transactions_source) -> None:
    transactions = [
        Txn.build(type="income", amount=500.0, date=_on(10, month=1), payment_method="bank_transfer"),
        Txn.build(type="expense", amount=200.0, date=_on(15, month=1), payment_method="cash"),
        Txn.build(type="expense", amount=400.0, date=_on(3, month=2), payment_method="cash"),
        Txn.build(type="income", amount=100.0, date=_on(4, month=3), payment_method=None),
    ]
    filters = ReportFilters(start_date="2024-01-01", end_date="2024-03-31")

    with transactions_source(transactions):
        report = await generate_cash_flow_report(db, filters)

    assert [(p.period, p.inflow, p.outflow, p.cumulative) for p in report.by_period] == [
        ("2024-01", 500.0, 200.0, 300.0),
        ("2024-02", 0.0, 400.0, -100.0),
        ("2024-03", 100.0, 0.0, 0.0),
    ]
    assert report.summary.total_inflow == 600
    assert report.summary.total_outflow == 600
    assert report.summary.opening_balance == 0
    assert report.summary.closing_balance == report.summary.net_flow == 0

    methods = {m.method: m for m in report.by_payment_method}
    assert set(methods) == {"bank_transfer", "cash", "Unknown"}
    assert methods["cash"].outflow == 600
    assert methods["cash"].net == -600
    assert methods["cash"].count == 2
    assert report.record_count == 3


# =============================================================================
# Income Source
# =============================================================================


@pytest.mark.asyncio
async def test_income_source_forces_income_type(db, transactions_source) -> None:
    filters = JANUARY.with_type(TypeFilter.ALL)

    with transactions_source([]) as mock_query:
        await generate_income_source_report(db, filters)

    queried = mock_query.await_args.args[1]
    assert queried.type == TypeFilter.INCOME
    assert filters.type == TypeFilter.ALL


@pytest.mark.asyncio
async def test_income_source_sorted_by_amount(db, transactions_source) -> None:
    transactions = [
        Txn.build(type="income", amount=100.0, source="City Council"),
        Txn.build(type="income", amount=700.0, source="Harbor Developers"),
        Txn.build(type="income", amount=200.0, source="City Council"),
    ]

    with transactions_source(transactions):
        report = await generate_income_source_report(db, JANUARY)

    assert [(s.source, s.amount, s.count) for s in report.by_sources] == [
        ("Harbor Developers", 700.0, 1),
        ("City Council", 300.0, 2),
    ]
    assert report.by_sources[1].avg_transaction == 150
    assert report.by_sources[0].percentage == pytest.approx(70.0)
    assert report.summary.source_count == 2
    assert report.summary.avg_per_source == 500
    assert [t.model_dump() for t in report.trend] == [{"period": "2024-01", "amount": 1000.0}]


@pytest.mark.asyncio
async def test_income_source_empty(db, transactions_source) -> None:
    with transactions_source([]):
        report = await generate_income_source_report(db, JANUARY)

    assert report.summary.total_income == 0
    assert report.summary.avg_per_source == 0
    assert report.by_sources == []


# =============================================================================
# Expense Category
# =============================================================================


@pytest.mark.asyncio
async def test_expense_category_materials_and_labor(db, transactions_source) -> None:
    transactions = [
        Txn.build(type="expense", amount=100.0, expense_category_name="Materials"),
        Txn.build(type="expense", amount=200.0, expense_category_name="Materials"),
        Txn.build(type="expense", amount=50.0, expense_category_name="Labor"),
    ]

    with transactions_source(transactions) as mock_query:
        report = await generate_expense_category_report(db, JANUARY)

    assert mock_query.await_args.args[1].type == TypeFilter.EXPENSE
    materials, labor = report.by_category
    assert (materials.category, materials.amount, materials.count) == ("Materials", 300.0, 2)
    assert materials.percentage == pytest.approx(85.714, abs=1e-3)
    assert (labor.category, labor.amount, labor.count) == ("Labor", 50.0, 1)
    assert labor.percentage == pytest.approx(14.285, abs=1e-3)
    assert materials.avg_transaction == 150
    assert report.summary.total_expense == 350
    assert report.summary.category_count == 2
    assert report.summary.avg_per_category == 175


@pytest.mark.asyncio
async def test_expense_category_missing_name_grouped_as_unknown(db, transactions_source) -> None:
    transactions = [Txn.build(type="expense", amount=80.0, expense_category_name=None)]

    with transactions_source(transactions):
        report = await generate_expense_category_report(db, JANUARY)

    assert [c.category for c in report.by_category] == ["Unknown"]
    assert report.by_category[0].percentage == 100


# =============================================================================
# Transaction Summary
# =============================================================================


@pytest.mark.asyncio
async def test_transaction_summary_counts(db, transactions_source) -> None:
    now = datetime(2024, 1, 20, 18, 0, tzinfo=UTC)
    transactions = [
        Txn.build(type="income", amount=1000.0, date=_on(20, hour=8), status="approved"),
        Txn.build(type="expense", amount=300.0, date=_on(20, hour=9), status="pending"),
        Txn.build(type="expense", amount=100.0, date=_on(5), status="pending"),
        Txn.build(type="income", amount=50.0, date=_on(1), status="draft"),
    ]

    with transactions_source(transactions):
        report = await generate_transaction_summary(db, JANUARY, now=now)

    assert report.summary.total_transactions == 4
    assert report.summary.total_income == 1050
    assert report.summary.total_expense == 400
    assert report.summary.pending_count == 2
    assert report.summary.today_count == 2
    assert report.by_type.income.count == 2
    assert report.by_type.expense.amount == 400
    assert {s.status: s.count for s in report.by_status} == {"approved": 1, "pending": 2, "draft": 1}
    assert [r.date for r in report.recent] == sorted((t.date for t in transactions), reverse=True)
    assert report.record_count == 4


@pytest.mark.asyncio
async def test_transaction_summary_recent_is_limited(db, transactions_source, monkeypatch) -> None:
    from project_ledger.config import settings

    monkeypatch.setattr(settings, "report_recent_limit", 3)
    transactions = [Txn.build(date=_on(day)) for day in range(1, 8)]

    with transactions_source(transactions):
        report = await generate_transaction_summary(db, JANUARY)

    assert [r.date.day for r in report.recent] == [7, 6, 5]
