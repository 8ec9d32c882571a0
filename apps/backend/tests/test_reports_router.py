"""HTTP tests for the report routes."""

from datetime import UTC, datetime, time, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from project_ledger.services.errors import ReportError
from tests.factories import NormalizedTransactionFactory as Txn

JANUARY = {"startDate": "2024-01-01", "endDate": "2024-01-31"}
QUERY_PATH = "project_ledger.services.reporting.query_transactions"


def _january_transactions():
    return [
        Txn.build(type="income", amount=1000.0, date=datetime(2024, 1, 5, tzinfo=UTC)),
        Txn.build(
            type="expense",
            amount=400.0,
            date=datetime(2024, 1, 20, tzinfo=UTC),
            expense_category_name="Materials",
        ),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path",
    [
        "/reports/profit-loss",
        "/reports/cash-flow",
        "/reports/income-source",
        "/reports/expense-category",
        "/reports/transaction-summary",
    ],
)
async def test_post_without_dates_returns_envelope(app_client, path: str) -> None:
    response = await app_client.post(path, json={"startDate": "2024-01-01"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "startDate and endDate are required"}


@pytest.mark.asyncio
async def test_post_with_unknown_group_by_returns_envelope(app_client) -> None:
    response = await app_client.post("/reports/profit-loss", json={**JANUARY, "groupBy": "fortnight"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "groupBy" in body["error"]


@pytest.mark.asyncio
async def test_post_with_malformed_date_returns_envelope(app_client) -> None:
    response = await app_client.post("/reports/cash-flow", json={"startDate": "yesterday", "endDate": "2024-01-31"})

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_profit_loss_success_then_cached(app_client) -> None:
    with patch(QUERY_PATH, new_callable=AsyncMock, return_value=_january_transactions()) as mock_query:
        first = await app_client.post("/reports/profit-loss", json={**JANUARY, "groupBy": "month"})
        second = await app_client.post("/reports/profit-loss", json={**JANUARY, "groupBy": "month"})

    assert first.status_code == 200
    body = first.json()
    assert body["success"] is True
    assert body["data"]["summary"] == {
        "totalIncome": 1000.0,
        "totalExpense": 400.0,
        "netProfit": 600.0,
        "profitMargin": 60.0,
    }
    assert body["data"]["breakdown"] == [{"period": "2024-01", "income": 1000.0, "expense": 400.0, "net": 600.0}]
    assert body["metadata"]["cached"] is False
    assert body["metadata"]["recordCount"] == 1
    assert body["metadata"]["filters"]["groupBy"] == "month"
    assert "generatedAt" in body["metadata"]

    assert second.status_code == 200
    assert second.json()["metadata"]["cached"] is True
    assert second.json()["data"] == body["data"]
    mock_query.assert_awaited_once()


@pytest.mark.asyncio
async def test_transaction_summary_cached_response_matches_fresh(app_client) -> None:
    with patch(QUERY_PATH, new_callable=AsyncMock, return_value=_january_transactions()) as mock_query:
        first = await app_client.post("/reports/transaction-summary", json=JANUARY)
        second = await app_client.post("/reports/transaction-summary", json=JANUARY)

    assert first.status_code == 200
    assert second.status_code == 200
    fresh, cached = first.json(), second.json()
    assert fresh["metadata"]["cached"] is False
    assert cached["metadata"]["cached"] is True
    assert [r["date"][:19] for r in fresh["data"]["recent"]] == ["2024-01-20T00:00:00", "2024-01-05T00:00:00"]
    assert cached["data"] == fresh["data"]
    mock_query.assert_awaited_once()


@pytest.mark.asyncio
async def test_different_filters_do_not_share_cache(app_client) -> None:
    with patch(QUERY_PATH, new_callable=AsyncMock, return_value=[]) as mock_query:
        await app_client.post("/reports/cash-flow", json=JANUARY)
        response = await app_client.post("/reports/cash-flow", json={**JANUARY, "paymentMethod": "cash"})

    assert response.json()["metadata"]["cached"] is False
    assert mock_query.await_count == 2


@pytest.mark.asyncio
async def test_malformed_cache_entry_is_regenerated(app_client, redis_cache) -> None:
    from project_ledger.schemas import ReportFilters
    from project_ledger.services.cache import CacheTTL, report_cache_key

    key = report_cache_key("profit-loss", ReportFilters(start_date="2024-01-01", end_date="2024-01-31"))
    await redis_cache.set(key, {"unexpected": True}, CacheTTL.MEDIUM)

    with patch(QUERY_PATH, new_callable=AsyncMock, return_value=[]) as mock_query:
        response = await app_client.post("/reports/profit-loss", json=JANUARY)

    assert response.status_code == 200
    assert response.json()["metadata"]["cached"] is False
    mock_query.assert_awaited_once()


@pytest.mark.asyncio
async def test_generation_failure_returns_500(app_client) -> None:
    with patch(QUERY_PATH, new_callable=AsyncMock, side_effect=RuntimeError("connection reset")):
        response = await app_client.post("/reports/expense-category", json=JANUARY)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "connection reset"
    assert "latency" in body["metadata"]


@pytest.mark.asyncio
async def test_report_error_returns_400(app_client) -> None:
    with patch(QUERY_PATH, new_callable=AsyncMock, side_effect=ReportError("Unsupported period: decade")):
        response = await app_client.post("/reports/income-source", json=JANUARY)

    assert response.status_code == 400
    assert response.json()["error"] == "Unsupported period: decade"


@pytest.mark.asyncio
async def test_get_summary_defaults_to_today(app_client) -> None:
    with patch(QUERY_PATH, new_callable=AsyncMock, return_value=[]) as mock_query:
        response = await app_client.get("/reports/transaction-summary")

    assert response.status_code == 200
    filters = mock_query.await_args.args[1]
    today = datetime.now(UTC).date()
    assert filters.start_date == datetime.combine(today, time.min, tzinfo=UTC)
    assert filters.end_date == datetime.combine(today, time.max, tzinfo=UTC)


@pytest.mark.asyncio
async def test_get_profit_loss_defaults_to_trailing_month(app_client) -> None:
    with patch(QUERY_PATH, new_callable=AsyncMock, return_value=[]) as mock_query:
        response = await app_client.get("/reports/profit-loss")

    assert response.status_code == 200
    filters = mock_query.await_args.args[1]
    span = filters.end_date - filters.start_date
    assert timedelta(days=28) <= span <= timedelta(days=31)
    assert datetime.now(UTC) - filters.end_date < timedelta(minutes=1)


@pytest.mark.asyncio
async def test_get_reads_filters_from_query_string(app_client) -> None:
    params = {
        **JANUARY,
        "type": "expense",
        "paymentMethod": "check",
        "status": ["pending", "approved"],
        "groupBy": "quarter",
    }
    with patch(QUERY_PATH, new_callable=AsyncMock, return_value=[]) as mock_query:
        response = await app_client.get("/reports/cash-flow", params=params)

    assert response.status_code == 200
    filters = mock_query.await_args.args[1]
    assert filters.type.value == "expense"
    assert filters.payment_method == "check"
    assert {s.value for s in filters.status} == {"pending", "approved"}
    assert filters.group_by.value == "quarter"


@pytest.mark.asyncio
async def test_response_echoes_request_id(app_client) -> None:
    response = await app_client.post(
        "/reports/profit-loss",
        json={"startDate": "2024-01-01"},
        headers={"X-Request-ID": "req-123"},
    )

    assert response.headers["X-Request-ID"] == "req-123"
