"""Translate report filters into transaction queries and flatten the results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import ColumnElement, Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from project_ledger.logger import get_logger
from project_ledger.models import Transaction, TransactionType
from project_ledger.schemas.reporting import ReportFilters, TypeFilter

logger = get_logger(__name__)


@dataclass(frozen=True)
class NormalizedTransaction:
    """Flat, read-only view of a transaction used by every report."""

    id: str
    type: str
    amount: float
    date: datetime
    payment_method: str | None = None
    status: str | None = None
    description: str | None = None
    project_id: str | None = None
    project_name: str | None = None
    category_id: str | None = None
    category_name: str | None = None
    expense_category_id: str | None = None
    expense_category_name: str | None = None
    source: str | None = None
    receipt_number: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None


def _date_conditions(start: datetime | None, end: datetime | None) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if start is not None:
        conditions.append(Transaction.date >= start)
    if end is not None:
        conditions.append(Transaction.date <= end)
    return conditions


def build_transaction_query(filters: ReportFilters) -> Select[tuple[Transaction]]:
    """Build the transaction select for a set of filters.

    Absent optional filters add no clause at all; ``type="all"`` is treated
    as absent.
    """
    conditions = _date_conditions(filters.start_date, filters.end_date)

    if filters.type is not None and filters.type != TypeFilter.ALL:
        conditions.append(Transaction.type == TransactionType(filters.type.value))

    if filters.project_id is not None:
        conditions.append(Transaction.project_id == filters.project_id)

    if filters.project_name:
        conditions.append(Transaction.project_name.icontains(filters.project_name, autoescape=True))

    if filters.category_id is not None:
        conditions.append(Transaction.category_id == filters.category_id)

    if filters.payment_method:
        conditions.append(Transaction.payment_method == filters.payment_method)

    if filters.status:
        conditions.append(Transaction.status.in_(filters.status))

    stmt = select(Transaction).options(
        selectinload(Transaction.project),
        selectinload(Transaction.category),
        selectinload(Transaction.expense_category),
    )
    if conditions:
        stmt = stmt.where(*conditions)
    return stmt.order_by(Transaction.date.desc())


def _enum_value(value: Any) -> str | None:
    if value is None:
        return None
    return getattr(value, "value", value)


def _optional_str(value: Any) -> str | None:
    return str(value) if value is not None else None


def normalize_transaction(row: Transaction) -> NormalizedTransaction:
    """Flatten resolved references, falling back to the denormalized names.

    A reference that no longer resolves (deleted project, category) leaves the
    relationship empty; the copy stored on the row is used instead.
    """
    project = row.project
    category = row.category
    expense_category = row.expense_category

    return NormalizedTransaction(
        id=str(row.id),
        type=_enum_value(row.type),
        amount=float(row.amount or 0),
        date=row.date,
        payment_method=row.payment_method,
        status=_enum_value(row.status),
        description=row.description,
        project_id=_optional_str(row.project_id),
        project_name=project.name if project is not None else row.project_name,
        category_id=_optional_str(row.category_id),
        category_name=category.name if category is not None else row.category_name,
        expense_category_id=_optional_str(row.expense_category_id),
        expense_category_name=(
            expense_category.name if expense_category is not None else row.expense_category_name
        ),
        source=row.source,
        receipt_number=row.receipt_number,
        created_by=row.created_by,
        created_at=row.created_at,
    )


async def query_transactions(db: AsyncSession, filters: ReportFilters) -> list[NormalizedTransaction]:
    """Fetch the transactions matching ``filters`` in normalized form."""
    result = await db.execute(build_transaction_query(filters))
    rows = result.scalars().all()
    logger.debug(
        "Transactions loaded for report",
        count=len(rows),
        start_date=filters.start_date.isoformat(),
        end_date=filters.end_date.isoformat(),
    )
    return [normalize_transaction(row) for row in rows]
