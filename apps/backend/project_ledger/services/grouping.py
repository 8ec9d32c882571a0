"""Bucketing helpers shared by the report generators.

All helpers are pure: they never mutate their inputs and only return new
lists. Items may be objects (attribute access) or mappings (key access).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any, Generic, TypeVar

from project_ledger.schemas.reporting import GroupBy
from project_ledger.services.errors import ReportError

T = TypeVar("T")

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class GroupedBucket(Generic[T]):  # noqa: UP046
    """A grouping key with the items that fell into it."""

    key: str
    items: tuple[T, ...]
    total: float

    @property
    def count(self) -> int:
        return len(self.items)


def field_value(item: Any, field: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(field)
    return getattr(item, field, None)


def sum_amounts(items: Iterable[Any]) -> float:
    return sum((float(field_value(item, "amount") or 0) for item in items), 0.0)


def as_utc_datetime(value: datetime | date | str) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _resolve_granularity(granularity: GroupBy | str) -> GroupBy:
    try:
        return GroupBy(granularity)
    except ValueError as exc:
        raise ReportError(f"Unsupported period: {granularity}") from exc


def period_key(value: datetime | date | str, granularity: GroupBy | str = GroupBy.MONTH) -> str:
    """Compute the bucket key for a timestamp (evaluated in UTC)."""
    moment = as_utc_datetime(value)
    day = moment.date()
    resolved = _resolve_granularity(granularity)

    if resolved == GroupBy.DAY:
        return day.isoformat()
    if resolved == GroupBy.WEEK:
        # Weeks start on Sunday; date.weekday() has Monday == 0
        week_start = day - timedelta(days=(day.weekday() + 1) % 7)
        return week_start.isoformat()
    if resolved == GroupBy.MONTH:
        return f"{day.year:04d}-{day.month:02d}"
    if resolved == GroupBy.QUARTER:
        return f"{day.year:04d}-Q{(day.month - 1) // 3 + 1}"
    return f"{day.year:04d}"


def group_by_period(
    transactions: Sequence[T],
    granularity: GroupBy | str = GroupBy.MONTH,
) -> list[GroupedBucket[T]]:
    """Bucket transactions by period, ascending by key.

    Only periods with at least one transaction are returned; the key formats
    are zero-padded so lexicographic order is chronological.
    """
    resolved = _resolve_granularity(granularity)
    grouped: dict[str, list[T]] = {}
    for item in transactions:
        key = period_key(field_value(item, "date"), resolved)
        grouped.setdefault(key, []).append(item)

    return [
        GroupedBucket(key=key, items=tuple(items), total=sum_amounts(items))
        for key, items in sorted(grouped.items())
    ]


def group_by_field(transactions: Sequence[T], field: str) -> list[GroupedBucket[T]]:
    """Bucket transactions by the string value of ``field`` in encounter order.

    Missing or empty values are grouped under ``"Unknown"``.
    """
    grouped: dict[str, list[T]] = {}
    for item in transactions:
        raw = field_value(item, field)
        key = str(getattr(raw, "value", raw)) if raw not in (None, "") else UNKNOWN
        grouped.setdefault(key, []).append(item)

    return [
        GroupedBucket(key=key, items=tuple(items), total=sum_amounts(items))
        for key, items in grouped.items()
    ]


def calculate_percentages(items: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Attach each item's share of the grand total as ``percentage``.

    A zero grand total yields 0 for every item.
    """
    grand_total = sum(float(item["amount"]) for item in items)
    return [
        {
            **item,
            "percentage": (float(item["amount"]) / grand_total) * 100 if grand_total > 0 else 0.0,
        }
        for item in items
    ]
