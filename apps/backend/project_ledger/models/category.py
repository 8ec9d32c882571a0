"""Income and expense category models."""

from __future__ import annotations

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from project_ledger.database import Base
from project_ledger.models.base import TimestampMixin, UUIDMixin


class TransactionCategory(Base, UUIDMixin, TimestampMixin):
    """Category used to classify income transactions."""

    __tablename__ = "transaction_categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ExpenseCategory(Base, UUIDMixin, TimestampMixin):
    """Cost category (materials, labor, equipment, ...) for expenses."""

    __tablename__ = "expense_categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
