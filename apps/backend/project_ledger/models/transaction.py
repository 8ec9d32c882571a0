"""Financial transaction model.

Transactions are written by the back-office CRUD surface; this service only
reads them. Referenced names (project, category) are copied onto the row at
write time so reports still have a label when the reference is removed.
"""

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DECIMAL, CheckConstraint, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from project_ledger.database import Base
from project_ledger.models.base import TimestampMixin, UUIDMixin
from project_ledger.models.category import ExpenseCategory, TransactionCategory
from project_ledger.models.project import Project


class TransactionType(str, enum.Enum):
    """Direction of money movement."""

    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, enum.Enum):
    """Workflow state of a transaction."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Transaction(Base, UUIDMixin, TimestampMixin):
    """A single income or expense record."""

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_transactions_amount_non_negative"),
        Index("ix_transactions_date_type", "date", "type"),
        Index("ix_transactions_project_date", "project_id", "date"),
    )

    transaction_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    type: Mapped[TransactionType] = mapped_column(
        Enum(
            TransactionType,
            name="transaction_type_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    project_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True
    )
    project_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    category_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("transaction_categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    category_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    expense_category_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("expense_categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    expense_category_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    source: Mapped[str | None] = mapped_column(String(200), nullable=True)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False)
    receipt_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[TransactionStatus] = mapped_column(
        Enum(
            TransactionStatus,
            name="transaction_status_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=TransactionStatus.APPROVED,
        index=True,
    )
    created_by: Mapped[str] = mapped_column(String(100), nullable=False, default="system")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    project: Mapped[Project | None] = relationship("Project")
    category: Mapped[TransactionCategory | None] = relationship("TransactionCategory")
    expense_category: Mapped[ExpenseCategory | None] = relationship("ExpenseCategory")

    def __repr__(self) -> str:
        return f"<Transaction {self.transaction_number} {self.type.value} {self.amount}>"
