"""SQLAlchemy models package."""

from project_ledger.models.category import ExpenseCategory, TransactionCategory
from project_ledger.models.project import Project
from project_ledger.models.transaction import Transaction, TransactionStatus, TransactionType

__all__ = [
    "ExpenseCategory",
    "Project",
    "Transaction",
    "TransactionCategory",
    "TransactionStatus",
    "TransactionType",
]
