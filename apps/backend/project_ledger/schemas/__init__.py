from project_ledger.schemas.reporting import (
    CashFlowReport,
    ExpenseCategoryReport,
    GroupBy,
    IncomeSourceReport,
    PrecomputeResponse,
    PrecomputeResult,
    ProfitLossReport,
    ReportErrorResponse,
    ReportFilters,
    ReportMetadata,
    ReportRequest,
    ReportResult,
    TransactionSummaryReport,
    TypeFilter,
)

__all__ = [
    "CashFlowReport",
    "ExpenseCategoryReport",
    "GroupBy",
    "IncomeSourceReport",
    "PrecomputeResponse",
    "PrecomputeResult",
    "ProfitLossReport",
    "ReportErrorResponse",
    "ReportFilters",
    "ReportMetadata",
    "ReportRequest",
    "ReportResult",
    "TransactionSummaryReport",
    "TypeFilter",
]
