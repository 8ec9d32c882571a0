"""Services package."""

from project_ledger.services.cache import (
    CacheTTL,
    NullReportCache,
    RedisReportCache,
    ReportCache,
    build_report_cache,
    generate_cache_key,
    report_cache_key,
    ttl_for_range,
)
from project_ledger.services.errors import ReportError
from project_ledger.services.grouping import (
    GroupedBucket,
    calculate_percentages,
    group_by_field,
    group_by_period,
    period_key,
)
from project_ledger.services.precompute import precompute_reports
from project_ledger.services.query_builder import (
    NormalizedTransaction,
    build_transaction_query,
    normalize_transaction,
    query_transactions,
)
from project_ledger.services.reporting import (
    generate_cash_flow_report,
    generate_expense_category_report,
    generate_income_source_report,
    generate_profit_loss_report,
    generate_transaction_summary,
)

__all__ = [
    "CacheTTL",
    "GroupedBucket",
    "NormalizedTransaction",
    "NullReportCache",
    "RedisReportCache",
    "ReportCache",
    "ReportError",
    "build_report_cache",
    "build_transaction_query",
    "calculate_percentages",
    "generate_cache_key",
    "generate_cash_flow_report",
    "generate_expense_category_report",
    "generate_income_source_report",
    "generate_profit_loss_report",
    "generate_transaction_summary",
    "group_by_field",
    "group_by_period",
    "normalize_transaction",
    "period_key",
    "precompute_reports",
    "query_transactions",
    "report_cache_key",
    "ttl_for_range",
]
