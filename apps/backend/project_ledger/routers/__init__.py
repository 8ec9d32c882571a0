"""API routers package."""

from project_ledger.routers import cron, reports

__all__ = ["cron", "reports"]
