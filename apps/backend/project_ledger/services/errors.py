"""Reporting domain errors."""


class ReportError(Exception):
    """Raised when report generation fails or input is invalid."""

    pass
