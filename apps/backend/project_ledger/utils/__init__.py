"""Utility functions and helpers."""

from .exceptions import ReportRequestError, raise_bad_request, raise_unauthorized

__all__ = [
    "ReportRequestError",
    "raise_bad_request",
    "raise_unauthorized",
]
