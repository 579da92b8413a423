"""
Exception types raised by the BBB Dashboard services.

Routers translate these into HTTP responses; the aggregation functions never
catch them.
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for all dashboard errors."""


class RetrievalError(DashboardError):
    """The record source could not produce rows (connectivity, query error)."""

    def __init__(self, message: str = "Failed to retrieve data") -> None:
        super().__init__(message)


class WorkbookFormatError(RetrievalError):
    """A workbook or CSV directory is missing the expected sheets or columns."""
