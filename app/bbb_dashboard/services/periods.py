"""
Calendar period boundaries anchored to a reference day.

Everything here is pure calendar arithmetic; the reference day is always
passed in so callers (and tests) control "now".
"""

from __future__ import annotations

import calendar
from datetime import date

from bbb_dashboard.models import DateRange, Periods

MONTH_ABBREVIATIONS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


def month_range(year: int, month: int) -> DateRange:
    """Return the first and last day of the given calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(start=date(year, month, 1), end=date(year, month, last_day))


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Move (year, month) by *offset* months, rolling the year as needed."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def compute_periods(today: date) -> Periods:
    """Return the current-month, previous-month and year-to-date windows.

    The month-to-date window is the whole current calendar month, and the
    year-to-date window is the whole current calendar year.
    """
    prev_year, prev_month = shift_month(today.year, today.month, -1)
    return Periods(
        current_month=month_range(today.year, today.month),
        previous_month=month_range(prev_year, prev_month),
        ytd=DateRange(start=date(today.year, 1, 1), end=date(today.year, 12, 31)),
    )


def trailing_months(today: date, count: int = 12) -> list[tuple[int, int]]:
    """Return the *count* (year, month) pairs ending at *today*'s month, oldest first."""
    return [shift_month(today.year, today.month, -offset) for offset in range(count - 1, -1, -1)]
