"""
Monthly bookings vs billings trend.

Always returns one point per month of the trailing 12-month window ending at
the current month, oldest first.  Months without data are zero-filled so the
chart never shows a gap; rows dated outside the window are ignored.
"""

from __future__ import annotations

from datetime import date

import pandas as pd

from bbb_dashboard.models import FilterCriteria, TrendPoint
from bbb_dashboard.services.aggregation import round2
from bbb_dashboard.services.periods import MONTH_ABBREVIATIONS, trailing_months
from bbb_dashboard.services.record_source import RecordSource, RecordStream

TREND_MONTHS = 12


def _monthly_totals(frame: pd.DataFrame) -> dict[tuple[int, int], tuple[int, float]]:
    """Map (year, month) -> (row count, summed amount)."""
    dated = frame.dropna(subset=["date"])
    if dated.empty:
        return {}
    grouped = dated.groupby(
        [dated["date"].dt.year.rename("year"), dated["date"].dt.month.rename("month")]
    )["amount"].agg(["size", "sum"])
    return {
        (int(year), int(month)): (int(row["size"]), float(row["sum"]))
        for (year, month), row in grouped.iterrows()
    }


def build_monthly_trend(source: RecordSource, criteria: FilterCriteria, today: date) -> list[TrendPoint]:
    """Return the 12-point bookings vs billings series for *criteria*."""
    bookings = _monthly_totals(source.query_filtered(RecordStream.BOOKINGS, criteria))
    billings = _monthly_totals(source.query_filtered(RecordStream.BILLINGS, criteria))

    points: list[TrendPoint] = []
    for year, month in trailing_months(today, TREND_MONTHS):
        bookings_count, bookings_amount = bookings.get((year, month), (0, 0.0))
        billings_count, billings_amount = billings.get((year, month), (0, 0.0))
        points.append(
            TrendPoint(
                name=MONTH_ABBREVIATIONS[month - 1],
                bookings=round2(bookings_amount),
                billings=round2(billings_amount),
                bookings_count=bookings_count,
                billings_count=billings_count,
            )
        )
    return points
