"""
Headline KPI computation.

Produces the flat :class:`KpiSummary` behind the dashboard cards:

* as-filtered totals honour every constraint in the caller's criteria,
  including its date range;
* month-to-date / year-to-date figures and the month-over-month snapshots
  only keep the region / product / customer constraints and replace the
  date window with the calendar periods anchored to *today*.

Book-to-bill ratios here are transaction-count ratios; the amount-based
ratio only appears in the drill-down view.
"""

from __future__ import annotations

import logging
from datetime import date

import pandas as pd

from bbb_dashboard.models import DateRange, FilterCriteria, KpiSummary
from bbb_dashboard.services.aggregation import count_and_sum, percent_change, ratio, round2, safe_ratio
from bbb_dashboard.services.periods import compute_periods
from bbb_dashboard.services.record_source import RecordSource, RecordStream

logger = logging.getLogger(__name__)

BOOKINGS = RecordStream.BOOKINGS
BILLINGS = RecordStream.BILLINGS
BACKLOG = RecordStream.BACKLOG


def _within(frame: pd.DataFrame, period: DateRange) -> pd.DataFrame:
    """Rows of *frame* dated inside the inclusive *period*."""
    start = pd.Timestamp(period.start)
    end = pd.Timestamp(period.end) + pd.Timedelta(days=1)
    return frame.loc[(frame["date"] >= start) & (frame["date"] < end)]


def _snapshot(frames: dict[RecordStream, pd.DataFrame], period: DateRange) -> dict[RecordStream, tuple[int, float]]:
    return {stream: count_and_sum(_within(frame, period)) for stream, frame in frames.items()}


def summarize_kpis(source: RecordSource, criteria: FilterCriteria, today: date) -> KpiSummary:
    """Compute the KPI snapshot for *criteria* as of *today*.

    Raises
    ------
    RetrievalError
        Propagated unchanged from *source*.
    """
    streams = (BOOKINGS, BILLINGS, BACKLOG)
    periods = compute_periods(today)

    filtered = {s: count_and_sum(source.query_filtered(s, criteria)) for s in streams}

    # Calendar figures ignore the caller's date range
    universe = {s: source.query_filtered(s, criteria.without_dates()) for s in streams}
    mtd = _snapshot(universe, periods.current_month)
    ytd = _snapshot(universe, periods.ytd)
    previous = _snapshot(universe, periods.previous_month)

    total_bookings, total_booking_amount = filtered[BOOKINGS]
    total_billings, total_billing_amount = filtered[BILLINGS]
    total_backlogs, total_backlog_amount = filtered[BACKLOG]
    book_to_bill = ratio(total_bookings, total_billings)

    current_bookings, _ = mtd[BOOKINGS]
    current_billings, _ = mtd[BILLINGS]
    _, current_backlog_amount = mtd[BACKLOG]
    current_book_to_bill = ratio(current_bookings, current_billings)

    prev_bookings, _ = previous[BOOKINGS]
    prev_billings, _ = previous[BILLINGS]
    _, prev_backlog_amount = previous[BACKLOG]
    prev_book_to_bill = ratio(prev_bookings, prev_billings)

    logger.debug(
        "KPI snapshot for %s: %d bookings, %d billings, %d backlog rows",
        criteria.model_dump(exclude_none=True),
        total_bookings,
        total_billings,
        total_backlogs,
    )

    return KpiSummary(
        total_bookings=total_bookings,
        total_booking_amount=round2(total_booking_amount),
        total_billings=total_billings,
        total_billing_amount=round2(total_billing_amount),
        total_backlogs=total_backlogs,
        total_backlog_amount=round2(total_backlog_amount),
        book_to_bill_ratio=round2(book_to_bill),
        total_bookings_mtd=round2(mtd[BOOKINGS][1]),
        total_bookings_ytd=round2(ytd[BOOKINGS][1]),
        total_billings_mtd=round2(mtd[BILLINGS][1]),
        total_billings_ytd=round2(ytd[BILLINGS][1]),
        total_backlog_mtd=round2(mtd[BACKLOG][1]),
        total_backlog_ytd=round2(ytd[BACKLOG][1]),
        book_to_bill_ratio_mtd=round2(current_book_to_bill),
        book_to_bill_ratio_ytd=safe_ratio(ytd[BOOKINGS][0], ytd[BILLINGS][0]),
        total_bookings_change=percent_change(total_bookings, prev_bookings),
        total_billings_change=percent_change(total_billings, prev_billings),
        total_backlog_amount_change=percent_change(total_backlog_amount, prev_backlog_amount),
        book_to_bill_ratio_change=percent_change(book_to_bill, prev_book_to_bill),
        current_month_bookings_count=current_bookings,
        current_month_billings_count=current_billings,
        current_month_backlog_amount=round2(current_backlog_amount),
        current_month_book_to_bill_ratio=round2(current_book_to_bill),
        current_month_bookings_change=percent_change(current_bookings, prev_bookings),
        current_month_billings_change=percent_change(current_billings, prev_billings),
        current_month_backlog_amount_change=percent_change(current_backlog_amount, prev_backlog_amount),
        current_month_book_to_bill_ratio_change=percent_change(current_book_to_bill, prev_book_to_bill),
    )
