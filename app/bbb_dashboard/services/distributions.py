"""
Backlog-by-region and bookings-by-product distributions.
"""

from __future__ import annotations

import pandas as pd

from bbb_dashboard.models import DistributionSlice, FilterCriteria
from bbb_dashboard.services.aggregation import round2, with_labels
from bbb_dashboard.services.record_source import RecordSource, RecordStream

REGION_COLORS: dict[str, str] = {
    "South": "#8884d8",
    "North": "#83a6ed",
    "East": "#82ca9d",
    "West": "#a4de6c",
}
REGION_FALLBACK_COLOR = "#ffc658"

PRODUCT_PALETTE: list[str] = [
    "#8884d8",
    "#82ca9d",
    "#ffc658",
    "#ff7300",
    "#00ff00",
    "#ff00ff",
]


def _group_totals(frame: pd.DataFrame, column: str) -> pd.DataFrame:
    """Sum and count amounts per *column* value, in first-appearance order."""
    labelled = with_labels(frame, column)
    return (
        labelled.groupby(column, sort=False)["amount"]
        .agg(value="sum", count="size")
        .reset_index()
        .rename(columns={column: "name"})
    )


def backlog_by_region(source: RecordSource, criteria: FilterCriteria) -> list[DistributionSlice]:
    """Backlog amount and row count per region, largest first."""
    totals = _group_totals(source.query_filtered(RecordStream.BACKLOG, criteria), "region")
    slices = [
        DistributionSlice(
            name=name,
            value=round2(value),
            count=int(count),
            fill=REGION_COLORS.get(name, REGION_FALLBACK_COLOR),
        )
        for name, value, count in zip(totals["name"], totals["value"], totals["count"])
    ]
    return sorted(slices, key=lambda s: s.value, reverse=True)


def bookings_by_product(source: RecordSource, criteria: FilterCriteria) -> list[DistributionSlice]:
    """Booking amount and row count per product, largest first.

    Colours cycle through :data:`PRODUCT_PALETTE` in the order products are
    first seen, before sorting.
    """
    totals = _group_totals(source.query_filtered(RecordStream.BOOKINGS, criteria), "product")
    slices = [
        DistributionSlice(
            name=name,
            value=round2(value),
            count=int(count),
            fill=PRODUCT_PALETTE[index % len(PRODUCT_PALETTE)],
        )
        for index, (name, value, count) in enumerate(
            zip(totals["name"], totals["value"], totals["count"])
        )
    ]
    return sorted(slices, key=lambda s: s.value, reverse=True)
