"""
Region -> customer drill-down summary.

The three streams are independent facts: they are correlated only by the
(region, customer) grouping key, never row by row.  Every pair that appears
in any stream is reported, with zeros for the streams it is absent from.

Region-level ratios are recomputed from the region totals rather than
averaged from the customer ratios, and each region tracks how many distinct
customers contributed to each stream separately.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from bbb_dashboard.models import CustomerSummary, FilterCriteria, RegionSummary
from bbb_dashboard.services.aggregation import round2, safe_ratio, with_labels
from bbb_dashboard.services.record_source import RecordSource, RecordStream

_GroupKey = tuple[str, str]


@dataclass
class _CustomerTotals:
    bookings: int = 0
    booking_amount: float = 0.0
    billings: int = 0
    billing_amount: float = 0.0
    backlogs: int = 0
    backlog_amount: float = 0.0


@dataclass
class _RegionTotals(_CustomerTotals):
    booking_customers: set[str] = field(default_factory=set)
    billing_customers: set[str] = field(default_factory=set)
    backlog_customers: set[str] = field(default_factory=set)

    def add(self, customer: str, totals: _CustomerTotals) -> None:
        self.bookings += totals.bookings
        self.booking_amount += totals.booking_amount
        self.billings += totals.billings
        self.billing_amount += totals.billing_amount
        self.backlogs += totals.backlogs
        self.backlog_amount += totals.backlog_amount
        if totals.bookings > 0:
            self.booking_customers.add(customer)
        if totals.billings > 0:
            self.billing_customers.add(customer)
        if totals.backlogs > 0:
            self.backlog_customers.add(customer)


# stream -> (count attribute, amount attribute) on _CustomerTotals
_STREAM_FIELDS: dict[RecordStream, tuple[str, str]] = {
    RecordStream.BOOKINGS: ("bookings", "booking_amount"),
    RecordStream.BILLINGS: ("billings", "billing_amount"),
    RecordStream.BACKLOG: ("backlogs", "backlog_amount"),
}


def _group_by_customer(frame: pd.DataFrame) -> dict[_GroupKey, tuple[int, float]]:
    """Map (region, customer) -> (row count, summed amount)."""
    if frame.empty:
        return {}
    labelled = with_labels(frame, "region", "customer")
    grouped = labelled.groupby(["region", "customer"])["amount"].agg(["size", "sum"])
    return {
        (str(region), str(customer)): (int(row["size"]), float(row["sum"]))
        for (region, customer), row in grouped.iterrows()
    }


def _customer_order(name: str) -> tuple[str, str]:
    return name.casefold(), name


def build_drill_down(source: RecordSource, criteria: FilterCriteria) -> list[RegionSummary]:
    """Return region summaries (sorted by region name) with nested customers.

    Raises
    ------
    RetrievalError
        Propagated unchanged from *source*.
    """
    pairs: dict[_GroupKey, _CustomerTotals] = {}
    for stream, (count_attr, amount_attr) in _STREAM_FIELDS.items():
        grouped = _group_by_customer(source.query_filtered(stream, criteria))
        for key, (count, amount) in grouped.items():
            totals = pairs.setdefault(key, _CustomerTotals())
            setattr(totals, count_attr, count)
            setattr(totals, amount_attr, amount)

    regions: dict[str, _RegionTotals] = {}
    customers: dict[str, list[CustomerSummary]] = {}
    for (region, customer), totals in pairs.items():
        regions.setdefault(region, _RegionTotals()).add(customer, totals)
        customers.setdefault(region, []).append(
            CustomerSummary(
                customer=customer,
                region=region,
                bookings=totals.bookings,
                booking_amount=round2(totals.booking_amount),
                billings=totals.billings,
                billing_amount=round2(totals.billing_amount),
                backlogs=totals.backlogs,
                backlog_amount=round2(totals.backlog_amount),
                book_to_bill_ratio=safe_ratio(totals.bookings, totals.billings),
                book_to_bill_amount_ratio=safe_ratio(totals.booking_amount, totals.billing_amount),
            )
        )

    summaries: list[RegionSummary] = []
    for region in sorted(regions):
        totals = regions[region]
        summaries.append(
            RegionSummary(
                region=region,
                booking_customers_count=len(totals.booking_customers),
                billing_customers_count=len(totals.billing_customers),
                backlog_customers_count=len(totals.backlog_customers),
                total_bookings=totals.bookings,
                booking_amount=round2(totals.booking_amount),
                total_billings=totals.billings,
                billing_amount=round2(totals.billing_amount),
                total_backlogs=totals.backlogs,
                backlog_amount=round2(totals.backlog_amount),
                book_to_bill_ratio=safe_ratio(totals.bookings, totals.billings),
                book_to_bill_amount_ratio=safe_ratio(totals.booking_amount, totals.billing_amount),
                customers=sorted(customers[region], key=lambda c: _customer_order(c.customer)),
            )
        )
    return summaries
