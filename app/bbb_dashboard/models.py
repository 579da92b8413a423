"""
Pydantic data models for the BBB Dashboard API.

All request / response schemas are defined here so they can be shared across
routers, services, and tests.  Attributes are snake_case in Python and
camelCase on the wire; the few wire names that are not plain camelCase
(``totalBookingsMTD``, ``Bookings``, ...) carry explicit aliases.
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Base model that serialises field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Filter criteria
# ---------------------------------------------------------------------------
class FilterCriteria(_CamelModel):
    """Optional constraints applied to every record stream.

    A missing (or blank) field means "no constraint on that dimension".
    Dates are inclusive on both ends.
    """

    start_date: date | None = Field(None, description="Earliest record date")
    end_date: date | None = Field(None, description="Latest record date")
    region: str | None = Field(None, description="Exact region match")
    product: str | None = Field(None, description="Exact product match")
    customer: str | None = Field(None, description="Exact customer match")

    @field_validator("start_date", "end_date", "region", "product", "customer", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value

    @model_validator(mode="after")
    def _check_date_order(self) -> FilterCriteria:
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self

    def without_dates(self) -> FilterCriteria:
        """Return a copy keeping only the region/product/customer constraints."""
        return self.model_copy(update={"start_date": None, "end_date": None})


# ---------------------------------------------------------------------------
# Calendar periods
# ---------------------------------------------------------------------------
class DateRange(BaseModel):
    """Inclusive [start, end] calendar window."""

    start: date
    end: date


class Periods(BaseModel):
    """Calendar windows anchored to a reference day."""

    current_month: DateRange
    previous_month: DateRange
    ytd: DateRange


# ---------------------------------------------------------------------------
# KPI summary
# ---------------------------------------------------------------------------
class KpiSummary(_CamelModel):
    """Headline metrics shown on the dashboard cards."""

    # As-filtered totals
    total_bookings: int = 0
    total_booking_amount: float = 0.0
    total_billings: int = 0
    total_billing_amount: float = 0.0
    total_backlogs: int = 0
    total_backlog_amount: float = 0.0
    book_to_bill_ratio: float = 0.0

    # Calendar windows (caller date range ignored)
    total_bookings_mtd: float = Field(0.0, alias="totalBookingsMTD")
    total_bookings_ytd: float = Field(0.0, alias="totalBookingsYTD")
    total_billings_mtd: float = Field(0.0, alias="totalBillingsMTD")
    total_billings_ytd: float = Field(0.0, alias="totalBillingsYTD")
    total_backlog_mtd: float = Field(0.0, alias="totalBacklogMTD")
    total_backlog_ytd: float = Field(0.0, alias="totalBacklogYTD")
    book_to_bill_ratio_mtd: float = Field(0.0, alias="bookToBillRatioMTD")
    book_to_bill_ratio_ytd: float = Field(0.0, alias="bookToBillRatioYTD")

    # Changes against the previous calendar month (percent, signed)
    total_bookings_change: float = 0.0
    total_billings_change: float = 0.0
    total_backlog_amount_change: float = 0.0
    book_to_bill_ratio_change: float = 0.0

    # Current calendar month
    current_month_bookings_count: int = 0
    current_month_billings_count: int = 0
    current_month_backlog_amount: float = 0.0
    current_month_book_to_bill_ratio: float = 0.0
    current_month_bookings_change: float = 0.0
    current_month_billings_change: float = 0.0
    current_month_backlog_amount_change: float = 0.0
    current_month_book_to_bill_ratio_change: float = 0.0


class SummaryResponse(_CamelModel):
    title: str
    description: str
    metrics: KpiSummary
    last_updated: datetime


# ---------------------------------------------------------------------------
# Monthly trend
# ---------------------------------------------------------------------------
class TrendPoint(_CamelModel):
    """Bookings vs billings for one calendar month."""

    name: str = Field(..., description="Three-letter month abbreviation")
    bookings: float = Field(0.0, alias="Bookings")
    billings: float = Field(0.0, alias="Billings")
    bookings_count: int = Field(0, alias="BookingsCount")
    billings_count: int = Field(0, alias="BillingsCount")


class TrendResponse(_CamelModel):
    title: str
    description: str
    monthly_trend: list[TrendPoint]
    last_updated: datetime


# ---------------------------------------------------------------------------
# Distributions
# ---------------------------------------------------------------------------
class DistributionSlice(_CamelModel):
    """One slice of a pie / bar distribution chart."""

    name: str
    value: float
    count: int
    fill: str = Field(..., description="Hex colour used by the chart")


class BacklogByRegionResponse(_CamelModel):
    title: str
    description: str
    backlog_by_region: list[DistributionSlice]
    last_updated: datetime


class ProductDistributionResponse(_CamelModel):
    title: str
    description: str
    product_distribution: list[DistributionSlice]
    last_updated: datetime


# ---------------------------------------------------------------------------
# Drill-down summary
# ---------------------------------------------------------------------------
class CustomerSummary(_CamelModel):
    """Per-customer totals within one region."""

    customer: str
    region: str
    bookings: int = 0
    booking_amount: float = 0.0
    billings: int = 0
    billing_amount: float = 0.0
    backlogs: int = 0
    backlog_amount: float = 0.0
    book_to_bill_ratio: float = 0.0
    book_to_bill_amount_ratio: float = 0.0


class RegionSummary(_CamelModel):
    """Region totals with the nested per-customer breakdown."""

    region: str
    booking_customers_count: int = 0
    billing_customers_count: int = 0
    backlog_customers_count: int = 0
    total_bookings: int = 0
    booking_amount: float = 0.0
    total_billings: int = 0
    billing_amount: float = 0.0
    total_backlogs: int = 0
    backlog_amount: float = 0.0
    book_to_bill_ratio: float = 0.0
    book_to_bill_amount_ratio: float = 0.0
    customers: list[CustomerSummary] = Field(default_factory=list)


class DrillDownResponse(_CamelModel):
    region_stats: list[RegionSummary]


# ---------------------------------------------------------------------------
# Filter options / health
# ---------------------------------------------------------------------------
class FilterOptions(_CamelModel):
    """Distinct values used to populate the filter drop-downs."""

    regions: list[str] = Field(default_factory=list)
    products: list[str] = Field(default_factory=list)
    customers: list[str] = Field(default_factory=list)


class HealthResponse(_CamelModel):
    status: str
    version: str
    backend: str
    connected: bool
