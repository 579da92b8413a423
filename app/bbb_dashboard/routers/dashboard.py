"""
Dashboard router.

One endpoint per dashboard view.  Each view is computed independently from
the posted filter criteria, so one failing does not affect the others.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from bbb_dashboard.dependencies import get_record_source, get_today
from bbb_dashboard.models import (
    BacklogByRegionResponse,
    DrillDownResponse,
    FilterCriteria,
    FilterOptions,
    ProductDistributionResponse,
    SummaryResponse,
    TrendResponse,
)
from bbb_dashboard.services.distributions import backlog_by_region, bookings_by_product
from bbb_dashboard.services.drill_down import build_drill_down
from bbb_dashboard.services.filters import resolve_filter_options
from bbb_dashboard.services.kpis import summarize_kpis
from bbb_dashboard.services.record_source import RecordSource
from bbb_dashboard.services.trends import build_monthly_trend
from bbb_dashboard.utils.config import APP_TITLE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


def _failure(message: str, exc: Exception) -> HTTPException:
    return HTTPException(status_code=500, detail={"message": message, "error": str(exc)})


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# POST /summary
# ---------------------------------------------------------------------------
@router.post(
    "/summary",
    response_model=SummaryResponse,
    summary="Headline KPIs with MTD/YTD and month-over-month changes",
)
async def get_summary(
    criteria: FilterCriteria | None = None,
    source: RecordSource = Depends(get_record_source),
    today: date = Depends(get_today),
) -> SummaryResponse:
    """Return booking, billing and backlog totals for the filter criteria.

    MTD / YTD and month-over-month figures only honour the region, product
    and customer filters; the caller's date range is ignored for them.
    """
    try:
        metrics = summarize_kpis(source, criteria or FilterCriteria(), today)
    except Exception as exc:
        logger.exception("Failed to compute dashboard summary")
        raise _failure("Error retrieving dashboard data", exc) from exc

    return SummaryResponse(
        title=APP_TITLE,
        description="Key performance metrics for bookings, billings and backlog",
        metrics=metrics,
        last_updated=_now(),
    )


# ---------------------------------------------------------------------------
# GET /filter-options
# ---------------------------------------------------------------------------
@router.get(
    "/filter-options",
    response_model=FilterOptions,
    summary="Distinct regions, products and customers",
)
async def get_filter_options(
    source: RecordSource = Depends(get_record_source),
) -> FilterOptions:
    """Return the values used to populate the filter drop-downs."""
    try:
        return resolve_filter_options(source)
    except Exception as exc:
        logger.exception("Failed to fetch filter options")
        raise _failure("Error retrieving filter data", exc) from exc


# ---------------------------------------------------------------------------
# POST /monthly-trend
# ---------------------------------------------------------------------------
@router.post(
    "/monthly-trend",
    response_model=TrendResponse,
    summary="Trailing 12-month bookings vs billings",
)
async def get_monthly_trend(
    criteria: FilterCriteria | None = None,
    source: RecordSource = Depends(get_record_source),
    today: date = Depends(get_today),
) -> TrendResponse:
    try:
        trend = build_monthly_trend(source, criteria or FilterCriteria(), today)
    except Exception as exc:
        logger.exception("Failed to build monthly trend")
        raise _failure("Error retrieving monthly trend data", exc) from exc

    return TrendResponse(
        title="Monthly Trend: Bookings vs Billings",
        description="Monthly comparison of booking and billing amounts",
        monthly_trend=trend,
        last_updated=_now(),
    )


# ---------------------------------------------------------------------------
# POST /backlog-by-region
# ---------------------------------------------------------------------------
@router.post(
    "/backlog-by-region",
    response_model=BacklogByRegionResponse,
    summary="Backlog amount distribution across regions",
)
async def get_backlog_by_region(
    criteria: FilterCriteria | None = None,
    source: RecordSource = Depends(get_record_source),
) -> BacklogByRegionResponse:
    try:
        slices = backlog_by_region(source, criteria or FilterCriteria())
    except Exception as exc:
        logger.exception("Failed to build backlog by region")
        raise _failure("Error retrieving backlog by region data", exc) from exc

    return BacklogByRegionResponse(
        title="Backlog by Region",
        description="Distribution of backlog amounts across regions",
        backlog_by_region=slices,
        last_updated=_now(),
    )


# ---------------------------------------------------------------------------
# POST /product-distribution
# ---------------------------------------------------------------------------
@router.post(
    "/product-distribution",
    response_model=ProductDistributionResponse,
    summary="Booking amount distribution across products",
)
async def get_product_distribution(
    criteria: FilterCriteria | None = None,
    source: RecordSource = Depends(get_record_source),
) -> ProductDistributionResponse:
    try:
        slices = bookings_by_product(source, criteria or FilterCriteria())
    except Exception as exc:
        logger.exception("Failed to build product distribution")
        raise _failure("Error retrieving product distribution data", exc) from exc

    return ProductDistributionResponse(
        title="Product Distribution",
        description="Distribution of booking amounts across products",
        product_distribution=slices,
        last_updated=_now(),
    )


# ---------------------------------------------------------------------------
# POST /drill-down-summary
# ---------------------------------------------------------------------------
@router.post(
    "/drill-down-summary",
    response_model=DrillDownResponse,
    summary="Region totals with per-customer breakdown",
)
async def get_drill_down_summary(
    criteria: FilterCriteria | None = None,
    source: RecordSource = Depends(get_record_source),
) -> DrillDownResponse:
    """Return one entry per region, each with its customers sorted by name."""
    try:
        regions = build_drill_down(source, criteria or FilterCriteria())
    except Exception as exc:
        logger.exception("Failed to build drill-down summary")
        raise _failure("Error retrieving drill-down summary data", exc) from exc

    return DrillDownResponse(region_stats=regions)
