"""
Filter option discovery for the dashboard drop-downs.
"""

from __future__ import annotations

from bbb_dashboard.models import FilterOptions
from bbb_dashboard.services.record_source import RecordSource


def resolve_filter_options(source: RecordSource) -> FilterOptions:
    """Return the distinct regions, products and customers across all streams."""
    return FilterOptions(
        regions=source.distinct_values("region"),
        products=source.distinct_values("product"),
        customers=source.distinct_values("customer"),
    )
