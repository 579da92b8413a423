"""
Shared numeric and grouping helpers for the dashboard aggregations.
"""

from __future__ import annotations

import pandas as pd

UNKNOWN_LABEL = "Unknown"


def round2(value) -> float:
    """Round a money figure or ratio to 2 decimals as a plain ``float``."""
    if value is None or pd.isna(value):
        return 0.0
    return round(float(value), 2)


def ratio(numerator, denominator) -> float:
    """Return ``numerator / denominator`` unrounded, or 0 if the denominator is 0."""
    if not denominator:
        return 0.0
    return float(numerator / denominator)


def safe_ratio(numerator, denominator) -> float:
    """Return ``numerator / denominator`` rounded to 2 decimals, or 0 if the denominator is 0."""
    return round2(ratio(numerator, denominator))


def percent_change(current, previous) -> float:
    """Signed percentage change from *previous* to *current*.

    A zero baseline yields 100 when *current* is positive and 0 otherwise.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round2((current - previous) / previous * 100)


def with_labels(frame: pd.DataFrame, *columns: str) -> pd.DataFrame:
    """Return a copy of *frame* with *columns* stripped and null or blank values read ``"Unknown"``."""
    out = frame.copy()
    for column in columns:
        out[column] = [
            value.strip() if isinstance(value, str) and value.strip() else UNKNOWN_LABEL
            for value in out[column]
        ]
    return out


def count_and_sum(frame: pd.DataFrame) -> tuple[int, float]:
    """Row count and summed amount of a record frame."""
    return len(frame), float(frame["amount"].sum())
