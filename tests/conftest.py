"""
Shared fixtures: a small in-memory dataset anchored to a fixed reference day.

Reference day is 2024-03-15, so the current month is March 2024, the
previous month February 2024 and the trend window April 2023 - March 2024.
"""

from __future__ import annotations

import os
import sys
from datetime import date

import pandas as pd
import pytest

# Ensure the app package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "app"))

from bbb_dashboard.services.record_source import FrameRecordSource  # noqa: E402

TODAY = date(2024, 3, 15)


def make_frame(rows: list[tuple]) -> pd.DataFrame:
    """Build a record frame from (date, region, product, customer, amount) tuples."""
    return pd.DataFrame(rows, columns=["date", "region", "product", "customer", "amount"])


def _mock_bookings() -> pd.DataFrame:
    return make_frame([
        ("2024-03-02", "North", "Widget", "A-Corp", 100.0),
        ("2024-03-10", "North", "Gadget", "B-Corp", 200.0),
        ("2024-02-05", "South", "Widget", "A-Corp", 300.0),
        ("2024-02-20", "North", "Widget", "C-Corp", 50.0),
        ("2024-01-15", "East", "Gadget", "A-Corp", 400.0),
        ("2023-06-01", "West", "Widget", "D-Corp", 1000.0),
        # 13 months before the reference month: outside the trend window
        ("2023-02-15", "North", "Widget", "A-Corp", 999.0),
    ])


def _mock_billings() -> pd.DataFrame:
    return make_frame([
        ("2024-03-05", "North", "Widget", "A-Corp", 80.0),
        ("2024-02-10", "South", "Widget", "A-Corp", 250.0),
        ("2024-02-25", "North", "Widget", "C-Corp", 40.0),
        ("2024-01-20", "East", "Gadget", "A-Corp", 100.0),
    ])


def _mock_backlog() -> pd.DataFrame:
    return make_frame([
        ("2024-03-20", "North", "Gadget", "B-Corp", 200.0),
        ("2024-02-15", "South", "Widget", "A-Corp", 50.0),
        ("2024-04-10", None, "Widget", "E-Corp", 75.0),
    ])


@pytest.fixture()
def today() -> date:
    return TODAY


@pytest.fixture()
def source() -> FrameRecordSource:
    """The shared fixture dataset."""
    return FrameRecordSource(
        bookings=_mock_bookings(),
        billings=_mock_billings(),
        backlog=_mock_backlog(),
    )


@pytest.fixture()
def empty_source() -> FrameRecordSource:
    """A source with no rows in any stream."""
    return FrameRecordSource()
