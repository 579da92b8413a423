"""
Tests for the BBB Dashboard HTTP API.

Uses FastAPI TestClient with the record source and the reference day
replaced through ``app.dependency_overrides``, so no workbook or warehouse
is needed.

Groups:
  1. Health
  2. Summary
  3. Filter options
  4. Monthly trend / distributions
  5. Drill-down summary
  6. Error handling
"""

from __future__ import annotations

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from bbb_dashboard.dependencies import get_record_source, get_today
from bbb_dashboard.errors import RetrievalError
from bbb_dashboard.main import app
from bbb_dashboard.models import FilterCriteria
from bbb_dashboard.services.record_source import FrameRecordSource, RecordStream

from conftest import TODAY

BASE = "/api/v1/dashboard"


class _BrokenBacklogSource(FrameRecordSource):
    """Serves bookings and billings but fails on the backlog stream."""

    def query_filtered(self, stream: RecordStream, criteria: FilterCriteria) -> pd.DataFrame:
        if RecordStream(stream) is RecordStream.BACKLOG:
            raise RetrievalError()
        return super().query_filtered(stream, criteria)


class _UnreachableSource(FrameRecordSource):
    name = "warehouse"

    def ping(self) -> bool:
        return False


def _client_for(source) -> TestClient:
    app.dependency_overrides[get_record_source] = lambda: source
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app)


@pytest.fixture()
def client(source):
    with _client_for(source) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 1. Health
# ---------------------------------------------------------------------------
class TestHealth:
    def test_healthy(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["backend"] == "frame"
        assert data["connected"] is True
        assert "version" in data

    def test_degraded_when_backend_unreachable(self):
        with _client_for(_UnreachableSource()) as c:
            data = c.get("/health").json()
        app.dependency_overrides.clear()
        assert data["status"] == "degraded"
        assert data["backend"] == "warehouse"
        assert data["connected"] is False


# ---------------------------------------------------------------------------
# 2. Summary
# ---------------------------------------------------------------------------
class TestSummary:
    def test_summary_without_body(self, client):
        resp = client.post(f"{BASE}/summary")
        assert resp.status_code == 200
        data = resp.json()
        assert {"title", "description", "metrics", "lastUpdated"} <= set(data)
        metrics = data["metrics"]
        assert metrics["totalBookings"] == 7
        assert metrics["totalBookingAmount"] == 3049.0
        assert metrics["totalBookingsMTD"] == 300.0
        assert metrics["bookToBillRatioYTD"] == 1.25
        assert metrics["currentMonthBillingsChange"] == -50.0

    def test_summary_with_filters(self, client):
        resp = client.post(
            f"{BASE}/summary",
            json={"startDate": "2024-03-01", "endDate": "2024-03-31", "region": "North"},
        )
        assert resp.status_code == 200
        metrics = resp.json()["metrics"]
        assert metrics["totalBookings"] == 2
        assert metrics["totalBillings"] == 1
        assert metrics["totalBookingsYTD"] == 350.0

    def test_blank_filters_are_ignored(self, client):
        resp = client.post(f"{BASE}/summary", json={"region": "", "startDate": "", "product": None})
        assert resp.status_code == 200
        assert resp.json()["metrics"]["totalBookings"] == 7

    def test_start_after_end_is_rejected(self, client):
        resp = client.post(f"{BASE}/summary", json={"startDate": "2024-03-31", "endDate": "2024-03-01"})
        assert resp.status_code == 422

    def test_invalid_date_is_rejected(self, client):
        resp = client.post(f"{BASE}/summary", json={"startDate": "March"})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# 3. Filter options
# ---------------------------------------------------------------------------
class TestFilterOptions:
    def test_filter_options(self, client):
        resp = client.get(f"{BASE}/filter-options")
        assert resp.status_code == 200
        data = resp.json()
        assert data["regions"] == ["East", "North", "South", "West"]
        assert data["products"] == ["Gadget", "Widget"]
        assert "E-Corp" in data["customers"]


# ---------------------------------------------------------------------------
# 4. Monthly trend / distributions
# ---------------------------------------------------------------------------
class TestCharts:
    def test_monthly_trend(self, client):
        resp = client.post(f"{BASE}/monthly-trend", json={})
        assert resp.status_code == 200
        data = resp.json()
        assert data["title"] == "Monthly Trend: Bookings vs Billings"
        trend = data["monthlyTrend"]
        assert len(trend) == 12
        assert trend[-1] == {
            "name": "Mar",
            "Bookings": 300.0,
            "Billings": 80.0,
            "BookingsCount": 2,
            "BillingsCount": 1,
        }

    def test_backlog_by_region(self, client):
        resp = client.post(f"{BASE}/backlog-by-region", json={})
        assert resp.status_code == 200
        data = resp.json()
        assert data["title"] == "Backlog by Region"
        assert [s["name"] for s in data["backlogByRegion"]] == ["North", "Unknown", "South"]
        assert data["backlogByRegion"][0] == {"name": "North", "value": 200.0, "count": 1, "fill": "#83a6ed"}

    def test_product_distribution(self, client):
        resp = client.post(f"{BASE}/product-distribution", json={"region": "East"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["title"] == "Product Distribution"
        assert data["productDistribution"] == [
            {"name": "Gadget", "value": 400.0, "count": 1, "fill": "#8884d8"},
        ]


# ---------------------------------------------------------------------------
# 5. Drill-down summary
# ---------------------------------------------------------------------------
class TestDrillDownSummary:
    def test_drill_down(self, client):
        resp = client.post(f"{BASE}/drill-down-summary", json={})
        assert resp.status_code == 200
        stats = resp.json()["regionStats"]
        assert [r["region"] for r in stats] == ["East", "North", "South", "Unknown", "West"]
        north = stats[1]
        assert north["bookingCustomersCount"] == 3
        assert north["totalBookings"] == 4
        assert north["bookToBillAmountRatio"] == 11.24
        assert [c["customer"] for c in north["customers"]] == ["A-Corp", "B-Corp", "C-Corp"]

    def test_drill_down_filtered_to_nothing(self, client):
        resp = client.post(f"{BASE}/drill-down-summary", json={"customer": "Nobody"})
        assert resp.status_code == 200
        assert resp.json() == {"regionStats": []}


# ---------------------------------------------------------------------------
# 6. Error handling
# ---------------------------------------------------------------------------
class TestErrors:
    @pytest.fixture()
    def broken_client(self, source):
        broken = _BrokenBacklogSource()
        broken._frames = source._frames
        with _client_for(broken) as c:
            yield c
        app.dependency_overrides.clear()

    def test_failing_stream_returns_500(self, broken_client):
        resp = broken_client.post(f"{BASE}/summary", json={})
        assert resp.status_code == 500
        detail = resp.json()["detail"]
        assert detail["message"] == "Error retrieving dashboard data"
        assert detail["error"] == "Failed to retrieve data"

    def test_other_views_unaffected(self, broken_client):
        assert broken_client.post(f"{BASE}/monthly-trend", json={}).status_code == 200
        assert broken_client.post(f"{BASE}/product-distribution", json={}).status_code == 200
        resp = broken_client.post(f"{BASE}/backlog-by-region", json={})
        assert resp.status_code == 500
        assert resp.json()["detail"]["message"] == "Error retrieving backlog by region data"

    def test_unavailable_source(self):
        def _unavailable():
            raise RetrievalError("warehouse unreachable")

        app.dependency_overrides[get_record_source] = _unavailable
        with TestClient(app) as c:
            resp = c.get(f"{BASE}/filter-options")
        app.dependency_overrides.clear()
        assert resp.status_code == 500
        assert resp.json() == {
            "detail": {"message": "Failed to retrieve data", "error": "warehouse unreachable"}
        }
