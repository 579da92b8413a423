"""
Tests for the region -> customer drill-down summary.
"""

from __future__ import annotations

from bbb_dashboard.models import DrillDownResponse, FilterCriteria
from bbb_dashboard.services.drill_down import build_drill_down
from bbb_dashboard.services.filters import resolve_filter_options
from bbb_dashboard.services.record_source import FrameRecordSource

from conftest import make_frame


def _mock_two_region_source() -> FrameRecordSource:
    """10 bookings, 8 billings and 5 backlog rows spread over two regions."""
    customers = ["Zeta", "alpha", "Beta"]
    bookings = [
        (f"2024-0{1 + i % 3}-1{i % 9}", "North" if i % 2 else "South", "Widget", customers[i % 3], 100.0 + i)
        for i in range(10)
    ]
    billings = [
        (f"2024-0{1 + i % 3}-2{i % 9}", "North" if i % 2 else "South", "Widget", customers[i % 3], 90.0 + i)
        for i in range(8)
    ]
    backlog = [
        (f"2024-04-0{1 + i}", "North" if i % 2 else "South", "Gadget", customers[i % 3], 50.0 * (i + 1))
        for i in range(5)
    ]
    return FrameRecordSource(
        bookings=make_frame(bookings),
        billings=make_frame(billings),
        backlog=make_frame(backlog),
    )


class TestDrillDown:
    def test_basic_scenario(self):
        src = FrameRecordSource(
            bookings=make_frame([
                ("2024-03-01", "North", "Widget", "A", 100.0),
                ("2024-03-02", "North", "Widget", "A", 50.0),
                ("2024-03-03", "North", "Widget", "B", 200.0),
            ]),
            billings=make_frame([
                ("2024-03-05", "North", "Widget", "A", 120.0),
            ]),
        )
        regions = build_drill_down(src, FilterCriteria())
        assert len(regions) == 1
        north = regions[0]
        assert north.region == "North"
        assert north.total_bookings == 3
        assert north.booking_amount == 350.0
        assert north.total_billings == 1
        assert north.billing_amount == 120.0
        assert north.booking_customers_count == 2
        assert north.billing_customers_count == 1
        assert north.backlog_customers_count == 0
        assert north.book_to_bill_ratio == 3.0
        assert north.book_to_bill_amount_ratio == 2.92

        a, b = north.customers
        assert (a.customer, a.bookings, a.booking_amount, a.billings) == ("A", 2, 150.0, 1)
        assert a.book_to_bill_ratio == 2.0
        assert a.book_to_bill_amount_ratio == 1.25
        assert (b.customer, b.bookings, b.billings) == ("B", 1, 0)
        assert b.book_to_bill_ratio == 0.0
        assert b.book_to_bill_amount_ratio == 0.0

    def test_ratios_use_region_totals(self):
        src = FrameRecordSource(
            bookings=make_frame([
                ("2024-03-01", "North", "Widget", "A", 100.0),
                ("2024-03-02", "North", "Widget", "B", 200.0),
            ]),
            billings=make_frame([
                ("2024-03-05", "North", "Widget", "A", 50.0),
            ]),
        )
        (north,) = build_drill_down(src, FilterCriteria())
        assert (north.total_bookings, north.booking_amount) == (2, 300.0)
        assert (north.total_billings, north.billing_amount) == (1, 50.0)
        assert north.book_to_bill_ratio == 2.0
        assert north.book_to_bill_amount_ratio == 6.0
        a, b = north.customers
        assert (a.book_to_bill_ratio, a.book_to_bill_amount_ratio) == (1.0, 2.0)
        assert (b.billings, b.book_to_bill_ratio, b.book_to_bill_amount_ratio) == (0, 0.0, 0.0)

    def test_customer_without_billings_is_kept(self):
        src = FrameRecordSource(
            bookings=make_frame([
                ("2024-03-01", "West", "Widget", "Solo", 10.0),
                ("2024-03-02", "West", "Widget", "Solo", 20.0),
                ("2024-03-03", "West", "Gadget", "Solo", 30.0),
            ]),
        )
        (west,) = build_drill_down(src, FilterCriteria())
        (solo,) = west.customers
        assert solo.bookings == 3
        assert solo.billings == 0
        assert solo.billing_amount == 0.0
        assert solo.book_to_bill_ratio == 0.0

    def test_regions_sorted_with_unknown_label(self, source):
        regions = build_drill_down(source, FilterCriteria())
        assert [r.region for r in regions] == ["East", "North", "South", "Unknown", "West"]
        unknown = regions[3]
        assert [c.customer for c in unknown.customers] == ["E-Corp"]
        assert unknown.customers[0].backlog_amount == 75.0
        assert unknown.customers[0].bookings == 0

    def test_region_totals_and_distinct_customers(self, source):
        north = next(r for r in build_drill_down(source, FilterCriteria()) if r.region == "North")
        assert [c.customer for c in north.customers] == ["A-Corp", "B-Corp", "C-Corp"]
        assert (north.total_bookings, north.booking_amount) == (4, 1349.0)
        assert (north.total_billings, north.billing_amount) == (2, 120.0)
        assert (north.total_backlogs, north.backlog_amount) == (1, 200.0)
        assert north.booking_customers_count == 3
        assert north.billing_customers_count == 2
        assert north.backlog_customers_count == 1
        assert north.book_to_bill_ratio == 2.0
        assert north.book_to_bill_amount_ratio == 11.24

    def test_customers_sorted_case_insensitively(self):
        regions = build_drill_down(_mock_two_region_source(), FilterCriteria())
        for region in regions:
            names = [c.customer for c in region.customers]
            assert names == sorted(names, key=str.casefold)
        assert [c.customer for c in regions[0].customers] == ["alpha", "Beta", "Zeta"]

    def test_deterministic_output(self):
        src = _mock_two_region_source()
        first = DrillDownResponse(region_stats=build_drill_down(src, FilterCriteria())).model_dump_json(by_alias=True)
        second = DrillDownResponse(region_stats=build_drill_down(src, FilterCriteria())).model_dump_json(by_alias=True)
        assert first == second

    def test_totals_match_streams(self):
        src = _mock_two_region_source()
        regions = build_drill_down(src, FilterCriteria())
        assert sum(r.total_bookings for r in regions) == 10
        assert sum(r.total_billings for r in regions) == 8
        assert sum(r.total_backlogs for r in regions) == 5

    def test_customer_filter(self, source):
        regions = build_drill_down(source, FilterCriteria(customer="A-Corp"))
        assert [r.region for r in regions] == ["East", "North", "South"]
        assert all(len(r.customers) == 1 for r in regions)

    def test_empty(self, empty_source):
        assert build_drill_down(empty_source, FilterCriteria()) == []

    def test_wire_names(self, source):
        payload = DrillDownResponse(region_stats=build_drill_down(source, FilterCriteria())).model_dump(by_alias=True)
        region = payload["regionStats"][0]
        assert "bookingCustomersCount" in region
        assert "bookToBillAmountRatio" in region
        assert "bookingAmount" in region["customers"][0]


class TestFilterOptions:
    def test_union_across_streams(self, source):
        options = resolve_filter_options(source)
        assert options.regions == ["East", "North", "South", "West"]
        assert options.products == ["Gadget", "Widget"]
        # E-Corp only appears in the backlog stream
        assert options.customers == ["A-Corp", "B-Corp", "C-Corp", "D-Corp", "E-Corp"]

    def test_empty(self, empty_source):
        options = resolve_filter_options(empty_source)
        assert options.regions == []
        assert options.products == []
        assert options.customers == []
