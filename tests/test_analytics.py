import asyncio
from datetime import datetime

import pytest

from conftest import make_service, make_ticket
from repairdesk.models.analytics import AnalyticsFilter
from repairdesk.services.analytics import (
    aggregate_repair_parts,
    aggregate_revenue_by_day,
    aggregate_top_services,
    build_analytics_report,
    get_analytics_data,
    to_number,
)
from repairdesk.services.ticket_store import MemoryTicketStore


class TestToNumber:
    @pytest.mark.parametrize("value, expected", [
        (100, 100.0),
        (12.5, 12.5),
        ("7.250", 7.25),
        (None, 0.0),
        ("", 0.0),
        ("n/a", 0.0),
        (True, 0.0),
        (float("nan"), 0.0),
        ({"amount": 5}, 0.0),
    ])
    def test_coercion(self, value, expected):
        assert to_number(value) == expected

    def test_none_default_flags_non_numeric(self):
        assert to_number("n/a", default=None) is None
        assert to_number(None, default=None) is None
        assert to_number("3", default=None) == 3.0


class TestReport:
    def test_two_ticket_example(self):
        tickets = [
            {"totalAmount": 100, "services": [{"category": "repair", "price": 100}]},
            {"totalAmount": 50, "services": [{"category": "painting", "price": 50}]},
        ]
        report = build_analytics_report(tickets)

        assert report.total_revenue == 150
        assert report.total_tickets == 2
        assert report.average_ticket_value == 75
        assert [(c.id, c.count, c.revenue) for c in report.service_categories] == [
            ("repair", 1, 100),
            ("painting", 1, 50),
        ]

    def test_empty_ticket_set(self):
        report = build_analytics_report([])
        data = report.model_dump(by_alias=True)

        assert data["totalRevenue"] == 0
        assert data["totalTickets"] == 0
        assert data["averageTicketValue"] == 0
        assert data["serviceCategories"] == []
        assert data["revenueByDay"] == []
        assert data["topServices"] == []
        assert data["commonRepairParts"] == []
        assert data["period"] == "all"
        assert data["filters"]["category"] == "all"

    def test_malformed_amounts_count_as_zero(self):
        tickets = [
            make_ticket(totalAmount="oops", services=[make_service("tint", "call us", "tinting")]),
            make_ticket(totalAmount=None),
            make_ticket(totalAmount=40),
        ]
        report = build_analytics_report(tickets)

        assert report.total_revenue == 40
        assert report.total_tickets == 3
        assert report.service_categories[0].revenue == 0
        assert report.service_categories[0].count == 1

    def test_line_item_counts_not_ticket_counts(self):
        ticket = make_ticket(totalAmount=30, services=[
            make_service("polish", 10, "detailing"),
            make_service("polish", 10, "detailing"),
            make_service("wax", 10, "detailing"),
        ])
        report = build_analytics_report([ticket])

        assert report.service_categories[0].count == 3
        assert report.service_categories[0].revenue == 30
        assert report.top_services[0].service_id == "polish"
        assert report.top_services[0].count == 2

    def test_filters_are_echoed(self):
        filters = AnalyticsFilter(period="custom", category="repair", start_date="2024-01-01", end_date="2024-01-31")
        data = build_analytics_report([], filters).model_dump(by_alias=True)

        assert data["period"] == "custom"
        assert data["filters"] == {
            "period": "custom",
            "category": "repair",
            "startDate": "2024-01-01",
            "endDate": "2024-01-31",
        }

    def test_revenue_by_day_sums_to_total(self):
        tickets = [
            make_ticket(totalAmount=10.5, createdAt=datetime(2024, 3, 2, 9)),
            make_ticket(totalAmount=20.25, createdAt=datetime(2024, 3, 1, 18)),
            make_ticket(totalAmount=7, createdAt="2024-03-02T16:45:00"),
            make_ticket(totalAmount=3, invoiceDate="2024-02-28T10:00:00", createdAt=datetime(2024, 3, 5)),
        ]
        report = build_analytics_report(tickets)

        days = [d.date for d in report.revenue_by_day]
        assert days == sorted(days)
        assert sum(d.revenue for d in report.revenue_by_day) == pytest.approx(report.total_revenue)
        assert sum(d.ticket_count for d in report.revenue_by_day) == report.total_tickets


class TestRevenueByDay:
    def test_invoice_date_preferred_for_bucket(self):
        tickets = [make_ticket(totalAmount=25, invoiceDate="2024-01-10", createdAt=datetime(2024, 3, 1))]
        buckets = aggregate_revenue_by_day(tickets)
        assert [(b.date, b.revenue, b.ticket_count) for b in buckets] == [("2024-01-10", 25, 1)]

    def test_unparseable_invoice_date_falls_back_to_created_at(self):
        tickets = [make_ticket(totalAmount=25, invoiceDate="soon", createdAt=datetime(2024, 3, 1, 23, 30))]
        assert aggregate_revenue_by_day(tickets)[0].date == "2024-03-01"

    def test_same_day_tickets_share_a_bucket(self):
        tickets = [
            make_ticket(totalAmount=5, createdAt=datetime(2024, 3, 1, 8)),
            make_ticket(totalAmount=6, createdAt=datetime(2024, 3, 1, 20)),
        ]
        buckets = aggregate_revenue_by_day(tickets)
        assert len(buckets) == 1
        assert buckets[0].revenue == 11
        assert buckets[0].ticket_count == 2

    def test_undated_tickets_get_a_trailing_bucket(self):
        tickets = [
            make_ticket(totalAmount=9, invoiceDate="soon", createdAt=None),
            make_ticket(totalAmount=5, createdAt=datetime(2024, 3, 1, 8)),
            make_ticket(totalAmount=4, createdAt=""),
        ]
        report = build_analytics_report(tickets)

        assert [(d.date, d.revenue, d.ticket_count) for d in report.revenue_by_day] == [
            ("2024-03-01", 5, 1),
            ("unknown", 13, 2),
        ]
        assert sum(d.revenue for d in report.revenue_by_day) == report.total_revenue


class TestTopServices:
    def test_limited_to_ten_sorted_by_count(self):
        services = []
        for i in range(12):
            services.extend(make_service(f"svc-{i}", 10) for _ in range(i + 1))
        top = aggregate_top_services([make_ticket(services=services)])

        assert len(top) == 10
        counts = [s.count for s in top]
        assert counts == sorted(counts, reverse=True)
        assert top[0].service_id == "svc-11"

    def test_ties_keep_first_seen_order(self):
        ticket = make_ticket(services=[make_service("b", 5), make_service("a", 5), make_service("c", 5)])
        assert [s.service_id for s in aggregate_top_services([ticket])] == ["b", "a", "c"]

    def test_first_category_is_retained(self):
        tickets = [
            make_ticket(services=[make_service("wrap", 100, "protection")]),
            make_ticket(services=[make_service("wrap", 120, "painting")]),
        ]
        top = aggregate_top_services(tickets)
        assert top[0].category_id == "protection"
        assert top[0].revenue == 220

    def test_service_name_used_when_id_missing(self):
        ticket = make_ticket(services=[{"serviceName": "Hand Wash", "category": "detailing", "price": 8}])
        top = aggregate_top_services([ticket])
        assert top[0].service_id == "Hand Wash"


class TestRepairParts:
    def test_percentages_relative_to_mentions(self):
        tickets = [
            make_ticket(repairParts=["bumper", "hood", "bumper"]),
            make_ticket(repairParts=["bumper"]),
            make_ticket(repairParts=[]),
        ]
        parts = aggregate_repair_parts(tickets)

        assert [(p.name, p.count) for p in parts] == [("bumper", 3), ("hood", 1)]
        assert parts[0].percentage == pytest.approx(75)
        assert sum(p.percentage for p in parts) == pytest.approx(100)

    def test_no_parts(self):
        assert aggregate_repair_parts([make_ticket(), make_ticket(repairParts=None)]) == []

    def test_limited_to_ten(self):
        tickets = [make_ticket(repairParts=[f"part-{i}" for i in range(15)])]
        parts = aggregate_repair_parts(tickets)
        assert len(parts) == 10
        assert all(p.count == 1 for p in parts)


class TestGetAnalyticsData:
    def test_filters_through_store(self):
        store = MemoryTicketStore(tickets=[
            make_ticket(totalAmount=100, invoiceDate=None, createdAt="2024-03-01",
                        services=[make_service("ppf", 100, "protection")]),
            make_ticket(totalAmount=60, invoiceDate=None, createdAt="2023-01-01",
                        services=[make_service("ppf", 60, "protection")]),
            make_ticket(totalAmount=40, invoiceDate="2024-03-10", createdAt="2022-05-05",
                        services=[make_service("brakes", 40, "repair")]),
        ])
        filters = AnalyticsFilter(period="month")
        report = asyncio.run(get_analytics_data(store, filters, now=datetime(2024, 3, 15)))

        assert report.total_tickets == 2
        assert report.total_revenue == 140
        assert [d.date for d in report.revenue_by_day] == ["2024-03-01", "2024-03-10"]

    def test_category_filter_keeps_whole_tickets(self):
        store = MemoryTicketStore(tickets=[
            make_ticket(totalAmount=150, services=[
                make_service("brakes", 100, "repair"),
                make_service("wash", 50, "detailing"),
            ]),
            make_ticket(totalAmount=30, services=[make_service("wash", 30, "detailing")]),
        ])
        report = asyncio.run(get_analytics_data(store, AnalyticsFilter(category="repair")))

        assert report.total_tickets == 1
        assert report.total_revenue == 150
        assert {c.id for c in report.service_categories} == {"repair", "detailing"}
