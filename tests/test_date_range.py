from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_service, make_ticket
from repairdesk import config
from repairdesk.services.date_range import (
    REPORT_DATE_FIELD,
    DateWindow,
    TicketQuery,
    build_ticket_query,
    resolve_date_window,
)

NOW = datetime(2024, 3, 15, 12, 0)


class TestResolveDateWindow:
    @pytest.mark.parametrize("period, expected_start", [
        ("week", datetime(2024, 3, 8, 12, 0)),
        ("month", datetime(2024, 2, 14, 12, 0)),
        ("quarter", datetime(2023, 12, 16, 12, 0)),
        ("year", datetime(2023, 3, 15, 12, 0)),
        ("7days", datetime(2024, 3, 8, 12, 0)),
    ])
    def test_relative_periods(self, period, expected_start):
        window = resolve_date_window(period, now=NOW)
        assert window.start == expected_start
        assert window.end is None

    @pytest.mark.parametrize("period", ["all", "custom", "fortnight", "", None])
    def test_unbounded_periods(self, period):
        assert resolve_date_window(period, now=NOW).unbounded

    def test_custom_range_is_inclusive_of_end_day(self):
        window = resolve_date_window("custom", "2023-12-01", "2024-01-31", now=NOW)
        assert window.start == datetime(2023, 12, 1)
        assert window.end == datetime(2024, 1, 31, 23, 59, 59, 999000)

    def test_explicit_dates_win_over_period(self):
        window = resolve_date_window("week", "2023-12-01", "2024-01-31", now=NOW)
        assert window.start == datetime(2023, 12, 1)

    @pytest.mark.parametrize("start, end", [
        ("2024-02-30", "2024-03-01"),
        ("garbage", "2024-03-01"),
        ("2024-03-01", "31/03/2024"),
    ])
    def test_malformed_custom_dates_fall_back_to_all(self, start, end):
        assert resolve_date_window("custom", start, end, now=NOW).unbounded

    def test_single_date_is_ignored(self):
        window = resolve_date_window("month", "2024-01-01", None, now=NOW)
        assert window.start == datetime(2024, 2, 14, 12, 0)


class TestWindowMatching:
    def test_created_at_fallback_inside_month(self):
        ticket = make_ticket(invoiceDate=None, createdAt="2024-03-01")
        assert resolve_date_window("month", now=NOW).matches(ticket)

    def test_created_at_fallback_outside_month(self):
        ticket = make_ticket(invoiceDate=None, createdAt="2023-01-01")
        assert not resolve_date_window("month", now=NOW).matches(ticket)

    def test_invoice_date_wins_over_created_at(self):
        ticket = make_ticket(invoiceDate="2024-01-01", createdAt="2024-06-01")
        window = resolve_date_window("custom", "2023-12-01", "2024-01-31")
        assert window.matches(ticket)

    def test_recent_ticket_invoiced_long_ago_is_excluded(self):
        ticket = make_ticket(invoiceDate=datetime(2023, 6, 1), createdAt=datetime(2024, 3, 14))
        assert not resolve_date_window("month", now=NOW).matches(ticket)

    @pytest.mark.parametrize("missing", [None, ""])
    def test_empty_invoice_date_uses_created_at(self, missing):
        ticket = make_ticket(invoiceDate=missing, createdAt=datetime(2024, 3, 10))
        assert resolve_date_window("week", now=NOW).matches(ticket)

    def test_absent_invoice_date_uses_created_at(self):
        ticket = make_ticket(createdAt=datetime(2024, 3, 10))
        del ticket["invoiceDate"]
        assert resolve_date_window("week", now=NOW).matches(ticket)

    def test_end_day_is_included_until_midnight(self):
        window = resolve_date_window("custom", "2024-01-01", "2024-01-31")
        assert window.matches(make_ticket(createdAt=datetime(2024, 1, 31, 23, 59, 59)))
        assert not window.matches(make_ticket(createdAt=datetime(2024, 2, 1, 0, 0, 0)))

    def test_all_matches_tickets_without_any_date(self):
        assert DateWindow().matches({"totalAmount": 5})


class TestMongoFilter:
    def conditions(self, window):
        return window.to_mongo()["$expr"]["$let"]["in"]["$and"]

    def test_unbounded_window_has_no_filter(self):
        assert DateWindow().to_mongo() == {}

    def test_custom_range_bounds_are_aware_shop_times(self, monkeypatch):
        monkeypatch.setattr(config, "SHOP_TIMEZONE", "Asia/Kuwait")
        window = resolve_date_window("custom", "2023-12-01", "2024-01-31")
        conditions = self.conditions(window)

        assert conditions[0] == {"$ne": ["$$reportDate", None]}
        start = conditions[1]["$gte"][1]
        end = conditions[2]["$lte"][1]
        assert start == datetime(2023, 11, 30, 21, 0, tzinfo=timezone.utc)
        assert end == datetime(2024, 1, 31, 20, 59, 59, 999000, tzinfo=timezone.utc)

    def test_threshold_has_only_lower_bound(self):
        conditions = self.conditions(resolve_date_window("week", now=NOW))
        assert [list(c) for c in conditions] == [["$ne"], ["$gte"]]
        assert conditions[1]["$gte"][1].replace(tzinfo=None) == datetime(2024, 3, 8, 12, 0)

    def test_report_date_falls_back_to_created_at(self):
        report_date = resolve_date_window("week", now=NOW).to_mongo()["$expr"]["$let"]["vars"]["reportDate"]
        assert report_date["$let"]["vars"]["value"] == REPORT_DATE_FIELD

    def test_strings_without_offset_parse_in_shop_zone(self, monkeypatch):
        monkeypatch.setattr(config, "SHOP_TIMEZONE", "Asia/Kuwait")
        report_date = resolve_date_window("week", now=NOW).to_mongo()["$expr"]["$let"]["vars"]["reportDate"]
        string_branch = report_date["$let"]["in"]["$switch"]["branches"][1]["then"]["$cond"]

        with_offset = string_branch[1]["$dateFromString"]
        without_offset = string_branch[2]["$dateFromString"]
        assert "timezone" not in with_offset
        assert without_offset["timezone"] == "Asia/Kuwait"
        assert without_offset["onError"] is None


class TestTicketQuery:
    def test_all_filters_render_empty(self):
        assert build_ticket_query("all", "all").to_mongo() == {}

    def test_category_only(self):
        assert build_ticket_query("all", "repair").to_mongo() == {"services.category": "repair"}

    def test_category_and_dates_are_anded(self):
        query = build_ticket_query("week", "repair", now=NOW).to_mongo()
        assert set(query) == {"$and"}
        assert query["$and"][1] == {"services.category": "repair"}
        assert "$expr" in query["$and"][0]

    def test_category_matches_any_line_item(self):
        query = TicketQuery(category="painting")
        ticket = make_ticket(services=[make_service("wash", 10, "detailing"), make_service("hood", 50, "painting")])
        assert query.matches(ticket)
        assert not query.matches(make_ticket(services=[make_service("wash", 10, "detailing")]))
        assert not query.matches(make_ticket(services=None))

    def test_category_and_window_both_required(self):
        query = build_ticket_query("week", "repair", now=NOW)
        in_window = make_ticket(createdAt=datetime(2024, 3, 14), services=[make_service("brakes", 40, "repair")])
        out_of_window = make_ticket(createdAt=datetime(2024, 1, 1), services=[make_service("brakes", 40, "repair")])
        assert query.matches(in_window)
        assert not query.matches(out_of_window)


def test_aware_reference_time_is_read_as_shop_time(monkeypatch):
    monkeypatch.setattr(config, "SHOP_TIMEZONE", "Asia/Kuwait")
    now = datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)
    window = resolve_date_window("week", now=now)
    assert window.start == datetime(2024, 3, 8, 12, 0)
    assert window.start + timedelta(days=7) == datetime(2024, 3, 15, 12, 0)
