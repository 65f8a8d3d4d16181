"""
Date-Range Resolver

Turns a report filter ({period, startDate?, endDate?, category?}) into a
ticket query. A ticket is placed in time by its invoice date; tickets that
were never invoiced fall back to their creation date:

- invoiceDate present  -> invoiceDate must fall in the window
- invoiceDate missing, null or ""  -> createdAt must fall in the window

Dates may be stored as native datetimes or ISO strings. Both evaluations
convert the stored value to an instant before comparing:
- matches() parses it in process (memory store)
- to_mongo() renders an $expr that converts it server side: native dates as
  is, strings with an offset by that offset, strings without one in the shop
  timezone, anything unparseable to null (never matches)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from repairdesk.models.enums import ReportPeriod
from repairdesk.services.dates import (
    end_of_day,
    localize,
    local_now,
    months_back,
    parse_date_like,
    parse_day,
    start_of_day,
    timezone_name,
    to_local_naive,
)

logger = logging.getLogger(__name__)

# Lookback for relative periods
PERIOD_LOOKBACK_DAYS = {
    ReportPeriod.WEEK: 7,
    ReportPeriod.MONTH: 30,
    ReportPeriod.QUARTER: 90,
}
YEAR_LOOKBACK_MONTHS = 12

# A time part followed by Z or a UTC offset, e.g. T10:00:00.000Z, T10:00:00+03:00
OFFSET_SUFFIX = r"[T ]\d{2}:\d{2}.*(Z|z|[+-]\d{2}(:?\d{2})?)$"

# invoiceDate when set, createdAt when it is missing, null or ""
REPORT_DATE_FIELD = {
    "$cond": [
        {"$eq": [{"$ifNull": ["$invoiceDate", ""]}, ""]},
        "$createdAt",
        "$invoiceDate",
    ]
}


def has_invoice_date(value: Any) -> bool:
    return value is not None and value != ""


def stored_date_expr(value: Any, zone: str) -> Dict[str, Any]:
    """Aggregation expression converting a stored DateLike to a date, null when unusable"""

    def from_string(**options):
        return {"$dateFromString": {"dateString": "$$value", "onError": None, "onNull": None, **options}}

    return {
        "$let": {
            "vars": {"value": value},
            "in": {
                "$switch": {
                    "branches": [
                        {"case": {"$eq": [{"$type": "$$value"}, "date"]}, "then": "$$value"},
                        {
                            "case": {"$eq": [{"$type": "$$value"}, "string"]},
                            # $dateFromString rejects a timezone option for strings carrying an offset
                            "then": {
                                "$cond": [
                                    {"$regexMatch": {"input": "$$value", "regex": OFFSET_SUFFIX}},
                                    from_string(),
                                    from_string(timezone=zone),
                                ]
                            },
                        },
                    ],
                    "default": None,
                }
            },
        }
    }


@dataclass(frozen=True)
class DateWindow:
    """Inclusive [start, end] window of naive local datetimes; a None bound is open"""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def unbounded(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    def to_mongo(self) -> Dict[str, Any]:
        """Mongo filter document; {} when the window is unbounded"""
        if self.unbounded:
            return {}

        conditions: List[Dict[str, Any]] = [{"$ne": ["$$reportDate", None]}]
        if self.start is not None:
            conditions.append({"$gte": ["$$reportDate", localize(self.start)]})
        if self.end is not None:
            conditions.append({"$lte": ["$$reportDate", localize(self.end)]})

        return {
            "$expr": {
                "$let": {
                    "vars": {"reportDate": stored_date_expr(REPORT_DATE_FIELD, timezone_name())},
                    "in": {"$and": conditions},
                }
            }
        }

    def matches(self, ticket: Dict[str, Any]) -> bool:
        if self.unbounded:
            return True

        invoice_date = ticket.get("invoiceDate")
        if has_invoice_date(invoice_date):
            moment = parse_date_like(invoice_date)
        else:
            moment = parse_date_like(ticket.get("createdAt"))

        return moment is not None and self.contains(moment)


@dataclass(frozen=True)
class TicketQuery:
    """Date window ANDed with an optional service category"""
    window: DateWindow = field(default_factory=DateWindow)
    category: Optional[str] = None

    def to_mongo(self) -> Dict[str, Any]:
        clauses: List[Dict[str, Any]] = []

        date_filter = self.window.to_mongo()
        if date_filter:
            clauses.append(date_filter)
        if self.category:
            clauses.append({"services.category": self.category})

        if not clauses:
            return {}
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}

    def matches(self, ticket: Dict[str, Any]) -> bool:
        if not self.window.matches(ticket):
            return False
        if not self.category:
            return True

        services = ticket.get("services")
        if not isinstance(services, list):
            return False
        return any(
            isinstance(service, dict) and service.get("category") == self.category
            for service in services
        )


def resolve_date_window(
    period: Optional[str] = "all",
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    now: Optional[datetime] = None
) -> DateWindow:
    """
    Resolve a reporting period into a DateWindow.

    Args:
        period: week, month, quarter, year, all or custom
        start_date: Custom range start (YYYY-MM-DD)
        end_date: Custom range end (YYYY-MM-DD), inclusive through 23:59:59.999
        now: Reference time for relative periods (defaults to local now)

    Returns:
        DateWindow; unbounded for "all", unknown periods, "custom" without
        both dates, and malformed custom dates.
    """
    if start_date and end_date:
        start_day = parse_day(start_date)
        end_day = parse_day(end_date)
        if start_day is None or end_day is None:
            logger.info(
                f"[DateRange] Ignoring malformed custom range {start_date!r} - {end_date!r}, "
                f"reporting on all dates"
            )
            return DateWindow()
        return DateWindow(start=start_of_day(start_day), end=end_of_day(end_day))

    resolved = ReportPeriod.normalize(period)
    now = to_local_naive(now) if now is not None else to_local_naive(local_now())

    if resolved in PERIOD_LOOKBACK_DAYS:
        return DateWindow(start=now - timedelta(days=PERIOD_LOOKBACK_DAYS[resolved]))
    if resolved == ReportPeriod.YEAR:
        return DateWindow(start=months_back(now, YEAR_LOOKBACK_MONTHS))

    # ALL, or CUSTOM without a usable range
    return DateWindow()


def build_ticket_query(
    period: Optional[str] = "all",
    category: Optional[str] = "all",
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    now: Optional[datetime] = None
) -> TicketQuery:
    """Combine the resolved date window with the category filter"""
    window = resolve_date_window(period, start_date, end_date, now=now)
    if category and category.strip().lower() != "all":
        return TicketQuery(window=window, category=category.strip())
    return TicketQuery(window=window)
