"""
Sales & Analytics Aggregation

Reduces a set of tickets into the analytics report:
- Revenue, ticket count and average ticket value
- Revenue and line item counts per service category
- Top services by occurrence
- Revenue and ticket count per day
- Most mentioned repair parts

Rules:
- Every report field is always present (zero / empty when there is no data)
- Missing or non-numeric amounts count as 0; one bad ticket never aborts the report
- Category and service revenue use the line item `price`
- Day buckets use the invoice date when it parses, else createdAt; tickets with
  neither go to a trailing "unknown" bucket so the days always sum to the total
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from repairdesk.models.analytics import (
    AnalyticsFilter,
    AnalyticsReport,
    RepairPartStat,
    RevenueByDay,
    ServiceCategoryStat,
    ServicePopularity,
)
from repairdesk.models.enums import ServiceCategory
from repairdesk.services.date_range import build_ticket_query
from repairdesk.services.dates import format_day, parse_date_like

logger = logging.getLogger(__name__)

TOP_SERVICES_LIMIT = 10
TOP_REPAIR_PARTS_LIMIT = 10
UNCATEGORIZED = "uncategorized"
UNDATED_DAY = "unknown"


def to_number(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Safely convert a stored amount to float."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _ticket_services(ticket: Dict[str, Any]) -> List[Dict[str, Any]]:
    services = ticket.get("services")
    if not isinstance(services, list):
        return []
    return [s for s in services if isinstance(s, dict)]


def _ticket_label(ticket: Dict[str, Any]) -> str:
    return str(ticket.get("_id") or ticket.get("plateNumber") or "?")


# ============== Reducers ==============

def aggregate_service_categories(tickets: Iterable[Dict[str, Any]]) -> List[ServiceCategoryStat]:
    """One entry per category seen on any line item, in first-seen order"""
    categories: Dict[str, ServiceCategoryStat] = {}

    for ticket in tickets:
        for service in _ticket_services(ticket):
            category_id = service.get("category") or UNCATEGORIZED
            stat = categories.get(category_id)
            if stat is None:
                stat = ServiceCategoryStat(
                    id=category_id,
                    name=ServiceCategory.to_label(category_id),
                )
                categories[category_id] = stat
            stat.count += 1
            stat.revenue += to_number(service.get("price"))

    return list(categories.values())


def aggregate_top_services(
    tickets: Iterable[Dict[str, Any]],
    limit: int = TOP_SERVICES_LIMIT
) -> List[ServicePopularity]:
    """
    Rank services by occurrence count.

    Services are keyed by serviceId (serviceName when the id is missing) and
    keep the category of their first occurrence. Ties keep first-seen order.
    """
    services: Dict[str, ServicePopularity] = {}

    for ticket in tickets:
        for service in _ticket_services(ticket):
            service_id = service.get("serviceId") or service.get("serviceName")
            if not service_id:
                logger.debug(f"[Analytics] Line item without id or name on ticket {_ticket_label(ticket)}")
                continue
            service_id = str(service_id)

            stat = services.get(service_id)
            if stat is None:
                stat = ServicePopularity(
                    service_id=service_id,
                    service_name=str(service.get("serviceName") or service_id),
                    category_id=service.get("category") or UNCATEGORIZED,
                )
                services[service_id] = stat
            stat.count += 1
            stat.revenue += to_number(service.get("price"))

    ranked = sorted(services.values(), key=lambda s: s.count, reverse=True)
    return ranked[:limit]


def aggregate_repair_parts(
    tickets: Iterable[Dict[str, Any]],
    limit: int = TOP_REPAIR_PARTS_LIMIT
) -> List[RepairPartStat]:
    """Count part mentions; percentage is relative to all mentions, not tickets"""
    counts: Dict[str, int] = {}
    total_mentions = 0

    for ticket in tickets:
        parts = ticket.get("repairParts")
        if not isinstance(parts, list):
            continue
        for part in parts:
            if part is None or str(part).strip() == "":
                continue
            name = str(part)
            counts[name] = counts.get(name, 0) + 1
            total_mentions += 1

    stats = [
        RepairPartStat(
            name=name,
            count=count,
            percentage=(count / total_mentions) * 100 if total_mentions > 0 else 0
        )
        for name, count in counts.items()
    ]
    stats.sort(key=lambda p: p.count, reverse=True)
    return stats[:limit]


def ticket_report_date(ticket: Dict[str, Any]) -> Optional[datetime]:
    """Invoice date when it parses, otherwise the creation date"""
    return parse_date_like(ticket.get("invoiceDate")) or parse_date_like(ticket.get("createdAt"))


def aggregate_revenue_by_day(tickets: Iterable[Dict[str, Any]]) -> List[RevenueByDay]:
    """Bucket ticket revenue by calendar day, ascending, with undated tickets last"""
    days: Dict[str, RevenueByDay] = {}

    for ticket in tickets:
        moment = ticket_report_date(ticket)
        if moment is None:
            logger.warning(f"[Analytics] Ticket {_ticket_label(ticket)} has no usable date, bucketed as {UNDATED_DAY}")
            day = UNDATED_DAY
        else:
            day = format_day(moment)
        bucket = days.get(day)
        if bucket is None:
            bucket = RevenueByDay(date=day)
            days[day] = bucket
        bucket.revenue += to_number(ticket.get("totalAmount"))
        bucket.ticket_count += 1

    return sorted(days.values(), key=lambda d: (d.date == UNDATED_DAY, d.date))


# ============== Report ==============

def build_analytics_report(
    tickets: List[Dict[str, Any]],
    filters: Optional[AnalyticsFilter] = None
) -> AnalyticsReport:
    """
    Reduce already-filtered tickets into the analytics report.

    Args:
        tickets: Ticket documents matching the report filter
        filters: Filter echoed back in the report

    Returns:
        AnalyticsReport with every field populated
    """
    filters = filters or AnalyticsFilter()

    total_revenue = 0.0
    for ticket in tickets:
        amount = ticket.get("totalAmount")
        if amount is not None and to_number(amount, default=None) is None:
            logger.debug(f"[Analytics] Non-numeric totalAmount {amount!r} on ticket {_ticket_label(ticket)}")
        total_revenue += to_number(amount)

    total_tickets = len(tickets)
    average_ticket_value = total_revenue / total_tickets if total_tickets > 0 else 0

    return AnalyticsReport(
        total_revenue=total_revenue,
        total_tickets=total_tickets,
        average_ticket_value=average_ticket_value,
        service_categories=aggregate_service_categories(tickets),
        revenue_by_day=aggregate_revenue_by_day(tickets),
        top_services=aggregate_top_services(tickets),
        common_repair_parts=aggregate_repair_parts(tickets),
        period=filters.period,
        filters=filters,
    )


async def get_analytics_data(
    store,
    filters: AnalyticsFilter,
    now: Optional[datetime] = None
) -> AnalyticsReport:
    """
    Fetch tickets matching the filter from the store and build the report.

    Storage errors propagate to the caller; no partial report is returned.
    """
    query = build_ticket_query(
        period=filters.period,
        category=filters.category,
        start_date=filters.start_date,
        end_date=filters.end_date,
        now=now,
    )

    tickets = await store.find(query)
    logger.info(
        f"[Analytics] period={filters.period} category={filters.category} "
        f"range={filters.start_date}..{filters.end_date} tickets={len(tickets)}"
    )

    return build_analytics_report(tickets, filters)
