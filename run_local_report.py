#!/usr/bin/env python3
"""
Local Report Script
Builds the sales & analytics report straight from the database, without the API.

Usage:
    python run_local_report.py [period] [category]
    python run_local_report.py custom all 2024-01-01 2024-01-31
"""

import asyncio
import sys
from dotenv import load_dotenv

# Load .env file
load_dotenv()

from repairdesk.models.analytics import AnalyticsFilter
from repairdesk.services.analytics import get_analytics_data
from repairdesk.services.ticket_store import get_ticket_store


async def run(filters: AnalyticsFilter):
    store = get_ticket_store()
    await store.connect()
    try:
        return await get_analytics_data(store, filters)
    finally:
        await store.close()


def main():
    args = sys.argv[1:]
    filters = AnalyticsFilter(
        period=args[0] if len(args) > 0 else "month",
        category=args[1] if len(args) > 1 else "all",
        start_date=args[2] if len(args) > 2 else None,
        end_date=args[3] if len(args) > 3 else None,
    )

    print("=" * 60)
    print("LOCAL ANALYTICS REPORT")
    print("=" * 60)
    print(f"\nPeriod: {filters.period}  Category: {filters.category}")
    if filters.start_date and filters.end_date:
        print(f"Date range: {filters.start_date} to {filters.end_date}")

    report = asyncio.run(run(filters))

    print("\n" + "-" * 40)
    print(f"Tickets:        {report.total_tickets}")
    print(f"Revenue:        {report.total_revenue:.3f}")
    print(f"Average ticket: {report.average_ticket_value:.3f}")

    print("\n" + "-" * 40)
    print("Categories:")
    for category in report.service_categories:
        print(f"  {category.name:<24} {category.count:>5}  {category.revenue:>12.3f}")

    print("\n" + "-" * 40)
    print("Top services:")
    for service in report.top_services:
        print(f"  {service.service_name:<32} {service.count:>5}  {service.revenue:>12.3f}")

    print("\n" + "-" * 40)
    print("Common repair parts:")
    for part in report.common_repair_parts:
        print(f"  {part.name:<24} {part.count:>5}  {part.percentage:>6.1f}%")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
