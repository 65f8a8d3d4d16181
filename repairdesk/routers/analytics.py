"""
Analytics Endpoints

Sales & analytics report over tickets:
- Revenue, ticket count, average ticket value
- Revenue by service category and top services
- Revenue by day
- Most common repair parts
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from repairdesk.models.analytics import AnalyticsFilter, AnalyticsReport
from repairdesk.services.analytics import get_analytics_data
from repairdesk.services.ticket_store import StorageError, TicketStore, get_ticket_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=AnalyticsReport)
async def get_analytics(
    period: str = Query("all", description="week, month, quarter, year, all or custom"),
    category: str = Query("all", description="Service category or 'all'"),
    start_date: Optional[str] = Query(None, alias="startDate", description="Custom start (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, alias="endDate", description="Custom end (YYYY-MM-DD)"),
    store: TicketStore = Depends(get_ticket_store)
):
    """
    Get the sales & analytics report

    Tickets are placed in time by invoiceDate, or createdAt when they were
    never invoiced. Malformed custom dates report on all tickets.

    - **period**: Relative period, or custom with startDate/endDate
    - **category**: Only tickets with at least one service in this category
    """
    filters = AnalyticsFilter(
        period=period,
        category=category,
        start_date=start_date or None,
        end_date=end_date or None
    )

    try:
        return await get_analytics_data(store, filters)
    except StorageError as e:
        logger.error(f"[Analytics] Report failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate analytics")
