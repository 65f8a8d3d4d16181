"""
Customer Endpoints

Customer directory derived from tickets.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from typing import Optional

from repairdesk.config import NO_CACHE_HEADERS
from repairdesk.services.customers import group_customers
from repairdesk.services.date_range import build_ticket_query
from repairdesk.services.ticket_store import (
    StorageError,
    TicketStore,
    get_ticket_store,
    serialize_document,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_customers(
    response: Response,
    period: str = Query("all", description="week (or 7days), month, quarter, year, all or custom"),
    category: str = Query("all", description="Service category or 'all'"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    store: TicketStore = Depends(get_ticket_store)
):
    """
    List customers grouped from tickets

    Each customer has totalTickets, lastVisit and the vehicles (plate + ticket)
    seen on their tickets. Sorted by most recent visit.
    """
    response.headers.update(NO_CACHE_HEADERS)

    query = build_ticket_query(
        period=period,
        category=category,
        start_date=start_date,
        end_date=end_date
    )

    try:
        tickets = await store.find(query)
    except StorageError as e:
        logger.error(f"[Customers] List failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch customers", headers=NO_CACHE_HEADERS)

    return serialize_document(group_customers(tickets))
