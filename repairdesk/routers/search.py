"""
Search Endpoints

Paginated ticket search.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from repairdesk.services.search import TicketSearch, paginate
from repairdesk.services.ticket_store import (
    StorageError,
    TicketStore,
    get_ticket_store,
    serialize_document,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def search_tickets(
    q: Optional[str] = Query(None, description="Plate, name, phone, email or ticket ID"),
    page: int = Query(1, description="Page number (from 1)"),
    limit: int = Query(10, description="Results per page (max 50)"),
    store: TicketStore = Depends(get_ticket_store)
):
    """
    Search tickets

    - **q**: Search term
    - **page**: Page number
    - **limit**: Results per page
    """
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search query is required")

    search = TicketSearch(term=q.strip())

    try:
        total_count = await store.count(search)
        pagination, skip = paginate(page, limit, total_count)
        tickets = await store.find_page(search, skip=skip, limit=pagination.limit)
    except StorageError as e:
        logger.error(f"[Search] Query {search.term!r} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to search tickets")

    return {
        "tickets": serialize_document(tickets),
        "pagination": pagination.model_dump(by_alias=True),
        "query": search.term
    }
