"""
Service Catalog Endpoints
"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from repairdesk.services.catalog import resolve_catalog
from repairdesk.services.ticket_store import (
    StorageError,
    TicketStore,
    get_ticket_store,
    serialize_document,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_services(store: TicketStore = Depends(get_ticket_store)):
    """Get all services and service categories"""
    try:
        services, categories = await store.list_catalog()
    except StorageError as e:
        logger.error(f"[Catalog] Fetch failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch services")

    services, categories = resolve_catalog(services, categories)
    return serialize_document({
        "services": services,
        "serviceCategories": categories
    })
