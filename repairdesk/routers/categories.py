"""
Product Category Endpoints
"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from repairdesk import config
from repairdesk.models.schemas import CategoryIn
from repairdesk.services.inventory import category_view
from repairdesk.services.ticket_store import StorageError, TicketStore, get_ticket_store

logger = logging.getLogger(__name__)

router = APIRouter()

COLLECTION = config.CATEGORIES_COLLECTION


def _required_name(category: CategoryIn) -> str:
    name = (category.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")
    return name


@router.get("")
async def list_categories(store: TicketStore = Depends(get_ticket_store)):
    """All categories as {_id, name}"""
    try:
        categories = await store.find_documents(COLLECTION, sort=None)
    except StorageError as e:
        logger.error(f"[Categories] List failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch categories")
    return [category_view(c) for c in categories]


@router.post("", status_code=201)
async def create_category(category: CategoryIn, store: TicketStore = Depends(get_ticket_store)):
    name = _required_name(category)
    try:
        created = await store.insert_document(COLLECTION, {"name": name})
    except StorageError as e:
        logger.error(f"[Categories] Create failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to add category")
    return category_view(created)


@router.put("/{category_id}")
async def update_category(
    category_id: str,
    category: CategoryIn,
    store: TicketStore = Depends(get_ticket_store)
):
    name = _required_name(category)
    try:
        updated = await store.update_document(COLLECTION, category_id, {"name": name})
    except StorageError as e:
        logger.error(f"[Categories] Update {category_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to update category")

    if not updated:
        raise HTTPException(status_code=404, detail="Category not found")
    return category_view(updated)


@router.delete("/{category_id}")
async def delete_category(category_id: str, store: TicketStore = Depends(get_ticket_store)):
    try:
        deleted = await store.delete_document(COLLECTION, category_id)
    except StorageError as e:
        logger.error(f"[Categories] Delete {category_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete category")

    if not deleted:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True}
