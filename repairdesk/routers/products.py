"""
Product Endpoints

Stocked products sold per piece or per meter.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query

from repairdesk import config
from repairdesk.models.schemas import ProductIn
from repairdesk.services.inventory import build_product_document, build_product_update, has_price
from repairdesk.services.search import paginate
from repairdesk.services.ticket_store import (
    StorageError,
    TicketStore,
    get_ticket_store,
    serialize_document,
)

logger = logging.getLogger(__name__)

router = APIRouter()

COLLECTION = config.PRODUCTS_COLLECTION

MISSING_PRICE = "Provide a price for at least one pricing mode (pricePerPiece or pricePerMeter)"


@router.get("")
async def list_products(
    page: int = Query(1, description="Page number (from 1)"),
    limit: int = Query(10, description="Products per page (max 50)"),
    store: TicketStore = Depends(get_ticket_store)
):
    """List products, newest first, with the total count"""
    try:
        total = await store.count_documents(COLLECTION)
        pagination, skip = paginate(page, limit, total)
        items = await store.find_documents(COLLECTION, skip=skip, limit=pagination.limit)
    except StorageError as e:
        logger.error(f"[Products] List failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch products")

    return {"items": serialize_document(items), "total": total}


@router.post("", status_code=201)
async def create_product(product: ProductIn, store: TicketStore = Depends(get_ticket_store)):
    """
    Create a product

    - **pricePerPiece** or **pricePerMeter** must be positive
    """
    if not has_price(product):
        raise HTTPException(status_code=400, detail=MISSING_PRICE)

    try:
        created = await store.insert_document(COLLECTION, build_product_document(product))
    except StorageError as e:
        logger.error(f"[Products] Create failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to create product")

    logger.info(f"[Products] Created {created['_id']} ({product.name_en or product.name})")
    return serialize_document(created)


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    product: ProductIn,
    store: TicketStore = Depends(get_ticket_store)
):
    """Replace a product's fields"""
    if not has_price(product):
        raise HTTPException(status_code=400, detail=MISSING_PRICE)

    try:
        updated = await store.update_document(COLLECTION, product_id, build_product_update(product))
    except StorageError as e:
        logger.error(f"[Products] Update {product_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to update product")

    if not updated:
        raise HTTPException(status_code=404, detail="Product not found")
    return serialize_document(updated)


@router.delete("/{product_id}")
async def delete_product(product_id: str, store: TicketStore = Depends(get_ticket_store)):
    try:
        deleted = await store.delete_document(COLLECTION, product_id)
    except StorageError as e:
        logger.error(f"[Products] Delete {product_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete product")

    if not deleted:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True}
