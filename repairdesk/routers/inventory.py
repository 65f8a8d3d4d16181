"""
Inventory Endpoints

Purchase expenses and the editable service catalog.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from repairdesk import config
from repairdesk.models.schemas import (
    CatalogServiceIn,
    CatalogServiceUpdate,
    ExpenseCreate,
    ExpenseUpdate,
)
from repairdesk.services.inventory import (
    CATALOG_SORT,
    build_catalog_service,
    build_catalog_service_update,
    build_expense_document,
    build_expense_update,
)
from repairdesk.services.ticket_store import (
    StorageError,
    TicketStore,
    get_ticket_store,
    serialize_document,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============== Expenses ==============

@router.get("/expenses")
async def list_expenses(store: TicketStore = Depends(get_ticket_store)):
    """List expenses in stored order"""
    try:
        expenses = await store.find_documents(config.EXPENSES_COLLECTION, sort=None)
    except StorageError as e:
        logger.error(f"[Inventory] Expense list failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch expenses")
    return serialize_document(expenses)


@router.post("/expenses", status_code=201)
async def create_expense(expense: ExpenseCreate, store: TicketStore = Depends(get_ticket_store)):
    """
    Record an expense

    - **name**, **quantity**, **cost** and **category** are required
    """
    try:
        created = await store.insert_document(config.EXPENSES_COLLECTION, build_expense_document(expense))
    except StorageError as e:
        logger.error(f"[Inventory] Expense create failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to create expense")

    logger.info(f"[Inventory] Expense {created['_id']}: {expense.name} x{expense.quantity}")
    return {"id": str(created["_id"])}


@router.put("/expenses/{expense_id}")
async def update_expense(
    expense_id: str,
    expense: ExpenseUpdate,
    store: TicketStore = Depends(get_ticket_store)
):
    """Update name, quantity, cost and note"""
    try:
        updated = await store.update_document(config.EXPENSES_COLLECTION, expense_id, build_expense_update(expense))
    except StorageError as e:
        logger.error(f"[Inventory] Expense update {expense_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to update expense")

    if not updated:
        raise HTTPException(status_code=404, detail="Expense not found")
    return {"success": True}


@router.delete("/expenses/{expense_id}")
async def delete_expense(expense_id: str, store: TicketStore = Depends(get_ticket_store)):
    try:
        deleted = await store.delete_document(config.EXPENSES_COLLECTION, expense_id)
    except StorageError as e:
        logger.error(f"[Inventory] Expense delete {expense_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete expense")

    if not deleted:
        raise HTTPException(status_code=404, detail="Expense not found")
    return {"success": True}


# ============== Catalog services ==============

@router.get("/services")
async def list_catalog_services(store: TicketStore = Depends(get_ticket_store)):
    """Stored catalog services by category, then English name"""
    try:
        services = await store.find_documents(config.SERVICES_COLLECTION, sort=CATALOG_SORT)
    except StorageError as e:
        logger.error(f"[Inventory] Service list failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch services")
    return serialize_document(services)


@router.post("/services", status_code=201)
async def create_catalog_service(service: CatalogServiceIn, store: TicketStore = Depends(get_ticket_store)):
    """Add a service to the catalog"""
    try:
        created = await store.insert_document(config.SERVICES_COLLECTION, build_catalog_service(service))
    except StorageError as e:
        logger.error(f"[Inventory] Service create failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to create service")

    logger.info(f"[Inventory] Catalog service {created['_id']}: {service.name_en}")
    return serialize_document(created)


@router.patch("/services/{service_id}")
async def update_catalog_service(
    service_id: str,
    service: CatalogServiceUpdate,
    store: TicketStore = Depends(get_ticket_store)
):
    """Update the fields sent"""
    try:
        updated = await store.update_document(
            config.SERVICES_COLLECTION, service_id, build_catalog_service_update(service)
        )
    except StorageError as e:
        logger.error(f"[Inventory] Service update {service_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to update service")

    if not updated:
        raise HTTPException(status_code=404, detail="Service not found")
    return serialize_document(updated)


@router.delete("/services/{service_id}")
async def delete_catalog_service(service_id: str, store: TicketStore = Depends(get_ticket_store)):
    try:
        deleted = await store.delete_document(config.SERVICES_COLLECTION, service_id)
    except StorageError as e:
        logger.error(f"[Inventory] Service delete {service_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete service")

    if not deleted:
        raise HTTPException(status_code=404, detail="Service not found")
    return {"success": True}
