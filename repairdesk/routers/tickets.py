"""
Ticket Endpoints

CRUD operations for tickets (work orders), their service line items and
payments, plus the sales listing.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from repairdesk.models.schemas import PaymentIn, TicketCreate, TicketServiceIn, TicketUpdate
from repairdesk.services.date_range import build_ticket_query
from repairdesk.services.ticket_store import (
    StorageError,
    TicketStore,
    get_ticket_store,
    serialize_document,
)
from repairdesk.services.tickets import (
    add_payment,
    add_service_line,
    build_ticket_document,
    build_ticket_update,
    remove_service_line,
    with_balance,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _load_ticket(store: TicketStore, ticket_id: str) -> dict:
    ticket = await store.get(ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


async def _save_ticket(store: TicketStore, ticket_id: str, fields: dict) -> dict:
    updated = await store.update(ticket_id, fields)
    if not updated:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return updated


@router.get("")
async def list_tickets(
    sales: bool = Query(False, description="Sales listing with period filter and balances"),
    period: str = Query("all", description="week, month, quarter, year, all or custom"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    store: TicketStore = Depends(get_ticket_store)
):
    """
    List tickets, newest first

    With **sales=true** tickets are filtered by invoice date (creation date
    when never invoiced) and include totalPaid and remaining.
    """
    try:
        if not sales:
            tickets = await store.find()
            return serialize_document(tickets)

        query = build_ticket_query(period=period, start_date=start_date, end_date=end_date)
        tickets = await store.find(query)
        return serialize_document([with_balance(t) for t in tickets])
    except StorageError as e:
        logger.error(f"[Tickets] List failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch tickets")


@router.post("", status_code=201)
async def create_ticket(
    ticket: TicketCreate,
    store: TicketStore = Depends(get_ticket_store)
):
    """
    Create a new ticket

    - **ticket**: Plate number, customer name and phone are required
    """
    try:
        created = await store.insert(build_ticket_document(ticket))
    except StorageError as e:
        logger.error(f"[Tickets] Create failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to create ticket")

    logger.info(f"[Tickets] Created ticket {created['_id']} for {ticket.plate_number}")
    return serialize_document(created)


@router.get("/{ticket_id}")
async def get_ticket(ticket_id: str, store: TicketStore = Depends(get_ticket_store)):
    """Get ticket details"""
    try:
        ticket = await _load_ticket(store, ticket_id)
    except StorageError as e:
        logger.error(f"[Tickets] Fetch {ticket_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch ticket")
    return serialize_document(ticket)


@router.put("/{ticket_id}")
async def update_ticket(
    ticket_id: str,
    update: TicketUpdate,
    store: TicketStore = Depends(get_ticket_store)
):
    """
    Update ticket fields

    Only fields present in the body change. Replacing services recomputes totalAmount.
    """
    try:
        updated = await _save_ticket(store, ticket_id, build_ticket_update(update))
    except StorageError as e:
        logger.error(f"[Tickets] Update {ticket_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to update ticket")
    return serialize_document(updated)


@router.delete("/{ticket_id}")
async def delete_ticket(ticket_id: str, store: TicketStore = Depends(get_ticket_store)):
    """Delete a ticket permanently"""
    try:
        deleted = await store.delete(ticket_id)
    except StorageError as e:
        logger.error(f"[Tickets] Delete {ticket_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete ticket")

    if not deleted:
        raise HTTPException(status_code=404, detail="Ticket not found")

    logger.info(f"[Tickets] Deleted ticket {ticket_id}")
    return {"success": True}


# ============== Service Line Items ==============

@router.get("/{ticket_id}/services")
async def get_ticket_services(ticket_id: str, store: TicketStore = Depends(get_ticket_store)):
    """Get the service line items of a ticket"""
    try:
        ticket = await _load_ticket(store, ticket_id)
    except StorageError as e:
        logger.error(f"[Tickets] Fetch services of {ticket_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve services")
    return serialize_document({"services": ticket.get("services") or []})


@router.post("/{ticket_id}/services")
async def add_ticket_service(
    ticket_id: str,
    service: TicketServiceIn,
    store: TicketStore = Depends(get_ticket_store)
):
    """
    Add a service line item

    finalPrice is derived from price and discount when not sent; the
    ticket total grows by finalPrice.
    """
    try:
        ticket = await _load_ticket(store, ticket_id)
        updated = await _save_ticket(store, ticket_id, add_service_line(ticket, service))
    except StorageError as e:
        logger.error(f"[Tickets] Add service to {ticket_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to add service")
    return serialize_document(updated)


@router.delete("/{ticket_id}/services/{service_id}")
async def remove_ticket_service(
    ticket_id: str,
    service_id: str,
    added_at: Optional[str] = Query(None, alias="addedAt", description="Pick one of several identical services"),
    store: TicketStore = Depends(get_ticket_store)
):
    """
    Remove one service line item

    - **service_id**: serviceId or serviceName of the line item
    - **addedAt**: When set, only the line item added at that time is removed
    """
    if not service_id or service_id == "undefined":
        raise HTTPException(status_code=400, detail="Service ID is required")

    try:
        ticket = await _load_ticket(store, ticket_id)
        removal = remove_service_line(ticket, service_id, added_at)
        if removal is None:
            raise HTTPException(status_code=404, detail="Service not found")

        _, fields = removal
        updated = await _save_ticket(store, ticket_id, fields)
    except StorageError as e:
        logger.error(f"[Tickets] Remove service from {ticket_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to remove service")
    return serialize_document(updated)


# ============== Payments ==============

@router.post("/{ticket_id}/payments")
async def record_payment(
    ticket_id: str,
    payment: PaymentIn,
    store: TicketStore = Depends(get_ticket_store)
):
    """
    Record a payment against a ticket

    Returns the ticket with totalPaid and remaining.
    """
    try:
        ticket = await _load_ticket(store, ticket_id)
        updated = await _save_ticket(store, ticket_id, add_payment(ticket, payment))
    except StorageError as e:
        logger.error(f"[Tickets] Payment on {ticket_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to record payment")

    logger.info(f"[Tickets] Recorded {payment.amount} ({payment.payment_method}) on ticket {ticket_id}")
    return serialize_document(with_balance(updated))
