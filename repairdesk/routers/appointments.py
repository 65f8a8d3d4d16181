"""
Appointment Endpoints

Booking requests listing and status management.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from repairdesk import config
from repairdesk.models.schemas import AppointmentCreate, AppointmentStatusUpdate
from repairdesk.services.appointments import (
    SORT_LATEST,
    appointment_sort,
    build_appointment_document,
    build_status_update,
)
from repairdesk.services.search import paginate
from repairdesk.services.ticket_store import (
    StorageError,
    TicketStore,
    get_ticket_store,
    serialize_document,
)

logger = logging.getLogger(__name__)

router = APIRouter()

COLLECTION = config.APPOINTMENTS_COLLECTION


@router.get("")
async def list_appointments(
    response: Response,
    page: int = Query(1, description="Page number (from 1)"),
    limit: int = Query(10, description="Appointments per page (max 50)"),
    sort_by: str = Query(SORT_LATEST, alias="sortBy", description="latest or earliest"),
    store: TicketStore = Depends(get_ticket_store)
):
    """
    List appointments by creation time

    - **page**: Page number
    - **limit**: Appointments per page
    - **sortBy**: latest (default) or earliest
    """
    response.headers.update(config.NO_CACHE_HEADERS)

    try:
        total_count = await store.count_documents(COLLECTION)
        pagination, skip = paginate(page, limit, total_count)
        appointments = await store.find_documents(
            COLLECTION,
            sort=appointment_sort(sort_by),
            skip=skip,
            limit=pagination.limit
        )
    except StorageError as e:
        logger.error(f"[Appointments] List failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch appointments", headers=config.NO_CACHE_HEADERS)

    return {
        "appointments": serialize_document(appointments),
        "pagination": pagination.model_dump(by_alias=True),
        "sortBy": sort_by
    }


@router.post("", status_code=201)
async def create_appointment(
    appointment: AppointmentCreate,
    store: TicketStore = Depends(get_ticket_store)
):
    """Record a booking request (status defaults to pending)"""
    try:
        created = await store.insert_document(COLLECTION, build_appointment_document(appointment))
    except StorageError as e:
        logger.error(f"[Appointments] Create failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to create appointment")

    logger.info(f"[Appointments] Created appointment {created['_id']} ({appointment.service.type})")
    return serialize_document(created)


@router.patch("/{appointment_id}")
async def update_appointment_status(
    appointment_id: str,
    update: AppointmentStatusUpdate,
    store: TicketStore = Depends(get_ticket_store)
):
    """
    Change an appointment's status

    - **status**: pending, confirmed, completed or canceled
    """
    try:
        updated = await store.update_document(COLLECTION, appointment_id, build_status_update(update.status))
    except StorageError as e:
        logger.error(f"[Appointments] Update {appointment_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to update appointment")

    if not updated:
        raise HTTPException(status_code=404, detail="Appointment not found")

    logger.info(f"[Appointments] {appointment_id} -> {update.status.value}")
    return {
        "success": True,
        "message": "Appointment updated successfully"
    }
