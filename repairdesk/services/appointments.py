"""
Appointment Service

Booking requests made by customers ahead of a visit. Appointments are listed
by creation time and move through pending -> confirmed -> completed, or are
canceled.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from repairdesk.models.enums import AppointmentStatus
from repairdesk.models.schemas import AppointmentCreate
from repairdesk.services.dates import localize, local_now

SORT_LATEST = "latest"
SORT_EARLIEST = "earliest"


def appointment_sort(sort_by: Optional[str]):
    """createdAt sort for a sortBy value; anything but "earliest" is newest first"""
    direction = 1 if (sort_by or "").strip().lower() == SORT_EARLIEST else -1
    return ("createdAt", direction)


def build_appointment_document(appointment: AppointmentCreate, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = localize(now) if now is not None else local_now()
    document = appointment.model_dump(by_alias=True, exclude_none=True, mode="python")
    document["status"] = appointment.status.value
    document["createdAt"] = now
    document["updatedAt"] = now
    return document


def build_status_update(status: AppointmentStatus, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "status": status.value,
        "updatedAt": localize(now) if now is not None else local_now(),
    }
