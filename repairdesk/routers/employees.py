"""
Employee Endpoints

Staff records and monthly payroll records.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from repairdesk import config
from repairdesk.models.schemas import EmployeeIn, MonthlyRecordIn
from repairdesk.services.employees import (
    build_employee_document,
    build_employee_update,
    remove_monthly_record,
    replace_monthly_record,
    upsert_monthly_record,
)
from repairdesk.services.ticket_store import (
    StorageError,
    TicketStore,
    get_ticket_store,
    serialize_document,
)

logger = logging.getLogger(__name__)

router = APIRouter()

COLLECTION = config.EMPLOYEES_COLLECTION


async def _load_employee(store: TicketStore, employee_id: str) -> dict:
    employee = await store.get_document(COLLECTION, employee_id)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


async def _save_employee(store: TicketStore, employee_id: str, fields: dict) -> dict:
    updated = await store.update_document(COLLECTION, employee_id, fields)
    if not updated:
        raise HTTPException(status_code=404, detail="Employee not found")
    return updated


@router.get("")
@router.get("/all")
async def list_employees(store: TicketStore = Depends(get_ticket_store)):
    """List employees, newest first"""
    try:
        employees = await store.find_documents(COLLECTION)
    except StorageError as e:
        logger.error(f"[Employees] List failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch employees")
    return serialize_document(employees)


@router.post("", status_code=201)
async def create_employee(employee: EmployeeIn, store: TicketStore = Depends(get_ticket_store)):
    """Add an employee"""
    try:
        created = await store.insert_document(COLLECTION, build_employee_document(employee))
    except StorageError as e:
        logger.error(f"[Employees] Create failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to add employee")

    logger.info(f"[Employees] Added {employee.name} ({created['_id']})")
    return serialize_document(created)


@router.put("/{employee_id}")
async def update_employee(
    employee_id: str,
    employee: EmployeeIn,
    store: TicketStore = Depends(get_ticket_store)
):
    """Replace name, job title, salary and default attendance"""
    try:
        updated = await _save_employee(store, employee_id, build_employee_update(employee))
    except StorageError as e:
        logger.error(f"[Employees] Update {employee_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to update employee")
    return serialize_document(updated)


@router.delete("/{employee_id}")
async def delete_employee(employee_id: str, store: TicketStore = Depends(get_ticket_store)):
    """Delete an employee and their monthly records"""
    try:
        deleted = await store.delete_document(COLLECTION, employee_id)
    except StorageError as e:
        logger.error(f"[Employees] Delete {employee_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete employee")

    if not deleted:
        raise HTTPException(status_code=404, detail="Employee not found")

    logger.info(f"[Employees] Deleted {employee_id}")
    return {"success": True}


# ============== Monthly records ==============

@router.post("/{employee_id}/monthly-record")
async def save_monthly_record(
    employee_id: str,
    record: MonthlyRecordIn,
    store: TicketStore = Depends(get_ticket_store)
):
    """
    Add or replace the record for a month

    finalSalary = salary / 26 * workingDays
    """
    try:
        employee = await _load_employee(store, employee_id)
        updated = await _save_employee(store, employee_id, upsert_monthly_record(employee, record))
    except StorageError as e:
        logger.error(f"[Employees] Monthly record for {employee_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to add monthly record")
    return serialize_document(updated)


@router.put("/{employee_id}/monthly-record")
async def update_monthly_record(
    employee_id: str,
    record: MonthlyRecordIn,
    store: TicketStore = Depends(get_ticket_store)
):
    """Replace an existing month's record"""
    try:
        employee = await _load_employee(store, employee_id)
        fields = replace_monthly_record(employee, record)
        if fields is None:
            raise HTTPException(status_code=404, detail="Monthly record not found")
        updated = await _save_employee(store, employee_id, fields)
    except StorageError as e:
        logger.error(f"[Employees] Monthly record update for {employee_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to update monthly record")
    return serialize_document(updated)


@router.delete("/{employee_id}/monthly-record")
async def delete_monthly_record(
    employee_id: str,
    year: Optional[int] = Query(None, description="Record year"),
    month: Optional[int] = Query(None, description="Record month (1-12)"),
    store: TicketStore = Depends(get_ticket_store)
):
    """Remove the record for a month"""
    if not year or not month:
        raise HTTPException(status_code=400, detail="Missing year or month parameter")

    try:
        employee = await _load_employee(store, employee_id)
        updated = await _save_employee(store, employee_id, remove_monthly_record(employee, year, month))
    except StorageError as e:
        logger.error(f"[Employees] Monthly record delete for {employee_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete monthly record")
    return serialize_document(updated)
