"""
Employee Service

Staff records and monthly payroll.

Each employee carries a list of monthly records, at most one per
(year, month). The final salary for a month is the daily rate (base salary
over 26 working days) times the days worked, rounded to 3 decimals (fils).
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from repairdesk.models.schemas import EmployeeIn, MonthlyRecordIn
from repairdesk.services.analytics import to_number
from repairdesk.services.dates import localize, local_now

logger = logging.getLogger(__name__)

PAYROLL_DAYS_PER_MONTH = 26


def _stamp(now: Optional[datetime]) -> datetime:
    return localize(now) if now is not None else local_now()


def compute_final_salary(salary: Any, working_days: Any) -> float:
    daily_rate = to_number(salary) / PAYROLL_DAYS_PER_MONTH
    return round(daily_rate * to_number(working_days), 3)


def build_employee_document(employee: EmployeeIn, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = _stamp(now)
    document = employee.model_dump(by_alias=True, mode="python")
    document["monthlyRecords"] = []
    document["createdAt"] = now
    document["updatedAt"] = now
    return document


def build_employee_update(employee: EmployeeIn, now: Optional[datetime] = None) -> Dict[str, Any]:
    """$set fields replacing the base record; monthly records are kept"""
    fields = employee.model_dump(by_alias=True, mode="python")
    fields["updatedAt"] = _stamp(now)
    return fields


def _monthly_records(employee: Dict[str, Any]) -> List[Dict[str, Any]]:
    records = employee.get("monthlyRecords")
    if not isinstance(records, list):
        return []
    return [r for r in records if isinstance(r, dict)]


def _is_month(record: Dict[str, Any], year: int, month: int) -> bool:
    return to_number(record.get("year")) == year and to_number(record.get("month")) == month


def _record_entry(employee: Dict[str, Any], record: MonthlyRecordIn) -> Dict[str, Any]:
    return {
        "year": record.year,
        "month": record.month,
        "workingDays": record.working_days,
        "absenceDays": record.absence_days,
        "finalSalary": compute_final_salary(employee.get("salary"), record.working_days),
    }


def upsert_monthly_record(
    employee: Dict[str, Any],
    record: MonthlyRecordIn,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """$set fields adding the month's record, or replacing it when it exists"""
    records = _monthly_records(employee)
    entry = _record_entry(employee, record)
    for index, existing in enumerate(records):
        if _is_month(existing, record.year, record.month):
            records[index] = entry
            break
    else:
        records.append(entry)
    return {"monthlyRecords": records, "updatedAt": _stamp(now)}


def replace_monthly_record(
    employee: Dict[str, Any],
    record: MonthlyRecordIn,
    now: Optional[datetime] = None
) -> Optional[Dict[str, Any]]:
    """$set fields replacing an existing month's record, None when there is none"""
    records = _monthly_records(employee)
    for index, existing in enumerate(records):
        if _is_month(existing, record.year, record.month):
            records[index] = _record_entry(employee, record)
            return {"monthlyRecords": records, "updatedAt": _stamp(now)}
    return None


def remove_monthly_record(
    employee: Dict[str, Any],
    year: int,
    month: int,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """$set fields dropping the month's record; removing a missing month is a no-op"""
    records = [r for r in _monthly_records(employee) if not _is_month(r, year, month)]
    return {"monthlyRecords": records, "updatedAt": _stamp(now)}
