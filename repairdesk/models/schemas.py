"""
Pydantic Models for Request/Response Validation
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime

from repairdesk.models.enums import AppointmentStatus, DiscountType


class CamelModel(BaseModel):
    """Base model accepting and emitting camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Service Line Models
class TicketServiceIn(CamelModel):
    """Service line item attached to a ticket"""
    service_id: str = Field(..., min_length=1, description="Catalog service ID")
    service_name: str = Field(..., min_length=1)
    category: str = Field(..., description="protection, tinting, painting, detailing, repair...")
    price: float = Field(..., ge=0)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(None, ge=0)
    final_price: Optional[float] = Field(None, ge=0, description="Price counted toward the ticket total")
    added_at: Optional[datetime] = None


# Payment Models
class PaymentIn(CamelModel):
    """Payment recorded against a ticket"""
    amount: float = Field(..., gt=0)
    date: Optional[datetime] = Field(None, description="Defaults to now")
    payment_method: str = Field(default="cash", min_length=1)


# Ticket Models
class TicketCreate(CamelModel):
    """Create ticket request"""
    plate_number: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    customer_email: Optional[str] = ""
    mileage: Optional[float] = None
    invoice_no: Optional[str] = None
    invoice_date: Optional[datetime] = None
    repair_parts: List[str] = []
    services: List[TicketServiceIn] = []
    payments: List[PaymentIn] = []
    notes: Optional[str] = None

    @field_validator("invoice_date", mode="before")
    @classmethod
    def blank_invoice_date(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class TicketUpdate(CamelModel):
    """Partial ticket update; only fields sent are changed"""
    plate_number: Optional[str] = Field(None, min_length=1)
    customer_name: Optional[str] = Field(None, min_length=1)
    customer_phone: Optional[str] = Field(None, min_length=1)
    customer_email: Optional[str] = None
    mileage: Optional[float] = None
    invoice_no: Optional[str] = None
    invoice_date: Optional[datetime] = None
    repair_parts: Optional[List[str]] = None
    services: Optional[List[TicketServiceIn]] = None
    notes: Optional[str] = None

    @field_validator("invoice_date", mode="before")
    @classmethod
    def blank_invoice_date(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


# Listing Models
class Pagination(CamelModel):
    """Search pagination block"""
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next: bool
    has_previous: bool


# Appointment Models
class AppointmentCustomer(CamelModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = ""
    phone: str = Field(..., min_length=1)
    email: Optional[str] = None


class AppointmentVehicle(CamelModel):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None


class AppointmentService(CamelModel):
    type: str = Field(..., min_length=1, description="Requested service")
    date: Optional[str] = Field(None, description="Preferred day (YYYY-MM-DD)")
    time: Optional[str] = Field(None, description="Preferred time (HH:MM)")
    notes: str = ""


class AppointmentCreate(CamelModel):
    """Booking request"""
    customer: AppointmentCustomer
    vehicle: Optional[AppointmentVehicle] = None
    service: AppointmentService
    status: AppointmentStatus = AppointmentStatus.PENDING

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return AppointmentStatus.normalize(value)


class AppointmentStatusUpdate(CamelModel):
    """Status change; extra fields sent by older clients are ignored"""
    status: AppointmentStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return AppointmentStatus.normalize(value)


# Employee Models
class EmployeeIn(CamelModel):
    """Create or replace an employee's base record"""
    name: str = Field(..., min_length=1)
    job_title: str = ""
    salary: float = Field(..., ge=0, description="Monthly base salary")
    absence_days: float = Field(0, ge=0)
    working_days: float = Field(30, ge=0)


class MonthlyRecordIn(CamelModel):
    """Attendance for one month; the final salary is computed"""
    year: int = Field(..., ge=1900)
    month: int = Field(..., ge=1, le=12)
    working_days: float = Field(..., ge=0)
    absence_days: float = Field(0, ge=0)


# Inventory Models
class ExpenseCreate(CamelModel):
    name: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    cost: float = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    note: Optional[str] = ""


class ExpenseUpdate(CamelModel):
    name: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    cost: float = Field(..., gt=0)
    note: Optional[str] = ""


class CatalogServiceIn(CamelModel):
    """Service offered by the shop, as stored in the catalog"""
    id: Optional[str] = Field(None, description="Slug, e.g. hood-protection")
    name_en: str = Field(..., min_length=1)
    name_ar: Optional[str] = None
    category: str = Field(..., min_length=1)
    price: Optional[float] = Field(None, ge=0, description="Omitted when quoted per job")
    estimated_hours: Optional[float] = Field(None, ge=0)


class CatalogServiceUpdate(CamelModel):
    """Partial catalog service update; only fields sent are changed"""
    id: Optional[str] = None
    name_en: Optional[str] = Field(None, min_length=1)
    name_ar: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    estimated_hours: Optional[float] = Field(None, ge=0)


class ProductIn(CamelModel):
    """Stocked product; at least one of the two prices must be positive"""
    name: Optional[str] = None
    name_en: Optional[str] = None
    name_ar: Optional[str] = None
    category: Optional[str] = None
    price_per_piece: Optional[float] = None
    price_per_meter: Optional[float] = None
    stock: Optional[float] = None
    description: Optional[str] = None


class CategoryIn(CamelModel):
    name: Optional[str] = None
