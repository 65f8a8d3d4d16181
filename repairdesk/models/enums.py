"""
Shop Codes and Enums

Standardized constants for ticket, service and report values.
"""

from enum import Enum


class ServiceCategory(str, Enum):
    """Service line item categories"""
    PROTECTION = "protection"
    TINTING = "tinting"
    PAINTING = "painting"
    DETAILING = "detailing"
    REPAIR = "repair"
    POLISH = "polish"
    CUSTOMIZATION = "customization"

    @classmethod
    def to_label(cls, category: str) -> str:
        labels = {
            "protection": "Vehicle Protection",
            "tinting": "Window Tinting",
            "painting": "Painting",
            "detailing": "Detailing",
            "repair": "Repair",
            "polish": "Polishing",
            "customization": "Customization"
        }
        return labels.get(category, category or "Uncategorized")


class ReportPeriod(str, Enum):
    """Reporting periods accepted by analytics and sales listings"""
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    ALL = "all"
    CUSTOM = "custom"

    @classmethod
    def normalize(cls, period: str) -> "ReportPeriod":
        """Map a raw period string (including legacy UI aliases) to a ReportPeriod.

        Unknown values map to ALL.
        """
        aliases = {"7days": "week"}
        value = (period or "all").strip().lower()
        value = aliases.get(value, value)
        try:
            return cls(value)
        except ValueError:
            return cls.ALL


class DiscountType(str, Enum):
    """Line item discount types"""
    PERCENTAGE = "percentage"
    FIXED = "fixed"



class AppointmentStatus(str, Enum):
    """Booking request lifecycle"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELED = "canceled"

    @classmethod
    def normalize(cls, status):
        """Lowercase a raw status and accept the British "cancelled" spelling"""
        if not isinstance(status, str):
            return status
        value = status.strip().lower()
        return cls.CANCELED.value if value == "cancelled" else value
