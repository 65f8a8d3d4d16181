"""
Ticket Service

Ticket document construction and money rules:
- A line item's finalPrice is its price after discount (never below 0)
- A ticket's totalAmount is the sum of finalPrice (price when no finalPrice)
- Remaining balance is totalAmount minus payments, never below 0

Timestamps are written as aware local datetimes (see dates.localize).
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from repairdesk.models.enums import DiscountType
from repairdesk.models.schemas import PaymentIn, TicketCreate, TicketServiceIn, TicketUpdate
from repairdesk.services.analytics import to_number
from repairdesk.services.dates import localize, local_now, parse_date_like

logger = logging.getLogger(__name__)


def compute_final_price(
    price: float,
    discount_type: Optional[str] = None,
    discount_value: Optional[float] = None
) -> float:
    """Apply a percentage or fixed discount to a price"""
    price = to_number(price)
    value = to_number(discount_value)
    if not discount_type or value <= 0:
        return price

    if discount_type == DiscountType.PERCENTAGE:
        discounted = price - price * min(value, 100) / 100
    elif discount_type == DiscountType.FIXED:
        discounted = price - value
    else:
        logger.debug(f"[Tickets] Unknown discount type {discount_type!r}, ignoring")
        return price
    return max(0.0, round(discounted, 3))


def line_item_amount(service: Dict[str, Any]) -> float:
    """Amount a stored line item contributes to the ticket total"""
    if service.get("finalPrice") is not None:
        return to_number(service.get("finalPrice"))
    return to_number(service.get("price"))


def compute_total_amount(services: List[Dict[str, Any]]) -> float:
    return sum(line_item_amount(s) for s in services if isinstance(s, dict))


def total_paid(ticket: Dict[str, Any]) -> float:
    payments = ticket.get("payments")
    if not isinstance(payments, list):
        return 0.0
    return sum(to_number(p.get("amount")) for p in payments if isinstance(p, dict))


def with_balance(ticket: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of the ticket with totalPaid and remaining added"""
    paid = total_paid(ticket)
    result = dict(ticket)
    result["totalPaid"] = paid
    result["remaining"] = max(0.0, to_number(ticket.get("totalAmount")) - paid)
    return result


def build_service_line(service: TicketServiceIn, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Stored form of a line item, with finalPrice and addedAt filled in"""
    line = service.model_dump(by_alias=True, exclude_none=True, mode="python")
    if service.discount_type is not None:
        line["discountType"] = service.discount_type.value
    if service.final_price is None:
        line["finalPrice"] = compute_final_price(
            service.price, service.discount_type, service.discount_value
        )
    line["addedAt"] = localize(service.added_at or now or local_now())
    return line


def build_payment(payment: PaymentIn, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "amount": payment.amount,
        "date": localize(payment.date or now or local_now()),
        "paymentMethod": payment.payment_method,
    }


def _stamp(now: Optional[datetime]) -> datetime:
    return localize(now) if now is not None else local_now()


def build_ticket_document(ticket: TicketCreate, now: Optional[datetime] = None) -> Dict[str, Any]:
    """New ticket document with timestamps and a reconciled totalAmount"""
    now = _stamp(now)
    document = ticket.model_dump(
        by_alias=True,
        exclude={"services", "payments"},
        mode="python"
    )
    if isinstance(document.get("invoiceDate"), datetime):
        document["invoiceDate"] = localize(document["invoiceDate"])
    document["services"] = [build_service_line(s, now) for s in ticket.services]
    document["payments"] = [build_payment(p, now) for p in ticket.payments]
    document["totalAmount"] = compute_total_amount(document["services"])
    document["createdAt"] = now
    document["updatedAt"] = now
    return document


def build_ticket_update(update: TicketUpdate, now: Optional[datetime] = None) -> Dict[str, Any]:
    """$set fields for a partial update; replacing services recomputes totalAmount"""
    now = _stamp(now)
    fields = update.model_dump(by_alias=True, exclude_unset=True, exclude={"services"}, mode="python")
    if isinstance(fields.get("invoiceDate"), datetime):
        fields["invoiceDate"] = localize(fields["invoiceDate"])
    if update.services is not None:
        fields["services"] = [build_service_line(s, now) for s in update.services]
        fields["totalAmount"] = compute_total_amount(fields["services"])
    fields["updatedAt"] = now
    return fields


def add_service_line(
    ticket: Dict[str, Any],
    service: TicketServiceIn,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """$set fields appending a line item and growing totalAmount"""
    line = build_service_line(service, now)
    services = list(ticket.get("services") or [])
    services.append(line)
    return {
        "services": services,
        "totalAmount": to_number(ticket.get("totalAmount")) + line_item_amount(line),
        "updatedAt": _stamp(now),
    }


def _same_added_at(stored: Any, requested: str) -> bool:
    if isinstance(stored, datetime):
        moment = parse_date_like(stored)
        return moment is not None and moment == parse_date_like(requested)
    return str(stored) == requested


def remove_service_line(
    ticket: Dict[str, Any],
    identifier: str,
    added_at: Optional[str] = None,
    now: Optional[datetime] = None
) -> Optional[Tuple[Dict[str, Any], Dict[str, Any]]]:
    """
    Remove the first line item matching serviceId or serviceName.

    When added_at is given only the line item added at that moment matches,
    so one of several identical services can be removed.

    Returns:
        (removed line item, $set fields) or None when nothing matches
    """
    services = list(ticket.get("services") or [])
    for index, service in enumerate(services):
        if not isinstance(service, dict):
            continue
        if str(service.get("serviceId")) != identifier and service.get("serviceName") != identifier:
            continue
        if added_at and not _same_added_at(service.get("addedAt"), added_at):
            continue

        removed = services.pop(index)
        new_total = max(0.0, to_number(ticket.get("totalAmount")) - line_item_amount(removed))
        return removed, {
            "services": services,
            "totalAmount": new_total,
            "updatedAt": _stamp(now),
        }
    return None


def add_payment(
    ticket: Dict[str, Any],
    payment: PaymentIn,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """$set fields appending a payment"""
    payments = list(ticket.get("payments") or [])
    payments.append(build_payment(payment, now))
    return {"payments": payments, "updatedAt": _stamp(now)}
