"""
Customer Directory

Customers are not stored separately; they are derived from tickets,
grouped by (customerName, customerPhone).
"""

from datetime import datetime
from typing import Any, Dict, List, Tuple

from repairdesk.services.dates import parse_date_like


def group_customers(tickets: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Group tickets into customer records.

    Returns:
        Customers sorted by lastVisit (latest createdAt) descending, each with
        customerName, customerPhone, customerEmail, totalTickets, lastVisit
        and vehicles [{plateNumber, ticketId}]
    """
    customers: Dict[Tuple[Any, Any], Dict[str, Any]] = {}

    for ticket in tickets:
        key = (ticket.get("customerName"), ticket.get("customerPhone"))
        customer = customers.get(key)
        if customer is None:
            customer = {
                "customerName": ticket.get("customerName"),
                "customerPhone": ticket.get("customerPhone"),
                "customerEmail": ticket.get("customerEmail"),
                "totalTickets": 0,
                "lastVisit": None,
                "vehicles": [],
            }
            customers[key] = customer

        customer["totalTickets"] += 1
        if not customer["customerEmail"] and ticket.get("customerEmail"):
            customer["customerEmail"] = ticket["customerEmail"]

        visit = parse_date_like(ticket.get("createdAt"))
        if visit is not None and (customer["lastVisit"] is None or visit > customer["lastVisit"]):
            customer["lastVisit"] = visit

        vehicle = {"plateNumber": ticket.get("plateNumber"), "ticketId": ticket.get("_id")}
        if vehicle not in customer["vehicles"]:
            customer["vehicles"].append(vehicle)

    return sorted(
        customers.values(),
        key=lambda c: c["lastVisit"] or datetime.min,
        reverse=True
    )
