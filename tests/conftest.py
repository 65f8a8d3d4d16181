"""
Pytest configuration: run the app against the in-memory ticket store.
"""
import os

# Must be set before repairdesk.config is imported
os.environ["TICKET_STORE"] = "memory"
os.environ["SHOP_TIMEZONE"] = ""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from main import app
from repairdesk.services.ticket_store import MemoryTicketStore, get_ticket_store


def make_ticket(**overrides):
    """Ticket document with sensible defaults"""
    ticket = {
        "plateNumber": "12345",
        "customerName": "Ahmad Saleh",
        "customerPhone": "55512345",
        "customerEmail": "",
        "invoiceDate": None,
        "createdAt": datetime(2024, 3, 1, 10, 0),
        "totalAmount": 0,
        "services": [],
        "payments": [],
        "repairParts": [],
    }
    ticket.update(overrides)
    return ticket


def make_service(service_id, price, category="protection", name=None, **overrides):
    service = {
        "serviceId": service_id,
        "serviceName": name or service_id.replace("-", " ").title(),
        "category": category,
        "price": price,
        "finalPrice": price,
    }
    service.update(overrides)
    return service


@pytest.fixture
def store():
    return MemoryTicketStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_ticket_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
