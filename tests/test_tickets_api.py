from datetime import datetime, timedelta

import pytest
from bson import ObjectId

from conftest import make_service, make_ticket
from repairdesk.services.dates import parse_date_like

NEW_TICKET = {
    "plateNumber": "KW-4412",
    "customerName": "Fatima Ali",
    "customerPhone": "99887766",
    "customerEmail": "fatima@example.com",
    "mileage": 42000,
    "repairParts": ["front bumper"],
    "services": [
        {"serviceId": "hood-protection", "serviceName": "Hood Protection", "category": "protection", "price": 70},
        {"serviceId": "thermal-tint", "serviceName": "Thermal Tint", "category": "tinting", "price": 180,
         "discountType": "percentage", "discountValue": 10},
    ],
}

WASH = {"serviceId": "exterior-polish", "serviceName": "Exterior Polish", "category": "polish", "price": 30}


@pytest.fixture
def ticket(client):
    response = client.post("/api/tickets", json=NEW_TICKET)
    assert response.status_code == 201
    return response.json()


class TestCreateAndRead:
    def test_create_computes_total_and_timestamps(self, ticket):
        assert ticket["totalAmount"] == pytest.approx(70 + 162)
        assert ticket["services"][1]["finalPrice"] == pytest.approx(162)
        assert ticket["services"][1]["discountType"] == "percentage"
        assert ticket["createdAt"] == ticket["updatedAt"]
        assert ticket["invoiceDate"] is None
        assert ObjectId.is_valid(ticket["_id"])

    def test_timestamps_carry_an_offset(self, ticket):
        assert datetime.fromisoformat(ticket["createdAt"]).tzinfo is not None
        assert datetime.fromisoformat(ticket["services"][0]["addedAt"]).tzinfo is not None

    def test_missing_required_fields(self, client):
        body = dict(NEW_TICKET)
        del body["plateNumber"]
        assert client.post("/api/tickets", json=body).status_code == 422

    def test_get_ticket(self, client, ticket):
        response = client.get(f"/api/tickets/{ticket['_id']}")
        assert response.status_code == 200
        assert response.json()["plateNumber"] == "KW-4412"

    @pytest.mark.parametrize("ticket_id", [str(ObjectId()), "not-an-id"])
    def test_get_unknown_ticket(self, client, ticket_id):
        response = client.get(f"/api/tickets/{ticket_id}")
        assert response.status_code == 404
        assert response.json() == {"detail": "Ticket not found"}

    def test_list_newest_first(self, client, store):
        store._put(make_ticket(plateNumber="OLD", createdAt=datetime(2023, 1, 1)))
        store._put(make_ticket(plateNumber="NEW", createdAt=datetime(2024, 1, 1)))

        plates = [t["plateNumber"] for t in client.get("/api/tickets").json()]
        assert plates == ["NEW", "OLD"]


class TestUpdateAndDelete:
    def test_partial_update(self, client, ticket):
        response = client.put(f"/api/tickets/{ticket['_id']}", json={
            "notes": "Customer waiting",
            "invoiceNo": "INV-0042",
            "invoiceDate": "2024-05-01T10:00:00",
        })
        assert response.status_code == 200

        updated = response.json()
        assert updated["notes"] == "Customer waiting"
        assert updated["invoiceNo"] == "INV-0042"
        assert parse_date_like(updated["invoiceDate"]) == datetime(2024, 5, 1, 10, 0)
        assert updated["customerName"] == "Fatima Ali"
        assert updated["totalAmount"] == pytest.approx(232)

    def test_replacing_services_recomputes_total(self, client, ticket):
        updated = client.put(f"/api/tickets/{ticket['_id']}", json={"services": [WASH]}).json()
        assert updated["totalAmount"] == 30
        assert len(updated["services"]) == 1

    def test_update_unknown_ticket(self, client):
        assert client.put(f"/api/tickets/{ObjectId()}", json={"notes": "x"}).status_code == 404

    def test_delete(self, client, ticket):
        response = client.delete(f"/api/tickets/{ticket['_id']}")
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.get(f"/api/tickets/{ticket['_id']}").status_code == 404
        assert client.delete(f"/api/tickets/{ticket['_id']}").status_code == 404


class TestServiceLineItems:
    def test_list_services(self, client, ticket):
        services = client.get(f"/api/tickets/{ticket['_id']}/services").json()["services"]
        assert [s["serviceId"] for s in services] == ["hood-protection", "thermal-tint"]

    def test_add_service_grows_total(self, client, ticket):
        updated = client.post(f"/api/tickets/{ticket['_id']}/services", json=WASH).json()
        assert updated["totalAmount"] == pytest.approx(262)
        assert updated["services"][-1]["finalPrice"] == 30
        assert updated["services"][-1]["addedAt"]

    def test_fixed_discount(self, client, ticket):
        body = dict(WASH, discountType="fixed", discountValue=50)
        updated = client.post(f"/api/tickets/{ticket['_id']}/services", json=body).json()
        assert updated["services"][-1]["finalPrice"] == 0
        assert updated["totalAmount"] == pytest.approx(232)

    def test_remove_one_of_identical_services(self, client, ticket):
        url = f"/api/tickets/{ticket['_id']}/services"
        client.post(url, json=dict(WASH, addedAt="2024-05-01T10:00:00"))
        client.post(url, json=dict(WASH, addedAt="2024-05-01T11:00:00"))

        response = client.delete(f"{url}/exterior-polish", params={"addedAt": "2024-05-01T11:00:00"})
        assert response.status_code == 200

        updated = response.json()
        washes = [s for s in updated["services"] if s["serviceId"] == "exterior-polish"]
        assert [parse_date_like(s["addedAt"]) for s in washes] == [datetime(2024, 5, 1, 10, 0)]
        assert updated["totalAmount"] == pytest.approx(262)

    def test_remove_by_service_name(self, client, ticket):
        response = client.delete(f"/api/tickets/{ticket['_id']}/services/Hood Protection")
        assert response.status_code == 200
        assert response.json()["totalAmount"] == pytest.approx(162)

    def test_remove_unknown_service(self, client, ticket):
        response = client.delete(f"/api/tickets/{ticket['_id']}/services/ceramic-coating")
        assert response.status_code == 404
        assert response.json() == {"detail": "Service not found"}

    def test_remove_requires_identifier(self, client, ticket):
        response = client.delete(f"/api/tickets/{ticket['_id']}/services/undefined")
        assert response.status_code == 400

    def test_total_never_negative(self, client, store):
        stored = store._put(make_ticket(totalAmount=10, services=[make_service("ppf", 50)]))
        response = client.delete(f"/api/tickets/{stored['_id']}/services/ppf")
        assert response.json()["totalAmount"] == 0


class TestPayments:
    def test_record_payment(self, client, ticket):
        response = client.post(f"/api/tickets/{ticket['_id']}/payments", json={
            "amount": 100, "paymentMethod": "knet", "date": "2024-05-02T09:00:00"
        })
        assert response.status_code == 200

        updated = response.json()
        [payment] = updated["payments"]
        assert (payment["amount"], payment["paymentMethod"]) == (100, "knet")
        assert parse_date_like(payment["date"]) == datetime(2024, 5, 2, 9, 0)
        assert updated["totalPaid"] == 100
        assert updated["remaining"] == pytest.approx(132)

    def test_payment_defaults(self, client, ticket):
        updated = client.post(f"/api/tickets/{ticket['_id']}/payments", json={"amount": 5}).json()
        assert updated["payments"][0]["paymentMethod"] == "cash"
        assert updated["payments"][0]["date"]

    def test_payment_must_be_positive(self, client, ticket):
        response = client.post(f"/api/tickets/{ticket['_id']}/payments", json={"amount": 0})
        assert response.status_code == 422


class TestSalesListing:
    def test_sales_filter_and_balances(self, client, store):
        now = datetime.now()
        store._put(make_ticket(
            plateNumber="RECENT", totalAmount=100, createdAt=now - timedelta(days=2),
            payments=[{"amount": 60, "date": now, "paymentMethod": "cash"}]
        ))
        store._put(make_ticket(plateNumber="OLD", totalAmount=50, createdAt=now - timedelta(days=60)))
        store._put(make_ticket(
            plateNumber="INVOICED", totalAmount=40, createdAt=now - timedelta(days=90),
            invoiceDate=now - timedelta(days=1), payments=[{"amount": 55}]
        ))

        tickets = client.get("/api/tickets", params={"sales": "true", "period": "week"}).json()

        by_plate = {t["plateNumber"]: t for t in tickets}
        assert set(by_plate) == {"RECENT", "INVOICED"}
        assert by_plate["RECENT"]["totalPaid"] == 60
        assert by_plate["RECENT"]["remaining"] == 40
        assert by_plate["INVOICED"]["remaining"] == 0

    def test_plain_listing_has_no_balances(self, client, store):
        store._put(make_ticket())
        tickets = client.get("/api/tickets").json()
        assert "remaining" not in tickets[0]
