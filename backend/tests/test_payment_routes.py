from app.models.order import ConfirmedOrder
from app.models.payment import PaymentRecord
from app.utils.validators import ORDER_ID_PATTERN

from tests.helpers import order_payload, signed_callback


def _initiate(client):
    response = client.post("/api/payment/initiate", json=order_payload())
    assert response.status_code == 200, response.text
    return response.json()


def test_probe_has_no_side_effects(client, gateway, sms, db):
    response = client.post("/api/payment/initiate", json={"test": True})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Function is accessible"}
    assert gateway.requests == []
    assert sms.requests == []
    assert db.query(PaymentRecord).count() == 0


def test_initiate_returns_payment_url(client, db):
    data = _initiate(client)

    assert data["success"] is True
    assert data["payment_url"] == "https://pay.alif.test/checkout/abc"
    assert ORDER_ID_PATTERN.match(data["order_id"])
    assert db.get(PaymentRecord, data["payment_id"]).status == "pending"


def test_initiate_notifies_manager(client, sms):
    data = _initiate(client)

    assert len(sms.requests) == 1
    assert sms.requests[0].headers["X-Api-Key"] == "sms-key"
    [message] = sms.json_at()
    assert message["PhoneNumber"] == "992900000001"
    assert message["SenderAddress"] == "SAKINA"
    assert data["order_id"] in message["Text"]
    assert "Mattress" in message["Text"]


def test_initiate_validation_error(client, gateway):
    payload = order_payload()
    payload["orderData"]["customerInfo"]["phone"] = ""

    response = client.post("/api/payment/initiate", json=payload)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Customer phone is required"}
    assert gateway.requests == []


def test_initiate_gateway_rejection(client, gateway, sms):
    gateway.body = {"code": 301, "message": "Merchant blocked"}

    response = client.post("/api/payment/initiate", json=order_payload())

    assert response.status_code == 400
    assert response.json()["error"] == "Merchant blocked"
    assert sms.requests == []


def test_initiate_gateway_garbage(client, gateway):
    gateway.raw = "<html>oops</html>"
    gateway.status_code = 502

    response = client.post("/api/payment/initiate", json=order_payload())

    assert response.status_code == 502
    assert response.json()["success"] is False


def test_sms_failure_does_not_fail_initiation(client, sms, db):
    sms.status_code = 500

    data = _initiate(client)

    assert data["success"] is True
    assert db.get(PaymentRecord, data["payment_id"]).status == "pending"


def test_callback_end_to_end(client, settings, sms, db):
    data = _initiate(client)
    order_id = data["order_id"]

    response = client.post("/api/payment/callback", json=signed_callback(settings, order_id, "approved"))

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "status": "callback_processed",
        "payment_status": "completed",
        "order_id": order_id,
    }
    order = db.query(ConfirmedOrder).filter_by(alif_order_id=order_id).one()
    assert order.items[0]["name"] == "Mattress"

    # pending notice to the manager, then the delivery team on completion
    assert len(sms.requests) == 2
    [delivery] = sms.json_at(1)
    assert delivery["PhoneNumber"] == "992900000002"
    assert "Заказ для доставки" in delivery["Text"]

    status = client.post("/api/payment/status", json={"order_id": order_id})
    assert status.status_code == 200
    payment = status.json()["payment"]
    assert payment["status"] == "completed"
    assert payment["transaction_id"] == "TX1"
    assert payment["amount"] == 1000.0


def test_redelivered_callback_sends_nothing_new(client, settings, sms, db):
    order_id = _initiate(client)["order_id"]
    payload = signed_callback(settings, order_id, "approved")

    first = client.post("/api/payment/callback", json=payload)
    second = client.post("/api/payment/callback", json=payload)

    assert first.status_code == second.status_code == 200
    assert second.json()["payment_status"] == "completed"
    assert db.query(ConfirmedOrder).count() == 1
    assert len(sms.requests) == 2


def test_declined_callback(client, settings, sms, db):
    order_id = _initiate(client)["order_id"]

    response = client.post("/api/payment/callback", json=signed_callback(settings, order_id, "declined"))

    assert response.json()["payment_status"] == "failed"
    assert db.query(ConfirmedOrder).count() == 0
    assert len(sms.requests) == 1


def test_callback_bad_token(client, settings):
    order_id = _initiate(client)["order_id"]
    payload = signed_callback(settings, order_id, "approved")
    payload["token"] = "deadbeef"

    response = client.post("/api/payment/callback", json=payload)

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid callback signature"}
    status = client.post("/api/payment/status", json={"order_id": order_id})
    assert status.json()["payment"]["status"] == "pending"


def test_callback_non_ascii_token(client, settings):
    order_id = _initiate(client)["order_id"]
    payload = signed_callback(settings, order_id, "approved")
    payload["token"] = "é" * 64

    response = client.post("/api/payment/callback", json=payload)

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid callback signature"}


def test_callback_unknown_order(client, settings):
    response = client.post(
        "/api/payment/callback",
        json=signed_callback(settings, "SAKINA_1700000000000_nosuchord", "approved"),
    )
    assert response.status_code == 404


def test_callback_missing_fields(client):
    response = client.post("/api/payment/callback", json={"status": "approved"})
    assert response.status_code == 400
    assert "order_id" in response.json()["error"]


def test_callback_empty_body(client):
    response = client.post("/api/payment/callback")
    assert response.status_code == 400


def test_status_requires_order_id(client):
    response = client.post("/api/payment/status", json={})
    assert response.status_code == 400
    assert response.json()["error"] == "Order ID is required"


def test_status_unknown_order(client):
    response = client.post("/api/payment/status", json={"order_id": "SAKINA_1_missing"})
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Payment not found"}


def test_malformed_initiate_body(client):
    response = client.post("/api/payment/initiate", json={"amount": "lots"})
    assert response.status_code == 422
    assert response.json()["success"] is False


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["gateway_configured"] in (True, False)
