"""Shared builders and HTTP stubs for the test suite."""

import copy
import json

import httpx

from app.schemas.schemas import OrderData
from app.utils.signature import callback_token

MERCHANT_ID = "656374"
SECRET_KEY = "test-secret-key"

ORDER_PAYLOAD = {
    "amount": 1000,
    "currency": "TJS",
    "orderData": {
        "items": [{"id": "1", "name": "Mattress", "price": 1000, "quantity": 1}],
        "customerInfo": {"name": "Ali", "email": "a@b.com", "phone": "+992901234567"},
        "deliveryInfo": {"type": "home"},
    },
}


def order_payload(**changes) -> dict:
    payload = copy.deepcopy(ORDER_PAYLOAD)
    payload.update(changes)
    return payload


def order_data(customer_overrides: dict | None = None, **changes) -> OrderData:
    raw = copy.deepcopy(ORDER_PAYLOAD["orderData"])
    raw["customerInfo"].update(customer_overrides or {})
    raw.update(changes)
    return OrderData.model_validate(raw)


def signed_callback(settings, order_id: str, status: str = "approved", amount=1000, **extra) -> dict:
    payload = {
        "order_id": order_id,
        "amount": amount,
        "status": status,
        "transaction_id": "TX1",
        "token": callback_token(
            settings.ALIF_MERCHANT_ID, settings.ALIF_SECRET_KEY, order_id, amount, settings.callback_url
        ),
    }
    payload.update(extra)
    return payload


class HttpStub:
    """Records requests and answers with a canned response."""

    def __init__(self, status_code: int = 200, body=None, raw: str | None = None):
        self.status_code = status_code
        self.body = body if body is not None else {}
        self.raw = raw
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raw is not None:
            return httpx.Response(self.status_code, text=self.raw)
        return httpx.Response(self.status_code, json=self.body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def json_at(self, index: int = -1):
        return json.loads(self.requests[index].content)


def gateway_stub(**kwargs) -> HttpStub:
    kwargs.setdefault("body", {"code": 0, "message": "OK", "url": "https://pay.alif.test/checkout/abc"})
    return HttpStub(**kwargs)


def sms_stub(**kwargs) -> HttpStub:
    kwargs.setdefault("body", {"success": True})
    return HttpStub(**kwargs)
