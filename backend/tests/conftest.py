"""Pytest configuration for tests."""

import os

# Must be set before app modules build the default engine
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings, get_settings
from app.database import get_db, get_session_factory, init_db
from app.dependencies import get_gateway_client, get_sms_client
from app.main import app
from app.models.payment import PaymentRecord
from app.services.alif_gateway import AlifGatewayClient
from app.services.notification_service import NotificationDispatcher, SmsGatewayClient
from app.services.payment_initiator import PaymentInitiator
from app.services.callback_reconciler import CallbackReconciler

from tests.helpers import MERCHANT_ID, SECRET_KEY, gateway_stub, sms_stub


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        ALIF_MERCHANT_ID=MERCHANT_ID,
        ALIF_SECRET_KEY=SECRET_KEY,
        ALIF_API_URL="https://gateway.alif.test",
        PUBLIC_BASE_URL="https://api.sakina.test",
        SITE_URL="https://sakina.test",
        SMS_API_URL="https://sms.alif.test/api/v1/sms/bulk",
        SMS_API_KEY="sms-key",
        MANAGER_PHONE="+992 (90) 000-00-01",
        DELIVERY_PHONE="+992900000002",
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return gateway_stub()


@pytest.fixture
def sms():
    return sms_stub()


@pytest.fixture
def initiator(db, settings, gateway):
    return PaymentInitiator(db, settings, AlifGatewayClient(settings, gateway.client()))


@pytest.fixture
def reconciler(db, settings):
    return CallbackReconciler(db, settings)


@pytest.fixture
def dispatcher(session_factory, settings, sms):
    return NotificationDispatcher(session_factory, settings, SmsGatewayClient(settings, sms.client()))


@pytest.fixture
def client(session_factory, settings, gateway, sms):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_gateway_client] = lambda: AlifGatewayClient(settings, gateway.client())
    app.dependency_overrides[get_sms_client] = lambda: SmsGatewayClient(settings, sms.client())

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_payment(db):
    """Insert a PaymentRecord directly, bypassing the gateway."""
    counter = {"n": 0}

    def _make(**fields) -> PaymentRecord:
        counter["n"] += 1
        values = {
            "alif_order_id": f"SAKINA_1700000000000_test{counter['n']:05d}",
            "amount": 1000,
            "currency": "TJS",
            "status": "pending",
            "order_data": {
                "items": [{"id": "1", "name": "Mattress", "price": 1000, "quantity": 1}],
                "customerInfo": {"name": "Ali", "email": "a@b.com", "phone": "+992901234567"},
                "deliveryInfo": {"delivery_type": "home", "delivery_address": "Rudaki 10"},
            },
            "customer_name": "Ali",
            "customer_phone": "+992901234567",
            "customer_email": "a@b.com",
            "delivery_type": "home",
            "delivery_address": "Rudaki 10",
            "payment_gateway": "korti_milli",
        }
        values.update(fields)
        payment = PaymentRecord(**values)
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    return _make
