"""
FastAPI dependency providers for the payment services.
Tests swap any of these through app.dependency_overrides.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db, get_session_factory
from app.services.alif_gateway import AlifGatewayClient
from app.services.callback_reconciler import CallbackReconciler
from app.services.notification_service import NotificationDispatcher, SmsGatewayClient
from app.services.payment_initiator import PaymentInitiator


def get_gateway_client(settings: Settings = Depends(get_settings)):
    client = AlifGatewayClient(settings)
    try:
        yield client
    finally:
        client.close()


def get_sms_client(settings: Settings = Depends(get_settings)) -> SmsGatewayClient:
    return SmsGatewayClient(settings)


def get_payment_initiator(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    gateway: AlifGatewayClient = Depends(get_gateway_client),
) -> PaymentInitiator:
    return PaymentInitiator(db, settings, gateway)


def get_callback_reconciler(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> CallbackReconciler:
    return CallbackReconciler(db, settings)


def get_notification_dispatcher(
    session_factory=Depends(get_session_factory),
    settings: Settings = Depends(get_settings),
    sms_client: SmsGatewayClient = Depends(get_sms_client),
) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory, settings, sms_client)
