"""
Payment Routes — Alif Bank checkout lifecycle.
Handles: initiation, gateway callback, status lookup.
"""
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_payment_initiator, get_callback_reconciler, get_notification_dispatcher
from app.exceptions import NotFoundError, ValidationError
from app.models.payment import PaymentRecord
from app.schemas.schemas import (
    PaymentInitRequest, PaymentInitResponse, CallbackAckResponse,
    PaymentStatusRequest, PaymentStatusResponse, ErrorResponse,
)
from app.services.callback_reconciler import CallbackReconciler
from app.services.notification_service import NotificationDispatcher
from app.services.payment_initiator import PaymentInitiator

router = APIRouter(
    prefix="/api/payment",
    tags=["Payment"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)


def _client_ip(request: Request):
    return request.client.host if request.client else None


@router.post("/initiate", responses={200: {"model": PaymentInitResponse}})
def initiate_payment(
    payload: PaymentInitRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    initiator: PaymentInitiator = Depends(get_payment_initiator),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Create a pending payment and return the bank's payment page URL."""
    if payload.test:
        return {"success": True, "message": "Function is accessible"}

    result = initiator.initiate(
        payload.amount,
        payload.currency,
        payload.gate,
        payload.order_data,
        ip_address=_client_ip(request),
    )
    background_tasks.add_task(dispatcher.notify, result.payment_id, "pending")

    return PaymentInitResponse(
        payment_id=result.payment_id,
        order_id=result.order_id,
        payment_url=result.redirect_url,
        message=result.message,
    )


@router.post(
    "/callback",
    response_model=CallbackAckResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def payment_callback(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: Optional[dict] = Body(None),
    reconciler: CallbackReconciler = Depends(get_callback_reconciler),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Gateway notification endpoint. The raw body is kept as the callback payload."""
    result = reconciler.reconcile(payload or {}, ip_address=_client_ip(request))

    if result.newly_completed:
        background_tasks.add_task(dispatcher.notify, result.payment_id, "confirmed")

    return CallbackAckResponse(
        payment_status=result.payment_status.value,
        order_id=result.order_id,
    )


@router.post("/status", response_model=PaymentStatusResponse, responses={404: {"model": ErrorResponse}})
def payment_status(payload: PaymentStatusRequest, db: Session = Depends(get_db)):
    """Look up a payment by gateway order id (used by the success page)."""
    if not payload.order_id:
        raise ValidationError("Order ID is required")

    payment = db.query(PaymentRecord).filter(PaymentRecord.alif_order_id == payload.order_id).first()
    if not payment:
        raise NotFoundError("Payment not found")

    return PaymentStatusResponse(payment=payment.to_status_dict())
