from fastapi import APIRouter, Depends

from app.dependencies import get_notification_dispatcher
from app.exceptions import ValidationError
from app.schemas.schemas import PaymentSmsRequest, PaymentSmsResponse, ErrorResponse
from app.services.notification_service import NotificationDispatcher

router = APIRouter(prefix="/api/notification", tags=["Notifications"])


@router.post(
    "/payment-sms",
    response_model=PaymentSmsResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def send_payment_sms(
    payload: PaymentSmsRequest,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Sends the staff SMS for a payment checkpoint (pending -> manager, confirmed -> delivery team).
    Each checkpoint is sent at most once per recipient.
    """
    if not payload.payment_id or not payload.status:
        raise ValidationError("Missing required fields: payment_id and status")

    sent = dispatcher.dispatch(payload.payment_id, payload.status)
    return PaymentSmsResponse(
        success=True,
        message="SMS sent successfully" if sent else "SMS already sent",
        status=payload.status,
        messages_sent=sent,
    )
