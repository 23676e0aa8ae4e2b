"""
Gateway Status Mapping — Alif callback vocabulary to internal PaymentStatus.
Unrecognized values fail closed to FAILED.
"""
from app.models.payment import PaymentStatus

GATEWAY_STATUS_MAP: dict[str, PaymentStatus] = {
    # completed
    "success": PaymentStatus.COMPLETED,
    "completed": PaymentStatus.COMPLETED,
    "paid": PaymentStatus.COMPLETED,
    "approve": PaymentStatus.COMPLETED,
    "approved": PaymentStatus.COMPLETED,
    "ok": PaymentStatus.COMPLETED,
    # still in flight
    "pending": PaymentStatus.PENDING,
    "processing": PaymentStatus.PENDING,
    "wait": PaymentStatus.PENDING,
    "waiting": PaymentStatus.PENDING,
    "to_approve": PaymentStatus.PENDING,
    # cancelled
    "cancelled": PaymentStatus.CANCELLED,
    "canceled": PaymentStatus.CANCELLED,
    "cancel": PaymentStatus.CANCELLED,
    # failed
    "failed": PaymentStatus.FAILED,
    "error": PaymentStatus.FAILED,
    "declined": PaymentStatus.FAILED,
    "decline": PaymentStatus.FAILED,
    "reject": PaymentStatus.FAILED,
    "rejected": PaymentStatus.FAILED,
}


def map_gateway_status(raw_status) -> PaymentStatus:
    """Case-insensitive lookup; anything unknown is FAILED."""
    if raw_status is None:
        return PaymentStatus.FAILED
    return GATEWAY_STATUS_MAP.get(str(raw_status).strip().lower(), PaymentStatus.FAILED)
