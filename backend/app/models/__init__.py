from app.models.payment import PaymentRecord, PaymentStatus
from app.models.order import ConfirmedOrder
from app.models.audit import PaymentAuditLog
from app.models.notification import SmsTemplate, SmsOutbox

__all__ = [
    "PaymentRecord", "PaymentStatus", "ConfirmedOrder",
    "PaymentAuditLog", "SmsTemplate", "SmsOutbox",
]
