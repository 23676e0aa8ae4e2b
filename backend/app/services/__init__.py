from app.services.alif_gateway import AlifGatewayClient
from app.services.audit_service import AuditService
from app.services.callback_reconciler import CallbackReconciler, ReconcileOutcome
from app.services.notification_service import NotificationDispatcher, SmsGatewayClient
from app.services.payment_initiator import PaymentInitiator
from app.services.status_map import map_gateway_status

__all__ = [
    "AlifGatewayClient", "AuditService", "CallbackReconciler", "ReconcileOutcome",
    "NotificationDispatcher", "SmsGatewayClient", "PaymentInitiator", "map_gateway_status",
]
