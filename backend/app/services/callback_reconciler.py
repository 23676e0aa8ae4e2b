"""
Callback Reconciler — applies authenticated gateway callbacks to payment records.

The gateway delivers at least once. A record leaves `pending` exactly once:
the status write is conditional on the row still being pending, so a
redelivered or conflicting callback for a terminal record is ignored and
the stored status is kept.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

import pydantic
import structlog
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings
from app.exceptions import AuthenticationError, NotFoundError, PersistenceError, ValidationError
from app.models.order import ConfirmedOrder
from app.models.payment import PaymentRecord, PaymentStatus
from app.schemas.schemas import CallbackPayload
from app.services.audit_service import AuditService
from app.services.status_map import map_gateway_status
from app.utils.signature import verify_callback_token

logger = structlog.get_logger().bind(component="callback_reconciler")


class ReconcileOutcome(str, Enum):
    APPLIED = "applied"        # pending -> terminal
    UNCHANGED = "unchanged"    # pending -> pending, nothing written
    IGNORED = "ignored"        # record was already terminal


@dataclass
class ReconcileResult:
    order_id: str
    payment_id: int
    payment_status: PaymentStatus
    outcome: ReconcileOutcome
    order_created: bool = False

    @property
    def newly_completed(self) -> bool:
        return self.outcome is ReconcileOutcome.APPLIED and self.payment_status is PaymentStatus.COMPLETED


class CallbackReconciler:
    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def reconcile(self, payload: dict, ip_address: Optional[str] = None) -> ReconcileResult:
        """Verify, map and apply one gateway callback.

        Raises:
            ValidationError: order_id or status missing.
            AuthenticationError: token mismatch (or missing, when tokens are required).
            NotFoundError: no payment for the order id.
            PersistenceError: the status update could not be written.
        """
        try:
            callback = CallbackPayload.model_validate(payload or {})
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Malformed callback: {exc.error_count()} invalid field(s)") from exc

        if not callback.order_id or not callback.status:
            logger.warning("callback_missing_fields", order_id=callback.order_id, status=callback.status)
            raise ValidationError("Callback missing required fields: order_id and status")

        self._authenticate(callback)

        payment = (
            self.db.query(PaymentRecord)
            .filter(PaymentRecord.alif_order_id == callback.order_id)
            .first()
        )
        if payment is None:
            logger.error("callback_unknown_order", order_id=callback.order_id)
            raise NotFoundError(f"Payment not found for order {callback.order_id}")

        claimed = map_gateway_status(callback.status)
        self._check_amount(payment, callback)
        outcome = self._apply(payment, claimed, callback, payload, ip_address)

        self.db.refresh(payment)
        result = ReconcileResult(
            order_id=payment.alif_order_id,
            payment_id=payment.id,
            payment_status=PaymentStatus(payment.status),
            outcome=outcome,
        )

        if outcome is ReconcileOutcome.IGNORED and claimed.value != payment.status:
            logger.warning(
                "callback_status_conflict",
                order_id=payment.alif_order_id,
                stored_status=payment.status,
                claimed_status=claimed.value,
                gateway_status=callback.status,
            )

        if result.newly_completed:
            result.order_created = self._confirm_order(payment)

        logger.info(
            "callback_processed",
            order_id=result.order_id,
            gateway_status=callback.status,
            payment_status=result.payment_status.value,
            outcome=outcome.value,
        )
        return result

    def _authenticate(self, callback: CallbackPayload) -> None:
        if not callback.token:
            if self.settings.ALIF_REQUIRE_CALLBACK_TOKEN:
                logger.warning("callback_rejected", order_id=callback.order_id, reason="missing_token")
                raise AuthenticationError("Callback token is required")
            logger.warning("callback_unsigned_accepted", order_id=callback.order_id)
            return

        valid = verify_callback_token(
            callback.token,
            self.settings.ALIF_MERCHANT_ID,
            self.settings.ALIF_SECRET_KEY,
            callback.order_id,
            callback.amount,
            self.settings.callback_url,
        )
        if not valid:
            logger.error(
                "callback_rejected",
                order_id=callback.order_id,
                reason="invalid_token",
                amount=str(callback.amount),
            )
            raise AuthenticationError("Invalid callback signature")

    def _check_amount(self, payment: PaymentRecord, callback: CallbackPayload) -> None:
        if callback.amount is None:
            return
        try:
            claimed = Decimal(str(callback.amount))
        except InvalidOperation:
            claimed = None
        if claimed is None or claimed != Decimal(payment.amount):
            logger.warning(
                "callback_amount_mismatch",
                order_id=payment.alif_order_id,
                stored_amount=str(payment.amount),
                claimed_amount=str(callback.amount),
            )

    def _apply(
        self,
        payment: PaymentRecord,
        claimed: PaymentStatus,
        callback: CallbackPayload,
        raw_payload: dict,
        ip_address: Optional[str],
    ) -> ReconcileOutcome:
        transaction_id = callback.transaction_id
        values = {
            "status": claimed.value,
            "alif_transaction_id": str(transaction_id) if transaction_id is not None else payment.alif_transaction_id,
            "alif_callback_payload": raw_payload,
            "updated_at": datetime.utcnow(),
        }
        try:
            if claimed is PaymentStatus.PENDING:
                # pending -> pending writes nothing
                outcome = (
                    ReconcileOutcome.UNCHANGED
                    if payment.status == PaymentStatus.PENDING.value
                    else ReconcileOutcome.IGNORED
                )
            else:
                rowcount = self.db.execute(
                    update(PaymentRecord)
                    .where(
                        PaymentRecord.id == payment.id,
                        PaymentRecord.status == PaymentStatus.PENDING.value,
                    )
                    .values(**values)
                    .execution_options(synchronize_session=False)
                ).rowcount
                outcome = ReconcileOutcome.APPLIED if rowcount else ReconcileOutcome.IGNORED

            AuditService.log(
                self.db, payment.alif_order_id,
                "CALLBACK_APPLIED" if outcome is ReconcileOutcome.APPLIED else "CALLBACK_IGNORED",
                payload={
                    "gateway_status": callback.status,
                    "claimed_status": claimed.value,
                    "transaction_id": values["alif_transaction_id"],
                },
                ip_address=ip_address,
                metadata={"outcome": outcome.value},
                commit=False,
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("callback_update_failed", order_id=payment.alif_order_id, error=str(exc))
            raise PersistenceError("Failed to update payment record") from exc

        return outcome

    def _confirm_order(self, payment: PaymentRecord) -> bool:
        """Create the confirmed order. Failures are logged, never raised."""
        existing = (
            self.db.query(ConfirmedOrder)
            .filter(ConfirmedOrder.payment_id == payment.id)
            .first()
        )
        if existing is not None:
            return False

        order = build_confirmed_order(payment)
        try:
            self.db.add(order)
            self.db.flush()
            AuditService.log(
                self.db, payment.alif_order_id, "ORDER_CONFIRMED",
                payload={"order_id": order.id, "items": len(order.items)},
                commit=False,
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "order_synthesis_failed",
                order_id=payment.alif_order_id,
                payment_id=payment.id,
                error=str(exc),
            )
            return False

        logger.info("order_confirmed", order_id=payment.alif_order_id, confirmed_order_id=order.id)
        return True


def build_confirmed_order(payment: PaymentRecord) -> ConfirmedOrder:
    """Confirmed order from the snapshot captured at initiation."""
    snapshot = payment.order_data or {}
    customer = snapshot.get("customerInfo") or {}
    delivery = snapshot.get("deliveryInfo") or {}

    items = [
        {
            "id": item.get("id"),
            "name": item.get("name", ""),
            "price": item.get("price", 0),
            "quantity": item.get("quantity", 1),
            "category": item.get("category"),
        }
        for item in snapshot.get("items") or []
        if isinstance(item, dict)
    ]

    return ConfirmedOrder(
        payment_id=payment.id,
        alif_order_id=payment.alif_order_id,
        customer_name=payment.customer_name or customer.get("name"),
        customer_phone=payment.customer_phone or customer.get("phone"),
        customer_email=payment.customer_email or customer.get("email"),
        delivery_type=payment.delivery_type or delivery.get("delivery_type"),
        delivery_address=payment.delivery_address or delivery.get("delivery_address"),
        items=items,
        total_amount=payment.amount,
        currency=payment.currency,
        status="confirmed",
    )
