"""
Payment Initiator — turns a checkout order into a pending payment and a gateway redirect.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings
from app.exceptions import ValidationError, PersistenceError
from app.models.payment import PaymentRecord, PaymentStatus
from app.schemas.schemas import OrderData, OrderItem
from app.services.alif_gateway import AlifGatewayClient
from app.services.audit_service import AuditService
from app.utils.signature import format_amount, request_token
from app.utils.validators import validate_amount, validate_currency, generate_order_id

logger = structlog.get_logger().bind(component="payment_initiator")


@dataclass
class InitiationResult:
    payment_id: int
    order_id: str
    redirect_url: str
    message: Optional[str] = None


def build_invoices(items: list[OrderItem]) -> dict:
    """Itemized invoice block the gateway prints on the receipt."""
    return {
        "invoices": [
            {
                "category": item.category or "products",
                "name": item.name,
                "price": item.price,
                "quantity": item.quantity,
            }
            for item in items
        ],
        "is_hold_required": False,
        "is_outbox_marked": False,
    }


class PaymentInitiator:
    """Validates, signs, calls the gateway, then persists a pending PaymentRecord."""

    def __init__(self, db: Session, settings: Settings, gateway: AlifGatewayClient):
        self.db = db
        self.settings = settings
        self.gateway = gateway

    def initiate(
        self,
        amount,
        currency: Optional[str],
        gate: Optional[str],
        order: Optional[OrderData],
        ip_address: Optional[str] = None,
    ) -> InitiationResult:
        """Start a payment.

        Raises:
            ValidationError: bad amount/currency or missing customer name, email, phone.
                Raised before any network call or write.
            GatewayProtocolError, GatewayRejection: from the gateway client.
            PersistenceError: the gateway accepted but the record could not be saved.
        """
        order = order or OrderData()
        currency = (currency or self.settings.DEFAULT_CURRENCY).strip().upper()
        gate = gate or self.settings.DEFAULT_GATE
        self._validate(amount, currency, order)

        order_id = generate_order_id(self.settings.ORDER_ID_PREFIX)
        callback_url = self.settings.callback_url
        return_url = self.settings.return_url(order_id)
        amount_2dp = format_amount(amount)
        invoices = (
            order.invoices.model_dump(mode="json")
            if order.invoices is not None
            else build_invoices(order.items)
        )
        customer = order.customer_info

        payload = {
            "key": self.settings.ALIF_MERCHANT_ID,
            "order_id": order_id,
            "amount": float(amount_2dp),
            "callback_url": callback_url,
            "return_url": return_url,
            "email": customer.email,
            "phone": customer.phone,
            "gate": gate,
            "info": f"Заказ в магазине Sakina #{order_id}",
            "info_hash": "",
            "token": request_token(
                self.settings.ALIF_MERCHANT_ID,
                self.settings.ALIF_SECRET_KEY,
                order_id,
                amount_2dp,
                callback_url,
            ),
            "invoices": invoices,
            "mpTerminalInfo": [],
        }

        logger.info(
            "gateway_request",
            order_id=order_id,
            amount=amount_2dp,
            currency=currency,
            gate=gate,
            invoice_lines=len(invoices.get("invoices", [])),
        )
        gateway_response = self.gateway.create_payment(payload, gate)

        snapshot = order.model_dump(mode="json", by_alias=True, exclude_none=True)
        snapshot["invoices"] = invoices
        snapshot["currency"] = currency
        payment = self._persist(order_id, Decimal(amount_2dp), currency, gate, order, snapshot, ip_address)

        logger.info("payment_initiated", order_id=order_id, payment_id=payment.id, amount=amount_2dp)
        return InitiationResult(
            payment_id=payment.id,
            order_id=order_id,
            redirect_url=gateway_response.redirect_url,
            message=gateway_response.message,
        )

    def _validate(self, amount, currency: str, order: OrderData) -> None:
        # Must stay positive after rounding to the two decimals that get signed and stored
        if not validate_amount(amount) or not validate_amount(format_amount(amount)):
            logger.warning("initiate_rejected", reason="invalid_amount", amount=str(amount))
            raise ValidationError("Invalid amount")
        if not validate_currency(currency):
            raise ValidationError(f"Invalid currency: {currency}")

        customer = order.customer_info
        for field, value in (("email", customer.email), ("name", customer.name), ("phone", customer.phone)):
            if not value or not str(value).strip():
                logger.warning("initiate_rejected", reason=f"missing_customer_{field}")
                raise ValidationError(f"Customer {field} is required")

    def _persist(
        self,
        order_id: str,
        amount: Decimal,
        currency: str,
        gate: str,
        order: OrderData,
        snapshot: dict,
        ip_address: Optional[str],
    ) -> PaymentRecord:
        delivery = order.delivery_info
        payment = PaymentRecord(
            alif_order_id=order_id,
            amount=amount,
            currency=currency,
            status=PaymentStatus.PENDING.value,
            order_data=snapshot,
            customer_name=order.customer_info.name,
            customer_phone=order.customer_info.phone,
            customer_email=order.customer_info.email,
            delivery_type=delivery.delivery_type,
            delivery_address=delivery.delivery_address,
            payment_gateway=gate,
        )
        try:
            self.db.add(payment)
            self.db.flush()
            AuditService.log(
                self.db, order_id, "PAYMENT_INITIATED",
                payload={"amount": str(amount), "currency": currency, "gate": gate},
                ip_address=ip_address,
                commit=False,
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            # The gateway now expects a callback for an order we have no record of.
            logger.critical(
                "payment_record_orphaned",
                order_id=order_id,
                amount=str(amount),
                customer_email=order.customer_info.email,
                error=str(exc),
            )
            raise PersistenceError("Failed to create payment record") from exc

        return payment
