"""
SMS Formatter — staff message text for payment checkpoints.

Active rows in `sms_templates` win; `{{name}}` placeholders are filled from
the payment. Without a template a compact default message is built.
"""
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from app.models.payment import PaymentRecord

TEMPLATE_BY_CHECKPOINT = {
    "pending": "admin_payment_notification",
    "confirmed": "delivery_team_notification",
}

PAYMENT_METHOD_TEXT = {
    "cash": "Наличные",
    "alif_bank": "Alif Bank",
    "korti_milli": "Корти Милли",
    "vsa": "Visa",
    "mcr": "Mastercard",
    "wallet": "Alif Wallet",
    "salom": "Alif Salom",
    "tcell": "Tcell",
    "megafon": "Megafon",
    "babilon": "Babilon",
    "zetmobile": "Zet Mobile",
}

DELIVERY_TYPE_TEXT = {"home": "Доставка на дом", "pickup": "Самовывоз"}
STATUS_TEXT = {"confirmed": "Подтвержден", "pending": "Ожидает"}
HEADERS = {"pending": "⏰ Новый заказ", "confirmed": "🚚 Заказ для доставки"}

_PLACEHOLDER = re.compile(r"\{\{\s*([\w.]+)\s*\}\}")


@dataclass
class OutgoingSms:
    phone_number: str
    text: str
    sender_address: str = "SAKINA"
    priority: int = 1
    sms_type: int = 2


def render(template: str, context: dict) -> str:
    """Replace {{key}} placeholders; unknown keys are left as-is."""
    return _PLACEHOLDER.sub(lambda m: str(context.get(m.group(1), m.group(0))), template)


def display_number(value) -> str:
    """1000 -> '1000', 1000.5 -> '1000.50'."""
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return str(value)
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.quantize(Decimal("0.01")), "f")


def format_items(items: list, currency: str) -> str:
    if not items:
        return "Товары не указаны"
    return "\n".join(
        f"{index}. {item.get('name') or 'Товар без названия'} "
        f"({item.get('quantity') or 1} шт. × {display_number(item.get('price') or 0)} {currency})"
        for index, item in enumerate(items, start=1)
    )


def build_context(payment: PaymentRecord, checkpoint: str, manager_phone: str, delivery_phone: str) -> dict:
    """Template variables for one payment."""
    summary = payment.order_data or {}
    customer = summary.get("customerInfo") or {}
    delivery = summary.get("deliveryInfo") or {}
    items = [item for item in summary.get("items") or [] if isinstance(item, dict)]
    currency = payment.currency or summary.get("currency") or "TJS"

    amount = display_number(summary.get("total_amount") or payment.amount or 0)
    subtotal = summary.get("subtotal") or amount
    discount = summary.get("discount") or 0
    discount_pct = summary.get("discount_percentage") or 0
    if discount and discount_pct and Decimal(str(subtotal)) > Decimal(amount):
        amount_text = (
            f"{amount} {currency} (было {display_number(subtotal)} {currency}, "
            f"скидка {display_number(discount_pct)}% = -{display_number(discount)} {currency})"
        )
    else:
        amount_text = f"{amount} {currency}"

    delivery_type = payment.delivery_type or delivery.get("delivery_type") or ""
    delivery_type_text = DELIVERY_TYPE_TEXT.get(delivery_type, delivery_type or "Не указан")
    delivery_address = payment.delivery_address or delivery.get("delivery_address") or (
        "Самовывоз" if delivery_type == "pickup" else "Не указан"
    )
    if delivery_type == "pickup" or delivery_type_text == delivery_address:
        delivery_line = delivery_type_text
    else:
        delivery_line = f"{delivery_type_text}, {delivery_address}"

    gateway = payment.payment_gateway or ""

    return {
        "orderTitle": f"Заказ №{payment.alif_order_id}",
        "order_id": payment.alif_order_id,
        "payment.alif_order_id": payment.alif_order_id,
        "payment.customer_name": payment.customer_name or customer.get("name") or "Клиент",
        "payment.customer_phone": payment.customer_phone or customer.get("phone") or "",
        "payment.customer_email": payment.customer_email or customer.get("email") or "Не указан",
        "payment.amount": amount_text,
        "payment.currency": currency,
        "payment.status": STATUS_TEXT.get(checkpoint, payment.status),
        "payment.alif_transaction_id": payment.alif_transaction_id or payment.alif_order_id,
        "payment.payment_gateway": PAYMENT_METHOD_TEXT.get(gateway, gateway or "Не указан"),
        "payment.delivery_type": delivery_type_text,
        "payment.delivery_address": delivery_address,
        "payment.delivery_phone": delivery_phone,
        "delivery_line": delivery_line,
        "discount.amount": display_number(discount),
        "discount.percentage": display_number(discount_pct),
        "order.subtotal": display_number(subtotal),
        "items_list": format_items(items, currency),
        "items_count": len(items),
        "items_total_quantity": sum(int(item.get("quantity") or 1) for item in items),
        "manager_phone": manager_phone,
        "delivery_phone": delivery_phone,
    }


def default_message(checkpoint: str, context: dict) -> str:
    email = context["payment.customer_email"]
    email_part = f" | {email}" if email and email != "Не указан" else ""
    return (
        f"{HEADERS[checkpoint]}: {context['orderTitle']}\n\n"
        f"Сумма: {context['payment.amount']} | {context['payment.payment_gateway']} | {context['delivery_line']}\n"
        f"Клиент: {context['payment.customer_name']} | {context['payment.customer_phone']}{email_part}\n\n"
        f"Товары ({context['items_count']} позиций):\n{context['items_list']}"
    )
