"""
Alif Gateway Signature Codec — two-step HMAC-SHA256 tokens.

    first = HMAC_SHA256(key, message)
    token = HMAC_SHA256(first, merchant_id + order_id + amount_2dp + callback_url)

The first step is asymmetric and dictated by the gateway: outgoing payment
requests use key=merchant_id / message=secret, incoming callbacks use
key=secret / message=merchant_id. The two orderings are not interchangeable
and must not be unified.
"""
import hashlib
import hmac
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

_TWO_PLACES = Decimal("0.01")


def format_amount(amount) -> str:
    """Render an amount with exactly two decimals (1000 -> "1000.00")."""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    return format(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP), "f")


def _hmac_hex(key: str, message: str) -> str:
    return hmac.new(key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def _final_token(first_token: str, merchant_id: str, order_id: str, amount_2dp: str, callback_url: str) -> str:
    return _hmac_hex(first_token, f"{merchant_id}{order_id}{amount_2dp}{callback_url}")


def request_token(merchant_id: str, secret: str, order_id: str, amount, callback_url: str) -> str:
    """Token sent with a payment-creation request (key=merchant_id, message=secret)."""
    first = _hmac_hex(merchant_id, secret)
    return _final_token(first, merchant_id, order_id, format_amount(amount), callback_url)


def callback_token(merchant_id: str, secret: str, order_id: str, amount, callback_url: str) -> str:
    """Token the gateway attaches to a callback (key=secret, message=merchant_id)."""
    first = _hmac_hex(secret, merchant_id)
    return _final_token(first, merchant_id, order_id, format_amount(amount), callback_url)


def verify_callback_token(
    token: str, merchant_id: str, secret: str, order_id: str, amount, callback_url: str
) -> bool:
    """Constant-time check of a callback token against the claimed order id and amount."""
    if not token:
        return False
    try:
        expected = callback_token(merchant_id, secret, order_id, amount, callback_url)
    except ValueError:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), str(token).lower().encode("utf-8"))
