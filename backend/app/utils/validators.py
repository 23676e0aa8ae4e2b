"""
Validators — checkout data checks and normalization helpers.
"""
import re
import secrets
import string
import time
from decimal import Decimal, InvalidOperation

_BASE36 = string.digits + string.ascii_lowercase


def validate_amount(amount) -> bool:
    """Amount must be a finite number strictly greater than zero."""
    if amount is None or isinstance(amount, bool):
        return False
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return False
    return value.is_finite() and value > 0


def validate_currency(currency: str | None) -> bool:
    """ISO-4217 style three-letter code (e.g. TJS)."""
    if not currency:
        return False
    return bool(re.match(r"^[A-Z]{3}$", currency.strip()))


def clean_phone_number(phone: str | None) -> str:
    """Strip spaces, plus signs, dashes and parentheses: '+992 (90) 123-45-67' -> '992901234567'."""
    if not phone:
        return ""
    return re.sub(r"[\s+\-()]", "", phone)


def generate_order_id(prefix: str = "SAKINA") -> str:
    """Gateway order id: <PREFIX>_<epoch ms>_<9 random base36 chars>."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


ORDER_ID_PATTERN = re.compile(r"^[A-Z]+_\d{13}_[0-9a-z]{9}$")
