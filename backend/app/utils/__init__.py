from app.utils.hashing import payload_digest, chain_digest
from app.utils.signature import format_amount, request_token, callback_token, verify_callback_token
from app.utils.validators import validate_amount, clean_phone_number, generate_order_id

__all__ = [
    "payload_digest", "chain_digest",
    "format_amount", "request_token", "callback_token", "verify_callback_token",
    "validate_amount", "clean_phone_number", "generate_order_id",
]
