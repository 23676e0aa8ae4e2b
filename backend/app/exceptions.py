"""
Payment Errors — one hierarchy for the whole payment lifecycle.
Each error carries the HTTP status the API layer renders it with.
"""


class PaymentError(Exception):
    """Base class for payment lifecycle errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PaymentError):
    """Caller-supplied data is insufficient. Never retried."""

    status_code = 400


class GatewayError(PaymentError):
    """Upstream bank gateway problem."""

    status_code = 502


class GatewayProtocolError(GatewayError):
    """Gateway answered with something that is not the expected JSON."""

    status_code = 502


class GatewayRejection(GatewayError):
    """Gateway explicitly declined the request; message kept verbatim."""

    status_code = 400

    def __init__(self, message: str, code=None):
        super().__init__(message)
        self.code = code


class AuthenticationError(PaymentError):
    """Callback signature missing or invalid."""

    status_code = 401


class NotFoundError(PaymentError):
    status_code = 404


class PersistenceError(PaymentError):
    """Local datastore write failed."""

    status_code = 500


class NotificationDeliveryError(PaymentError):
    """SMS provider refused or could not be reached."""

    status_code = 500
