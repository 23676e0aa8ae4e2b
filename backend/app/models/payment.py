"""
Payment Record Model — One row per payment attempt against the Alif gateway.
"""
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, String, Integer, DateTime, JSON, Numeric

from app.database import Base


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


TERMINAL_STATUSES = frozenset(s.value for s in PaymentStatus if s.is_terminal)


class PaymentRecord(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    alif_order_id = Column(String(64), unique=True, nullable=False, index=True)  # SAKINA_<ms>_<rand>

    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="TJS")

    # pending → completed | cancelled | failed (terminal)
    status = Column(String(16), nullable=False, default=PaymentStatus.PENDING.value, index=True)

    # Snapshot taken at initiation, never rewritten
    order_data = Column(JSON, nullable=False, default=dict)

    customer_name = Column(String(128))
    customer_phone = Column(String(32))
    customer_email = Column(String(128))
    delivery_type = Column(String(16))       # home | pickup
    delivery_address = Column(String(512))
    payment_gateway = Column(String(32))     # korti_milli | alif_bank | vsa | mcr | wallet ...

    # Filled by the callback
    alif_transaction_id = Column(String(64))
    alif_callback_payload = Column(JSON)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    def to_status_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.alif_order_id,
            "amount": float(self.amount) if self.amount is not None else None,
            "currency": self.currency,
            "status": self.status,
            "transaction_id": self.alif_transaction_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
