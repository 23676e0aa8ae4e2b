"""
Confirmed Order Model — Created from a payment's snapshot once the bank confirms it.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON, Numeric, ForeignKey

from app.database import Base


class ConfirmedOrder(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    # One confirmed order per payment, enforced by the store
    payment_id = Column(Integer, ForeignKey("payments.id"), unique=True, nullable=False, index=True)
    alif_order_id = Column(String(64), nullable=False, index=True)

    customer_name = Column(String(128))
    customer_phone = Column(String(32))
    customer_email = Column(String(128))
    delivery_type = Column(String(16))
    delivery_address = Column(String(512))

    items = Column(JSON, nullable=False, default=list)   # [{id, name, price, quantity, category}]
    total_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="TJS")

    status = Column(String(16), default="confirmed")
    created_at = Column(DateTime, default=datetime.utcnow)
