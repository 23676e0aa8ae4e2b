"""
Payment Audit Log Model — Immutable, tamper-evident trail per gateway order id.
Every lifecycle step is SHA-256 hashed and chained to the previous one.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON

from app.database import Base


class PaymentAuditLog(Base):
    __tablename__ = "payment_audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    alif_order_id = Column(String(64), nullable=False, index=True)

    action = Column(String(50), nullable=False)
    # Actions: PAYMENT_INITIATED, CALLBACK_APPLIED, CALLBACK_IGNORED, ORDER_CONFIRMED

    payload_hash = Column(String(64))       # chain hash of the action payload
    previous_hash = Column(String(64))      # Hash chain for tamper detection

    ip_address = Column(String(45))

    log_metadata = Column(JSON, default=dict)
    timestamp = Column(DateTime, default=datetime.utcnow)
