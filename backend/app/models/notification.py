"""
SMS Models — Staff message templates and the at-most-once outbox.
"""
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, DateTime, Boolean, Text, ForeignKey, UniqueConstraint,
)

from app.database import Base


class SmsTemplate(Base):
    __tablename__ = "sms_templates"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    name = Column(String(64), nullable=False, index=True)
    # admin_payment_notification | delivery_team_notification

    phone_number = Column(String(64), nullable=False)   # may hold {{manager_phone}} etc.
    text_template = Column(Text, nullable=False)
    sender_address = Column(String(16), default="SAKINA")
    priority = Column(Integer, default=1)
    sms_type = Column(Integer, default=2)

    is_active = Column(Boolean, default=True)
    order_index = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)


class SmsOutbox(Base):
    """One row per message; a row is sent at most once."""

    __tablename__ = "sms_outbox"
    __table_args__ = (
        UniqueConstraint("payment_id", "checkpoint", "phone_number", name="uq_sms_outbox_once"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    payment_id = Column(Integer, ForeignKey("payments.id"), nullable=False, index=True)
    checkpoint = Column(String(16), nullable=False)     # pending | confirmed

    phone_number = Column(String(32), nullable=False)
    text = Column(Text, nullable=False)
    sender_address = Column(String(16))

    status = Column(String(16), default="queued")       # queued | sent | failed
    error = Column(String(512))

    created_at = Column(DateTime, default=datetime.utcnow)
    attempted_at = Column(DateTime, nullable=True)
