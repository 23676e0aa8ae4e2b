"""
Admin Routes — Payments dashboard, stale-payment sweep, audit trail and SMS templates.
"""
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func

from app.config import Settings, get_settings
from app.database import get_db
from app.exceptions import NotFoundError
from app.models.audit import PaymentAuditLog
from app.models.notification import SmsTemplate
from app.models.payment import PaymentRecord, PaymentStatus
from app.schemas.schemas import (
    AuditLogEntry, PaymentListItem, PaymentListResponse, PaymentStatsResponse,
    SmsTemplateIn, SmsTemplateOut,
)
from app.services.audit_service import AuditService

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/payments", response_model=PaymentListResponse)
def list_payments(
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    """List payments, newest first, with optional status filter."""
    query = db.query(PaymentRecord).order_by(PaymentRecord.created_at.desc(), PaymentRecord.id.desc())
    if status:
        query = query.filter(PaymentRecord.status == status)

    total = query.count()
    payments = query.offset(offset).limit(limit).all()

    return PaymentListResponse(total=total, payments=[PaymentListItem.model_validate(p) for p in payments])


@router.get("/payments/stats", response_model=PaymentStatsResponse)
def payment_stats(db: Session = Depends(get_db)):
    """Aggregated counts per status and confirmed revenue."""
    rows = db.query(PaymentRecord.status, func.count(PaymentRecord.id)).group_by(PaymentRecord.status).all()
    distribution = {s.value: 0 for s in PaymentStatus}
    distribution.update({status: count for status, count in rows})
    total = sum(distribution.values())

    revenue = db.query(func.coalesce(func.sum(PaymentRecord.amount), 0)).filter(
        PaymentRecord.status == PaymentStatus.COMPLETED.value
    ).scalar()

    completed = distribution[PaymentStatus.COMPLETED.value]
    return PaymentStatsResponse(
        total_payments=total,
        status_distribution=distribution,
        completed_revenue=round(float(revenue or 0), 2),
        success_rate=round(completed / total * 100, 1) if total > 0 else 0.0,
    )


@router.get("/payments/stale", response_model=PaymentListResponse)
def stale_payments(
    older_than_minutes: Optional[int] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Pending payments whose callback never arrived; candidates for manual reconciliation."""
    minutes = older_than_minutes if older_than_minutes is not None else settings.STALE_PAYMENT_MINUTES
    cutoff = datetime.utcnow() - timedelta(minutes=minutes)

    payments = db.query(PaymentRecord).filter(
        PaymentRecord.status == PaymentStatus.PENDING.value,
        PaymentRecord.created_at < cutoff,
    ).order_by(PaymentRecord.created_at.asc()).all()

    return PaymentListResponse(total=len(payments), payments=[PaymentListItem.model_validate(p) for p in payments])


@router.get("/audit/{order_id}", response_model=list[AuditLogEntry])
def get_audit_trail(order_id: str, db: Session = Depends(get_db)):
    """Get the full audit trail for a payment."""
    logs = AuditService.get_trail(db, order_id)
    if not logs:
        raise NotFoundError("No audit logs found for this order")
    return logs


@router.get("/audit/{order_id}/verify")
def verify_audit_chain(order_id: str, db: Session = Depends(get_db)):
    """Verify the integrity of the audit hash chain for a payment."""
    exists = db.query(PaymentAuditLog.id).filter(PaymentAuditLog.alif_order_id == order_id).first()
    if not exists:
        raise NotFoundError("No audit logs found for this order")
    return AuditService.verify_chain(db, order_id)


@router.get("/sms-templates", response_model=list[SmsTemplateOut])
def list_sms_templates(db: Session = Depends(get_db)):
    return db.query(SmsTemplate).order_by(SmsTemplate.name, SmsTemplate.order_index).all()


@router.post("/sms-templates", response_model=SmsTemplateOut)
def upsert_sms_template(payload: SmsTemplateIn, db: Session = Depends(get_db)):
    """Create a template, or replace the one with the same name and order index."""
    template = db.query(SmsTemplate).filter(
        SmsTemplate.name == payload.name,
        SmsTemplate.order_index == payload.order_index,
    ).first()
    if template is None:
        template = SmsTemplate()
        db.add(template)

    for field, value in payload.model_dump().items():
        setattr(template, field, value)

    db.commit()
    db.refresh(template)
    return template
