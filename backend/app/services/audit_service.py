"""
Audit Service — Manages the immutable, hash-chained payment audit trail.
"""
from datetime import datetime
from typing import Optional, Dict

from sqlalchemy.orm import Session

from app.models.audit import PaymentAuditLog
from app.utils.hashing import chain_digest


class AuditService:
    """Creates tamper-evident audit log entries, chained per gateway order id."""

    @staticmethod
    def log(
        db: Session,
        alif_order_id: str,
        action: str,
        payload: Optional[Dict] = None,
        ip_address: Optional[str] = None,
        metadata: Optional[Dict] = None,
        commit: bool = True,
    ) -> PaymentAuditLog:
        """Append an audit entry for a payment.

        Args:
            db: Database session.
            alif_order_id: Gateway order id the entry belongs to.
            action: Action identifier (e.g. PAYMENT_INITIATED, CALLBACK_APPLIED).
            payload: Data payload to hash. Stored alongside so the chain can be re-verified.
            ip_address: Client IP.
            metadata: Additional metadata to store.
            commit: Commit immediately. Pass False to join the caller's transaction.

        Returns:
            The created PaymentAuditLog entry.
        """
        last_entry = (
            db.query(PaymentAuditLog)
            .filter(PaymentAuditLog.alif_order_id == alif_order_id)
            .order_by(PaymentAuditLog.id.desc())
            .first()
        )
        previous_hash = last_entry.payload_hash if last_entry else ""
        payload_data = payload or {}

        entry = PaymentAuditLog(
            alif_order_id=alif_order_id,
            action=action,
            payload_hash=chain_digest(previous_hash, payload_data),
            previous_hash=previous_hash,
            ip_address=ip_address,
            log_metadata={**(metadata or {}), "payload": payload_data},
            timestamp=datetime.utcnow(),
        )

        db.add(entry)
        if commit:
            db.commit()
            db.refresh(entry)
        else:
            db.flush()

        return entry

    @staticmethod
    def get_trail(db: Session, alif_order_id: str) -> list[PaymentAuditLog]:
        """Full audit trail for a payment, oldest first."""
        return (
            db.query(PaymentAuditLog)
            .filter(PaymentAuditLog.alif_order_id == alif_order_id)
            .order_by(PaymentAuditLog.id.asc())
            .all()
        )

    @staticmethod
    def verify_chain(db: Session, alif_order_id: str) -> dict:
        """Check both the links and the stored payloads of a payment's audit chain.

        Returns:
            dict with 'valid' (bool), 'total_entries', and 'broken_at' (if invalid).
        """
        entries = AuditService.get_trail(db, alif_order_id)

        previous_hash = ""
        for entry in entries:
            payload = (entry.log_metadata or {}).get("payload", {})
            if entry.previous_hash != previous_hash or entry.payload_hash != chain_digest(previous_hash, payload):
                return {
                    "valid": False,
                    "total_entries": len(entries),
                    "broken_at": entry.id,
                    "message": f"Chain broken at entry {entry.id} ({entry.action})",
                }
            previous_hash = entry.payload_hash

        return {"valid": True, "total_entries": len(entries), "broken_at": None}
