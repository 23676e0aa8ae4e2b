"""
Notification Service — staff SMS at payment checkpoints.

Messages go through the `sms_outbox` table: a row is claimed before the
provider call and is never sent twice, so redelivered callbacks cannot
produce duplicate texts. Delivery is best-effort and never affects
payment state.
"""
from datetime import datetime, timezone
from typing import Optional

import httpx
import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.config import Settings
from app.exceptions import NotFoundError, NotificationDeliveryError, ValidationError
from app.models.notification import SmsOutbox, SmsTemplate
from app.models.payment import PaymentRecord
from app.services.sms_formatter import (
    TEMPLATE_BY_CHECKPOINT, OutgoingSms, build_context, default_message, render,
)
from app.utils.validators import clean_phone_number

logger = structlog.get_logger().bind(component="notifications")


class SmsGatewayClient:
    """Bulk SMS provider: POST a JSON list of messages with an X-Api-Key header.

    Sends usually run in background tasks after the request scope is gone,
    so without an injected client each send opens its own connection.
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        self._client = http_client

    def send_bulk(self, messages: list[OutgoingSms]) -> None:
        scheduled_at = datetime.now(timezone.utc).isoformat()
        body = [
            {
                "PhoneNumber": m.phone_number,
                "Text": m.text,
                "SenderAddress": m.sender_address,
                "Priority": m.priority,
                "SmsType": m.sms_type,
                "ScheduledAt": scheduled_at,
                "ExpiresIn": 10,  # minutes
            }
            for m in messages
        ]
        headers = {"X-Api-Key": self.settings.SMS_API_KEY}
        if self._client is not None:
            response = self._client.post(self.settings.SMS_API_URL, json=body, headers=headers)
        else:
            with httpx.Client(timeout=self.settings.SMS_TIMEOUT_SECONDS) as client:
                response = client.post(self.settings.SMS_API_URL, json=body, headers=headers)
        response.raise_for_status()


class NotificationDispatcher:
    """Composes, records and sends checkpoint SMS for a payment."""

    def __init__(self, session_factory: sessionmaker, settings: Settings, sms_client: SmsGatewayClient):
        self.session_factory = session_factory
        self.settings = settings
        self.sms_client = sms_client

    def notify(self, payment_id: int, checkpoint: str) -> None:
        """Fire-and-forget entry point for background tasks. Never raises."""
        try:
            self.dispatch(payment_id, checkpoint)
        except Exception as exc:  # best-effort
            logger.warning(
                "notification_dropped",
                payment_id=payment_id,
                checkpoint=checkpoint,
                error=str(exc),
            )

    def dispatch(self, payment_id: int, checkpoint: str) -> int:
        """Send the checkpoint SMS once. Returns how many messages were sent now.

        Raises:
            ValidationError: unsupported checkpoint.
            NotFoundError: unknown payment.
            NotificationDeliveryError: the provider call failed (rows are marked failed).
        """
        if checkpoint not in TEMPLATE_BY_CHECKPOINT:
            raise ValidationError("No SMS to send for this status")

        db = self.session_factory()
        try:
            payment = db.get(PaymentRecord, payment_id)
            if payment is None:
                raise NotFoundError("Payment not found")

            messages = self.compose(db, payment, checkpoint)
            if not messages:
                logger.warning("notification_no_recipient", payment_id=payment_id, checkpoint=checkpoint)
                return 0

            rows = self._claim(db, payment_id, checkpoint, messages)
            if not rows:
                logger.info("notification_already_sent", payment_id=payment_id, checkpoint=checkpoint)
                return 0

            return self._deliver(db, rows, messages)
        finally:
            db.close()

    def compose(self, db: Session, payment: PaymentRecord, checkpoint: str) -> list[OutgoingSms]:
        manager_phone = self.settings.MANAGER_PHONE
        delivery_phone = self.settings.DELIVERY_PHONE
        context = build_context(payment, checkpoint, manager_phone, delivery_phone)

        templates = (
            db.query(SmsTemplate)
            .filter(
                SmsTemplate.name == TEMPLATE_BY_CHECKPOINT[checkpoint],
                SmsTemplate.is_active.is_(True),
            )
            .order_by(SmsTemplate.order_index.asc())
            .all()
        )
        if templates:
            messages = [
                OutgoingSms(
                    phone_number=clean_phone_number(render(t.phone_number, context)),
                    text=render(t.text_template, context).strip(),
                    sender_address=t.sender_address or self.settings.SMS_SENDER,
                    priority=t.priority or 1,
                    sms_type=t.sms_type or 2,
                )
                for t in templates
            ]
        else:
            recipient = manager_phone if checkpoint == "pending" else delivery_phone
            messages = [
                OutgoingSms(
                    phone_number=clean_phone_number(recipient),
                    text=default_message(checkpoint, context),
                    sender_address=self.settings.SMS_SENDER,
                )
            ]
        return [m for m in messages if m.phone_number]

    def _claim(self, db: Session, payment_id: int, checkpoint: str, messages: list[OutgoingSms]) -> list[SmsOutbox]:
        """Insert queued outbox rows for messages not seen before."""
        already = {
            phone for (phone,) in db.query(SmsOutbox.phone_number).filter(
                SmsOutbox.payment_id == payment_id,
                SmsOutbox.checkpoint == checkpoint,
            )
        }
        rows = []
        for m in messages:
            if m.phone_number in already:
                continue
            already.add(m.phone_number)
            rows.append(SmsOutbox(
                payment_id=payment_id,
                checkpoint=checkpoint,
                phone_number=m.phone_number,
                text=m.text,
                sender_address=m.sender_address,
                status="queued",
            ))
        if not rows:
            return []
        try:
            db.add_all(rows)
            db.commit()
        except IntegrityError:
            # another worker claimed the same checkpoint first
            db.rollback()
            return []
        return rows

    def _deliver(self, db: Session, rows: list[SmsOutbox], messages: list[OutgoingSms]) -> int:
        claimed = {row.phone_number: row.text for row in rows}
        batch = [m for m in messages if claimed.pop(m.phone_number, None) is not None]
        now = datetime.utcnow()
        try:
            self.sms_client.send_bulk(batch)
        except httpx.HTTPError as exc:
            for row in rows:
                row.status, row.error, row.attempted_at = "failed", str(exc)[:512], now
            self._commit_quietly(db)
            logger.error("sms_delivery_failed", payment_id=rows[0].payment_id, error=str(exc))
            raise NotificationDeliveryError("Failed to send SMS") from exc

        for row in rows:
            row.status, row.attempted_at = "sent", now
        self._commit_quietly(db)
        logger.info(
            "sms_sent",
            payment_id=rows[0].payment_id,
            checkpoint=rows[0].checkpoint,
            messages=len(batch),
        )
        return len(batch)

    @staticmethod
    def _commit_quietly(db: Session) -> None:
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("sms_outbox_update_failed", error=str(exc))
