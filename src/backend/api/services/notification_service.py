"""
Customer status notifications.

Notifications are best effort: `NotificationTrigger.fire` runs after the
state change has committed, records every attempt in `notification_logs`
and never raises. No retries.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from core.async_utils import run_blocking
from core.config import EmailSettings, settings
from core.database import run_transaction
from core.logging_config import BookingLogger
from core.metrics import track_notification
from core.sanitizer import escape_for_html
from crud import notification_log_crud
from db.enums import NotificationStatus, RequestStatus
from db.models import TechRequest, utc_now

logger = logging.getLogger(__name__)
booking_logger = BookingLogger("notifications")

STATUS_LABELS = {
    RequestStatus.PENDING: "received",
    RequestStatus.IN_PROGRESS: "in progress",
    RequestStatus.COMPLETED: "completed",
    RequestStatus.CANCELLED: "cancelled",
}

STATUS_MESSAGES = {
    RequestStatus.PENDING: "We received your request. A volunteer will contact you soon.",
    RequestStatus.IN_PROGRESS: "A volunteer has taken your request and is working on it.",
    RequestStatus.COMPLETED: "Your request has been completed. Thank you for reaching out.",
    RequestStatus.CANCELLED: "Your request has been cancelled.",
}


def build_subject(request_id: int, status: RequestStatus) -> str:
    return f"Tech support request #{request_id}: {STATUS_LABELS[status]}"


class Notifier(Protocol):
    """Delivery channel for status change messages."""

    is_configured: bool

    async def notify_status_change(
        self, email: str, name: str, request_id: int, status: RequestStatus
    ) -> bool:
        ...


class SmtpNotifier:
    """Sends plain-text + HTML status emails over SMTP."""

    is_configured = True

    def __init__(self, email_settings: EmailSettings):
        self.settings = email_settings

    def build_message(
        self, email: str, name: str, request_id: int, status: RequestStatus
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.settings.smtp_from
        msg["To"] = email
        msg["Subject"] = build_subject(request_id, status)

        text = STATUS_MESSAGES[status]
        body = f"""Hello {name},

{text}

Request number: {request_id}
Status: {STATUS_LABELS[status]}
"""
        html = (
            f"<p>Hello {escape_for_html(name)},</p>"
            f"<p>{text}</p>"
            f"<p>Request number: <strong>{request_id}</strong><br>"
            f"Status: <strong>{STATUS_LABELS[status]}</strong></p>"
        )
        msg.attach(MIMEText(body, "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def _send(self, msg: MIMEMultipart) -> None:
        cfg = self.settings
        if cfg.smtp_port == 465:
            server = smtplib.SMTP_SSL(cfg.smtp_host, cfg.smtp_port, timeout=cfg.smtp_timeout)
        else:
            server = smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.smtp_timeout)

        try:
            if cfg.smtp_tls and cfg.smtp_port != 465:
                server.starttls()
            if cfg.smtp_user and cfg.smtp_password:
                server.login(cfg.smtp_user, cfg.smtp_password)
            server.send_message(msg)
        finally:
            server.quit()

    async def notify_status_change(
        self, email: str, name: str, request_id: int, status: RequestStatus
    ) -> bool:
        msg = self.build_message(email, name, request_id, status)
        await run_blocking(self._send, msg)
        logger.info(f"Status email sent | Request ID: {request_id} | To: {email}")
        return True


class LoggingNotifier:
    """Used while SMTP is not configured: logs instead of sending."""

    is_configured = False

    async def notify_status_change(
        self, email: str, name: str, request_id: int, status: RequestStatus
    ) -> bool:
        logger.info(
            f"Email not configured, skipping | Request ID: {request_id} | "
            f"To: {email} | Subject: {build_subject(request_id, status)}"
        )
        return False


def get_notifier() -> Notifier:
    """FastAPI dependency: the notifier for the current settings."""
    if settings.email.is_configured:
        return SmtpNotifier(settings.email)
    return LoggingNotifier()


class NotificationTrigger:
    """Fires customer notifications after a committed state change."""

    @staticmethod
    async def fire(
        db: AsyncSession,
        notifier: Notifier,
        request: TechRequest,
        status: RequestStatus,
    ) -> bool:
        """
        Notify the customer of `request` about `status`.

        Any exception or False result is logged and recorded; nothing
        propagates to the caller.

        Returns:
            True if the notifier reported delivery
        """
        status = RequestStatus(status)
        email: Optional[str] = request.email
        if not email:
            logger.debug(f"Request {request.id} has no email, notification skipped")
            return False

        error: Optional[str] = None
        try:
            delivered = bool(
                await notifier.notify_status_change(email, request.full_name, request.id, status)
            )
        except Exception as exc:
            delivered = False
            error = f"{type(exc).__name__}: {exc}"

        if delivered:
            outcome = NotificationStatus.SENT
        elif error is None and not getattr(notifier, "is_configured", True):
            outcome = NotificationStatus.NOT_SENT
        else:
            outcome = NotificationStatus.FAILED
            booking_logger.notification_failed(request.id, email, error or "notifier reported failure")

        track_notification(outcome.value)
        await NotificationTrigger._record(db, request.id, email, status, outcome, error)
        return delivered

    @staticmethod
    async def _record(
        db: AsyncSession,
        request_id: int,
        email: str,
        status: RequestStatus,
        outcome: NotificationStatus,
        error: Optional[str],
    ) -> None:
        message = build_subject(request_id, status)
        if error:
            message = f"{message} | {error}"

        try:
            await run_transaction(
                db,
                lambda session: notification_log_crud.create_log(
                    session,
                    recipient=email,
                    message=message[:1000],
                    status=outcome,
                    request_id=request_id,
                    sent_at=utc_now() if outcome == NotificationStatus.SENT else None,
                ),
                operation_name="record_notification",
            )
        except Exception as exc:
            logger.warning(f"Could not record notification for request {request_id}: {exc}")
