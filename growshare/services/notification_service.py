"""Notification dispatch and delivery.

Engine operations never talk to a channel directly. They queue notices on
the session; the notices are handed to a ``NotificationDispatcher`` only
after the transaction commits, so a rolled-back change notifies no one.
Dispatch is best-effort: failures are logged and never reach the caller.

Delivery (in-app row + e-mail) happens in the ``deliver_notification``
Celery task, which calls :meth:`NotificationService.deliver`.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

import httpx
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from growshare.config import settings
from growshare.models.notification import Notification
from growshare.models.user import User

logger = logging.getLogger(__name__)

OUTBOX_KEY = "notification_outbox"


class NotificationType:
    """Notification template types."""

    BOOKING_REQUEST = "BOOKING_REQUEST"
    BOOKING_APPROVED = "BOOKING_APPROVED"
    BOOKING_REJECTED = "BOOKING_REJECTED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    BOOKING_ACTIVE = "BOOKING_ACTIVE"
    BOOKING_COMPLETED = "BOOKING_COMPLETED"
    DISPUTE_FILED = "DISPUTE_FILED"
    DISPUTE_UNDER_REVIEW = "DISPUTE_UNDER_REVIEW"
    DISPUTE_RESOLVED = "DISPUTE_RESOLVED"


# template type -> (title, content format, link format)
TEMPLATES: dict[str, tuple[str, str, str]] = {
    NotificationType.BOOKING_REQUEST: (
        "New Booking Request",
        '{renter_name} has requested to book your plot "{plot_title}"',
        "/manage-bookings",
    ),
    NotificationType.BOOKING_APPROVED: (
        "Booking Approved",
        'Your booking request for "{plot_title}" has been approved!',
        "/my-bookings",
    ),
    NotificationType.BOOKING_REJECTED: (
        "Booking Rejected",
        'Your booking request for "{plot_title}" has been rejected.',
        "/my-bookings",
    ),
    NotificationType.BOOKING_CANCELLED: (
        "Booking Cancelled",
        'The booking for "{plot_title}" has been cancelled by {cancelled_by}.',
        "/my-bookings",
    ),
    NotificationType.BOOKING_ACTIVE: (
        "Lease Started",
        'Your lease for "{plot_title}" is now active.',
        "/my-bookings",
    ),
    NotificationType.BOOKING_COMPLETED: (
        "Lease Completed",
        'Your lease for "{plot_title}" has been completed.',
        "/my-bookings",
    ),
    NotificationType.DISPUTE_FILED: (
        "Dispute Filed",
        "A dispute has been filed for booking #{booking_ref}. Please review and respond.",
        "/bookings/{booking_id}/dispute",
    ),
    NotificationType.DISPUTE_UNDER_REVIEW: (
        "Dispute Under Review",
        "The dispute for booking #{booking_ref} is now under review.",
        "/bookings/{booking_id}/dispute",
    ),
    NotificationType.DISPUTE_RESOLVED: (
        "Dispute Resolved",
        "The dispute for booking #{booking_ref} has been resolved.",
        "/bookings/{booking_id}/dispute",
    ),
}


def booking_reference(booking_id: UUID | str) -> str:
    """Short human-facing booking reference."""
    return str(booking_id).replace("-", "")[-6:].upper()


def render_template(template_type: str, payload: dict[str, Any]) -> tuple[str, str, str | None]:
    """Render (title, content, link) for a template, tolerating missing fields."""
    if template_type not in TEMPLATES:
        return template_type.replace("_", " ").title(), str(payload.get("content", "")), None

    title, content_fmt, link_fmt = TEMPLATES[template_type]
    values = _DefaultDict(payload)
    if "booking_id" in payload and "booking_ref" not in payload:
        values["booking_ref"] = booking_reference(payload["booking_id"])
    return title, content_fmt.format_map(values), link_fmt.format_map(values)


class _DefaultDict(dict):
    def __missing__(self, key: str) -> str:
        return ""


@runtime_checkable
class NotificationDispatcher(Protocol):
    """Best-effort outbound notification port."""

    def dispatch(self, recipient_id: UUID, template_type: str, payload: dict[str, Any]) -> bool:
        """Hand a notice off for delivery; True when accepted."""
        ...


class CeleryNotificationDispatcher:
    """Enqueue notices on the Celery broker."""

    def dispatch(self, recipient_id: UUID, template_type: str, payload: dict[str, Any]) -> bool:
        from growshare.tasks import deliver_notification

        if not settings.notifications_enabled:
            logger.debug(f"Notifications disabled; dropping {template_type} for {recipient_id}")
            return False
        deliver_notification.delay(str(recipient_id), template_type, _jsonable(payload))
        return True


def _jsonable(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value if isinstance(value, (int, float, bool, type(None))) else str(value)
            for key, value in payload.items()}


@dataclass
class QueuedNotice:
    dispatcher: NotificationDispatcher
    recipient_id: UUID
    template_type: str
    payload: dict[str, Any] = field(default_factory=dict)


def queue_notification(
    db: AsyncSession,
    dispatcher: NotificationDispatcher,
    recipient_id: UUID,
    template_type: str,
    payload: dict[str, Any],
) -> None:
    """Queue a notice for dispatch once ``db`` commits."""
    db.info.setdefault(OUTBOX_KEY, []).append(
        QueuedNotice(dispatcher, recipient_id, template_type, dict(payload))
    )


def dispatch_safely(notice: QueuedNotice) -> bool:
    try:
        accepted = notice.dispatcher.dispatch(
            notice.recipient_id, notice.template_type, notice.payload
        )
    except Exception:
        logger.exception(
            f"Notification dispatch failed: type={notice.template_type} "
            f"recipient={notice.recipient_id}"
        )
        return False
    if not accepted:
        logger.warning(
            f"Notification not accepted: type={notice.template_type} "
            f"recipient={notice.recipient_id}"
        )
    return bool(accepted)


@event.listens_for(Session, "after_commit")
def _flush_outbox(session: Session) -> None:
    notices: list[QueuedNotice] = session.info.pop(OUTBOX_KEY, [])
    for notice in notices:
        dispatch_safely(notice)


@event.listens_for(Session, "after_rollback")
def _discard_outbox(session: Session) -> None:
    dropped = session.info.pop(OUTBOX_KEY, [])
    if dropped:
        logger.info(f"Discarded {len(dropped)} queued notification(s) after rollback")


class NotificationService:
    """Delivers dispatched notices: in-app row plus e-mail."""

    def __init__(self) -> None:
        """Initialize notification service."""
        self._http_client: httpx.AsyncClient | None = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Lazy-load HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=30.0)
        return self._http_client

    @http_client.setter
    def http_client(self, client: httpx.AsyncClient) -> None:
        self._http_client = client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def create_notification(
        self,
        db: AsyncSession,
        user_id: UUID,
        notification_type: str,
        title: str,
        content: str,
        link: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Notification:
        """Create an in-app notification."""
        notification = Notification(
            user_id=user_id,
            notification_type=notification_type,
            title=title,
            content=content,
            link=link,
            payload=payload,
        )
        db.add(notification)
        await db.flush()
        return notification

    async def send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        """Send an email via SendGrid.

        Returns:
            bool: True if SendGrid accepted the message
        """
        if not settings.sendgrid_api_key:
            return False

        payload = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {
                "email": settings.email_from_address,
                "name": settings.email_from_name,
            },
            "subject": subject,
            "content": [{"type": "text/html", "value": html_content}],
        }
        try:
            response = await self.http_client.post(
                "https://api.sendgrid.com/v3/mail/send",
                headers={
                    "Authorization": f"Bearer {settings.sendgrid_api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.warning(f"SendGrid request failed for {to_email}: {e}")
            return False
        return response.status_code in (200, 202)

    async def deliver(
        self,
        db: AsyncSession,
        recipient_id: UUID,
        template_type: str,
        payload: dict[str, Any],
        send_email: bool = True,
    ) -> Notification | None:
        """Write the in-app notification and e-mail the recipient."""
        result = await db.execute(select(User).where(User.id == recipient_id))
        user = result.scalar_one_or_none()
        if not user:
            logger.warning(f"Dropping {template_type}: recipient {recipient_id} not found")
            return None

        title, content, link = render_template(template_type, payload)
        notification = await self.create_notification(
            db=db,
            user_id=user.id,
            notification_type=template_type,
            title=title,
            content=content,
            link=link,
            payload=payload,
        )

        if send_email and user.email:
            action_url = f"{settings.public_base_url}{link}" if link else None
            notification.email_sent = await self.send_email(
                to_email=user.email,
                subject=title,
                html_content=self._generate_email_html(title, content, action_url),
            )
        return notification

    def _generate_email_html(self, title: str, body: str, action_url: str | None) -> str:
        """Generate simple HTML email content."""
        button_html = ""
        if action_url:
            button_html = f"""
            <p style="margin-top: 24px;">
                <a href="{action_url}"
                   style="background-color: #15803d; color: white; padding: 12px 24px;
                          text-decoration: none; border-radius: 6px; display: inline-block;">
                    View Details
                </a>
            </p>
            """

        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
        </head>
        <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                     max-width: 600px; margin: 0 auto; padding: 20px; color: #333;">
            <div style="background-color: #f9fafb; border-radius: 8px; padding: 24px;">
                <h1 style="color: #111827; font-size: 24px; margin-bottom: 16px;">{title}</h1>
                <p style="color: #4b5563; font-size: 16px; line-height: 1.6;">{body}</p>
                {button_html}
            </div>
            <p style="color: #9ca3af; font-size: 12px; margin-top: 24px; text-align: center;">
                &copy; {datetime.now(UTC).year} GrowShare. All rights reserved.
            </p>
        </body>
        </html>
        """


# Singleton instances
notification_service = NotificationService()
default_dispatcher = CeleryNotificationDispatcher()
