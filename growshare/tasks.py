"""Celery background tasks.

- Notification delivery for notices dispatched after commit
- The daily lifecycle sweep that starts and completes leases
"""

import asyncio
import logging
from datetime import date
from typing import Any
from uuid import UUID

from celery import shared_task

from growshare.core.immutability import register_immutability_enforcement
from growshare.database import engine, get_db_context
from growshare.services.booking_service import booking_service
from growshare.services.notification_service import notification_service
from growshare.worker import celery_app  # noqa: F401  current app for shared tasks

logger = logging.getLogger(__name__)

register_immutability_enforcement()


def run_async(coro):
    """Run async function in sync context.

    Each task gets its own event loop, so pooled connections are released
    before the loop closes.
    """

    async def runner():
        try:
            return await coro
        finally:
            await notification_service.close()
            await engine.dispose()

    return asyncio.run(runner())


# ==================== NOTIFICATION TASKS ====================


@shared_task(bind=True, max_retries=3)
def deliver_notification(self, recipient_id: str, template_type: str, payload: dict[str, Any]):
    """Write the in-app notification and e-mail the recipient."""
    try:
        delivered = run_async(_deliver_notification(UUID(recipient_id), template_type, payload))
    except Exception as exc:
        logger.warning(f"Delivery of {template_type} to {recipient_id} failed: {exc}")
        raise self.retry(exc=exc, countdown=60)
    return {"status": "delivered" if delivered else "skipped", "type": template_type}


async def _deliver_notification(
    recipient_id: UUID, template_type: str, payload: dict[str, Any]
) -> bool:
    async with get_db_context() as db:
        notification = await notification_service.deliver(db, recipient_id, template_type, payload)
        return notification is not None


# ==================== LIFECYCLE TASKS ====================


@shared_task(bind=True, max_retries=3)
def advance_booking_lifecycle(self, today: str | None = None):
    """Activate approved bookings that have started and complete ended ones.

    Runs daily at ``lifecycle_sweep_hour`` UTC.
    """
    try:
        counts = run_async(_advance_booking_lifecycle(date.fromisoformat(today) if today else None))
    except Exception as exc:
        logger.exception("Booking lifecycle sweep failed")
        raise self.retry(exc=exc, countdown=300)
    return {"status": "success", **counts}


async def _advance_booking_lifecycle(today: date | None) -> dict[str, int]:
    async with get_db_context() as db:
        return await booking_service.advance_lifecycle(db, today)
