"""Celery worker configuration.

Background work for the booking engine:
- Notification delivery (in-app + e-mail), queue ``notifications``
- Daily booking lifecycle sweep, queue ``lifecycle``
"""

from celery import Celery
from celery.schedules import crontab

from growshare.config import settings

celery_app = Celery(
    "growshare_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["growshare.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # A sweep interrupted mid-run is simply picked up again; each booking
    # commits on its own and already-moved bookings no longer match.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,
    task_soft_time_limit=240,

    # Slow SendGrid calls must not hold up the lifecycle sweep
    task_routes={
        "growshare.tasks.deliver_notification": {"queue": "notifications"},
        "growshare.tasks.advance_booking_lifecycle": {"queue": "lifecycle"},
    },
    task_default_queue="notifications",

    worker_prefetch_multiplier=1,
    result_expires=3600,

    beat_schedule={
        "advance-booking-lifecycle": {
            "task": "growshare.tasks.advance_booking_lifecycle",
            "schedule": crontab(hour=settings.lifecycle_sweep_hour, minute=0),
        },
    },
)


if __name__ == "__main__":
    celery_app.start()
