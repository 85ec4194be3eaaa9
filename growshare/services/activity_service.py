"""Activity feed and point awards.

Entries are written inside a SAVEPOINT on the caller's transaction. A
failure here is logged and does not abort the booking change that caused
it; if that change is rolled back, its activities go with it.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from growshare.models.user import User, UserActivity

logger = logging.getLogger(__name__)


class ActivityType:
    BOOKING_CREATED = "BOOKING_CREATED"
    BOOKING_APPROVED = "BOOKING_APPROVED"
    BOOKING_REJECTED = "BOOKING_REJECTED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    BOOKING_ACTIVATED = "BOOKING_ACTIVATED"
    BOOKING_COMPLETED = "BOOKING_COMPLETED"
    DISPUTE_FILED = "DISPUTE_FILED"
    DISPUTE_RESOLVED = "DISPUTE_RESOLVED"


@dataclass
class ActivityEntry:
    user_id: UUID
    activity_type: str
    title: str
    description: str | None = None
    points: int = 0
    booking_id: UUID | None = None


class ActivityService:
    """Records user activities and keeps ``User.total_points`` in step."""

    async def record(self, db: AsyncSession, *entries: ActivityEntry) -> bool:
        """Write activity rows and point awards in one savepoint.

        Returns:
            bool: False when the savepoint was rolled back
        """
        if not entries:
            return True

        try:
            async with db.begin_nested():
                for entry in entries:
                    db.add(
                        UserActivity(
                            user_id=entry.user_id,
                            activity_type=entry.activity_type,
                            title=entry.title,
                            description=entry.description,
                            points=entry.points,
                            booking_id=entry.booking_id,
                        )
                    )
                    if entry.points:
                        await db.execute(
                            update(User)
                            .where(User.id == entry.user_id)
                            .values(total_points=User.total_points + entry.points)
                        )
        except SQLAlchemyError:
            logger.exception(
                "Failed to record activities: "
                + ", ".join(f"{e.activity_type}->{e.user_id}" for e in entries)
            )
            return False
        return True


# Singleton instance
activity_service = ActivityService()
