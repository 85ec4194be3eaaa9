"""Booking lifecycle: creation, guarded transitions and the daily sweep."""

import logging
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from growshare.config import settings
from growshare.core.exceptions import (
    AppException,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from growshare.core.permissions import Actor
from growshare.domain.booking_state import (
    BookingParty,
    BookingStatus,
    allowed_parties,
    assert_booking_edge,
    assert_booking_transition,
)
from growshare.domain.cancellation_policy import (
    calculate_refund_amount,
    calculate_refund_percentage,
)
from growshare.models.booking import Booking
from growshare.models.plot import Plot
from growshare.models.user import User
from growshare.services.activity_service import ActivityEntry, ActivityService, ActivityType, activity_service
from growshare.services.availability_service import (
    AvailabilityService,
    BookingQuote,
    Clock,
    utc_today,
)
from growshare.services.notification_service import (
    NotificationDispatcher,
    NotificationType,
    default_dispatcher,
    queue_notification,
)

logger = logging.getLogger(__name__)

# When an actor holds several parties on an edge, act as the most specific one
_PARTY_PRECEDENCE = (
    BookingParty.RENTER,
    BookingParty.OWNER,
    BookingParty.SYSTEM,
    BookingParty.ADMIN,
)


def parties_for(booking: Booking, actor: Actor) -> set[BookingParty]:
    """Every party ``actor`` can act as on ``booking``."""
    parties: set[BookingParty] = set()
    if actor.is_system:
        parties.add(BookingParty.SYSTEM)
    if actor.id is not None:
        if actor.id == booking.owner_id:
            parties.add(BookingParty.OWNER)
        if actor.id == booking.renter_id:
            parties.add(BookingParty.RENTER)
    if actor.is_admin:
        parties.add(BookingParty.ADMIN)
    return parties


def acting_party(
    current: BookingStatus, target: BookingStatus, parties: set[BookingParty]
) -> BookingParty:
    allowed = allowed_parties(current, target) & parties
    for party in _PARTY_PRECEDENCE:
        if party in allowed:
            return party
    raise ValueError(f"No party allowed for {current.value} → {target.value}")


class BookingService:
    """Owns the booking state machine and its side effects."""

    def __init__(
        self,
        dispatcher: NotificationDispatcher = default_dispatcher,
        clock: Clock = utc_today,
        activities: ActivityService = activity_service,
    ) -> None:
        self.dispatcher = dispatcher
        self.clock = clock
        self.activities = activities
        self.availability = AvailabilityService(clock=clock)

    async def quote(
        self, db: AsyncSession, plot_id: UUID, renter: Actor, start_date, end_date
    ) -> BookingQuote:
        """Availability check without a lock or an insert."""
        return await self.availability.check_booking_request(
            db, plot_id, renter.id, start_date, end_date, lock=False
        )

    async def create_booking(
        self,
        db: AsyncSession,
        plot_id: UUID,
        renter: Actor,
        start_date,
        end_date,
        message: str | None = None,
    ) -> Booking:
        """Create a booking in its initial state.

        The plot row is locked for the check and insert, so two overlapping
        requests cannot both succeed.
        """
        quote = await self.availability.check_booking_request(
            db, plot_id, renter.id, start_date, end_date, lock=True
        )
        renter_user = await self._get_user(db, renter.id)
        plot = quote.plot

        booking = Booking(
            plot=plot,
            renter=renter_user,
            start_date=quote.start_date,
            end_date=quote.end_date,
            status=quote.initial_status.value,
            monthly_rate=quote.monthly_rate,
            duration_months=quote.duration_months,
            total_amount=quote.total_amount,
            security_deposit=quote.security_deposit,
            message=message.strip() if message and message.strip() else None,
        )
        if quote.initial_status == BookingStatus.APPROVED:
            booking.approved_at = datetime.now(UTC)
        db.add(booking)
        await db.flush()

        await self.activities.record(
            db,
            ActivityEntry(
                user_id=renter_user.id,
                activity_type=ActivityType.BOOKING_CREATED,
                title=f"Booked {plot.title}",
                description=f"Requested {quote.start_date} to {quote.end_date}",
                points=settings.booking_created_points,
                booking_id=booking.id,
            ),
        )

        payload = self._payload(booking)
        if booking.status == BookingStatus.PENDING.value:
            queue_notification(
                db, self.dispatcher, plot.owner_id, NotificationType.BOOKING_REQUEST, payload
            )
        else:
            queue_notification(
                db, self.dispatcher, renter_user.id, NotificationType.BOOKING_APPROVED, payload
            )

        await db.commit()
        logger.info(
            f"Booking {booking.id} created for plot {plot.id} "
            f"({booking.start_date}..{booking.end_date}) status={booking.status}"
        )
        return booking

    async def transition_booking(
        self,
        db: AsyncSession,
        booking_id: UUID,
        actor: Actor,
        target_status: BookingStatus | str,
    ) -> Booking:
        """Move a booking along the state machine and apply side effects.

        Raises:
            InvalidOperationError: Unknown target, missing edge, terminal source,
                or a party not allowed on the edge
            NotFoundError: Booking does not exist
            ForbiddenError: Actor is neither party nor admin
        """
        target = self._parse_status(target_status, error=InvalidOperationError)
        booking = await self._get_booking(db, booking_id, lock=True)
        previous = BookingStatus(booking.status)

        # Edge validity does not depend on who asks
        assert_booking_edge(previous, target)

        parties = parties_for(booking, actor)
        if not parties:
            raise ForbiddenError("You don't have permission to modify this booking")

        assert_booking_transition(previous, target, parties)
        party = acting_party(previous, target, parties)

        now = datetime.now(UTC)
        booking.status = target.value
        entries: list[ActivityEntry] = []
        notices: list[tuple[UUID, str]] = []
        title = booking.plot.title

        if target == BookingStatus.APPROVED:
            booking.approved_at = now
            entries += [
                ActivityEntry(
                    booking.owner_id, ActivityType.BOOKING_APPROVED,
                    f"Approved booking for {title}",
                    points=settings.booking_approved_points, booking_id=booking.id,
                ),
                ActivityEntry(
                    booking.renter_id, ActivityType.BOOKING_APPROVED,
                    f"Your booking for {title} was approved", booking_id=booking.id,
                ),
            ]
            notices.append((booking.renter_id, NotificationType.BOOKING_APPROVED))

        elif target == BookingStatus.REJECTED:
            booking.rejected_at = now
            entries.append(
                ActivityEntry(
                    booking.renter_id, ActivityType.BOOKING_REJECTED,
                    f"Your booking for {title} was rejected", booking_id=booking.id,
                )
            )
            notices.append((booking.renter_id, NotificationType.BOOKING_REJECTED))

        elif target == BookingStatus.CANCELLED:
            self._apply_cancellation(booking, previous, party, now)
            entries += self._cancellation_activities(booking, party)
            if party == BookingParty.ADMIN:
                notices += [
                    (booking.renter_id, NotificationType.BOOKING_CANCELLED),
                    (booking.owner_id, NotificationType.BOOKING_CANCELLED),
                ]
            else:
                notices.append((booking.owner_id, NotificationType.BOOKING_CANCELLED))

        elif target == BookingStatus.ACTIVE:
            booking.activated_at = now
            entries.append(
                ActivityEntry(
                    booking.renter_id, ActivityType.BOOKING_ACTIVATED,
                    f"Your lease for {title} started", booking_id=booking.id,
                )
            )
            notices.append((booking.renter_id, NotificationType.BOOKING_ACTIVE))

        elif target == BookingStatus.COMPLETED:
            booking.completed_at = now
            entries += [
                ActivityEntry(
                    booking.renter_id, ActivityType.BOOKING_COMPLETED,
                    f"Completed your lease for {title}", booking_id=booking.id,
                ),
                ActivityEntry(
                    booking.owner_id, ActivityType.BOOKING_COMPLETED,
                    f"Lease for {title} completed", booking_id=booking.id,
                ),
            ]
            notices.append((booking.renter_id, NotificationType.BOOKING_COMPLETED))

        await db.flush()
        await self.activities.record(db, *entries)

        payload = self._payload(booking)
        for recipient_id, template_type in notices:
            queue_notification(db, self.dispatcher, recipient_id, template_type, payload)

        await db.commit()
        logger.info(
            f"Booking {booking.id}: {previous.value} → {target.value} by {party.value}"
        )
        return booking

    async def get_booking_for_actor(
        self, db: AsyncSession, booking_id: UUID, actor: Actor
    ) -> Booking:
        booking = await self._get_booking(db, booking_id)
        if not parties_for(booking, actor):
            raise ForbiddenError("You don't have permission to view this booking")
        return booking

    async def list_bookings(
        self,
        db: AsyncSession,
        actor: Actor,
        as_owner: bool = False,
        status: BookingStatus | str | None = None,
    ) -> list[Booking]:
        """Bookings the actor made, or bookings on the actor's plots."""
        query = select(Booking)
        if as_owner:
            query = query.join(Plot, Booking.plot_id == Plot.id).where(Plot.owner_id == actor.id)
        else:
            query = query.where(Booking.renter_id == actor.id)
        if status:
            query = query.where(Booking.status == self._parse_status(status).value)

        result = await db.execute(query.order_by(Booking.created_at.desc()))
        return list(result.scalars().all())

    async def advance_lifecycle(self, db: AsyncSession, today: date | None = None) -> dict[str, int]:
        """Start leases that have begun and complete leases that have ended.

        Each booking is its own unit of work; a failure is logged and the
        sweep carries on.
        """
        today = today or self.clock()
        system = Actor.system()
        counts = {"activated": 0, "completed": 0, "failed": 0}

        sweeps = (
            (BookingStatus.APPROVED, Booking.start_date, BookingStatus.ACTIVE, "activated"),
            (BookingStatus.ACTIVE, Booking.end_date, BookingStatus.COMPLETED, "completed"),
        )
        for source, due_column, target, counter in sweeps:
            result = await db.execute(
                select(Booking.id)
                .where(Booking.status == source.value, due_column <= today)
                .order_by(due_column)
            )
            for booking_id in result.scalars().all():
                try:
                    await self.transition_booking(db, booking_id, system, target)
                except (AppException, SQLAlchemyError):
                    logger.exception(f"Lifecycle sweep failed for booking {booking_id}")
                    await db.rollback()
                    counts["failed"] += 1
                else:
                    counts[counter] += 1

        logger.info(
            f"Lifecycle sweep for {today}: {counts['activated']} activated, "
            f"{counts['completed']} completed, {counts['failed']} failed"
        )
        return counts

    def _apply_cancellation(
        self, booking: Booking, previous: BookingStatus, party: BookingParty, now: datetime
    ) -> None:
        refund_pct = calculate_refund_percentage(
            start_date=booking.start_date,
            cancellation_date=self.clock(),
            previous_status=previous,
            cancelled_by=party,
        )
        booking.cancelled_by = party.value
        booking.cancelled_at = now
        booking.refund_percentage = refund_pct
        booking.refund_amount = calculate_refund_amount(booking.total_amount, refund_pct)

    def _cancellation_activities(
        self, booking: Booking, party: BookingParty
    ) -> list[ActivityEntry]:
        title = booking.plot.title
        if party == BookingParty.RENTER:
            return [
                ActivityEntry(
                    booking.renter_id, ActivityType.BOOKING_CANCELLED,
                    f"You cancelled your booking for {title}",
                    description=f"Refund: {booking.refund_percentage}%", booking_id=booking.id,
                ),
                ActivityEntry(
                    booking.owner_id, ActivityType.BOOKING_CANCELLED,
                    f"Booking for {title} was cancelled by the renter", booking_id=booking.id,
                ),
            ]
        return [
            ActivityEntry(
                user_id, ActivityType.BOOKING_CANCELLED,
                f"Booking for {title} was cancelled by an administrator", booking_id=booking.id,
            )
            for user_id in (booking.renter_id, booking.owner_id)
        ]

    def _payload(self, booking: Booking) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "booking_id": str(booking.id),
            "plot_id": str(booking.plot_id),
            "plot_title": booking.plot.title,
            "renter_name": booking.renter.full_name,
            "start_date": booking.start_date.isoformat(),
            "end_date": booking.end_date.isoformat(),
            "status": booking.status,
        }
        if booking.cancelled_by:
            payload["cancelled_by"] = booking.cancelled_by
            payload["refund_percentage"] = str(booking.refund_percentage)
            payload["refund_amount"] = str(booking.refund_amount)
        return payload

    def _parse_status(
        self, value: BookingStatus | str, error: type[AppException] = ValidationError
    ) -> BookingStatus:
        if isinstance(value, BookingStatus):
            return value
        try:
            return BookingStatus(str(value).upper())
        except ValueError:
            raise error(f"Invalid booking status: {value!r}") from None

    async def _get_booking(self, db: AsyncSession, booking_id: UUID, lock: bool = False) -> Booking:
        query = select(Booking).where(Booking.id == booking_id)
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def _get_user(self, db: AsyncSession, user_id: UUID) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user


# Singleton instance
booking_service = BookingService()
