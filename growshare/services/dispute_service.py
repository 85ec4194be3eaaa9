"""Dispute lifecycle and the dispute message thread."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from growshare.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from growshare.core.permissions import Actor
from growshare.domain.booking_state import BookingParty
from growshare.domain.dispute_state import (
    PARTY_STATUS_TARGETS,
    DisputeReason,
    DisputeResolution,
    DisputeStatus,
    assert_dispute_transition,
    can_resolve_dispute,
)
from growshare.models.booking import Booking
from growshare.models.dispute import Dispute, DisputeMessage
from growshare.models.plot import Plot
from growshare.models.user import User
from growshare.services.activity_service import ActivityEntry, ActivityService, ActivityType, activity_service
from growshare.services.booking_service import parties_for
from growshare.services.notification_service import (
    NotificationDispatcher,
    NotificationType,
    default_dispatcher,
    queue_notification,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def visible_messages(
    messages: Iterable[DisputeMessage], viewer_is_admin: bool
) -> list[DisputeMessage]:
    """Internal notes are only shown to administrators."""
    return [m for m in messages if viewer_is_admin or not m.is_internal]


@dataclass
class DisputeView:
    """A dispute as one viewer is allowed to see it."""

    dispute: Dispute
    messages: list[DisputeMessage]
    viewer_is_admin: bool


@dataclass
class DisputePage:
    items: list[Dispute]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total else 0


class DisputeService:
    """Service for booking disputes."""

    def __init__(
        self,
        dispatcher: NotificationDispatcher = default_dispatcher,
        activities: ActivityService = activity_service,
    ) -> None:
        self.dispatcher = dispatcher
        self.activities = activities

    async def open_dispute(
        self,
        db: AsyncSession,
        booking_id: UUID,
        filer: Actor,
        reason: DisputeReason | str,
        description: str,
        requested_amount: Decimal | float | str | None = None,
        evidence: list[str] | None = None,
    ) -> Dispute:
        """Open the dispute for a booking. The booking status is untouched.

        Raises:
            ValidationError: Bad reason, blank description or amount out of range
            NotFoundError: Booking does not exist
            ForbiddenError: Filer is not the renter or owner
            ConflictError: Booking already has a dispute
        """
        reason = self._parse_enum(DisputeReason, reason, "dispute reason")
        description = (description or "").strip()
        if not description:
            raise ValidationError("Description is required")

        booking = await self._get_booking(db, booking_id)
        parties = parties_for(booking, filer)
        if not parties & {BookingParty.RENTER, BookingParty.OWNER}:
            raise ForbiddenError("Only the renter or the landowner can file a dispute")

        existing = await db.execute(select(Dispute.id).where(Dispute.booking_id == booking.id))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("A dispute already exists for this booking")

        amount = self._parse_amount(requested_amount, booking.total_amount, "Requested amount")

        filed_by = await self._get_user(db, filer.id)
        dispute = Dispute(
            booking=booking,
            filed_by=filed_by,
            reason=reason.value,
            description=description,
            evidence=list(evidence or []),
            requested_amount=amount,
            status=DisputeStatus.OPEN.value,
            messages=[],
        )
        db.add(dispute)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("A dispute already exists for this booking") from None

        await self.activities.record(
            db,
            ActivityEntry(
                filed_by.id, ActivityType.DISPUTE_FILED,
                f"Filed a dispute for {booking.plot.title}", booking_id=booking.id,
            ),
        )
        other_party = booking.owner_id if filer.id == booking.renter_id else booking.renter_id
        queue_notification(
            db, self.dispatcher, other_party, NotificationType.DISPUTE_FILED,
            self._payload(dispute),
        )

        await db.commit()
        logger.info(f"Dispute {dispute.id} opened for booking {booking.id} by {filer.id}")
        return dispute

    async def update_dispute_status(
        self,
        db: AsyncSession,
        dispute_id: UUID,
        actor: Actor,
        target_status: DisputeStatus | str,
    ) -> Dispute:
        """Change dispute status outside of resolution.

        Administrators may make any allowed move except to RESOLVED; the
        booking parties may only put a dispute under review.
        """
        target = self._parse_enum(DisputeStatus, target_status, "dispute status")
        dispute = await self._get_dispute(db, dispute_id)

        parties = parties_for(dispute.booking, actor)
        if BookingParty.ADMIN in parties:
            if target == DisputeStatus.RESOLVED:
                raise InvalidOperationError("Use the resolve operation to resolve a dispute")
        elif parties & {BookingParty.RENTER, BookingParty.OWNER}:
            if target not in PARTY_STATUS_TARGETS:
                raise ForbiddenError("Only administrators can make this status change")
        else:
            raise ForbiddenError("You don't have permission to modify this dispute")

        previous = dispute.status
        assert_dispute_transition(previous, target.value)
        dispute.status = target.value

        if target == DisputeStatus.UNDER_REVIEW:
            booking = dispute.booking
            for recipient_id in (booking.renter_id, booking.owner_id):
                if recipient_id != actor.id:
                    queue_notification(
                        db, self.dispatcher, recipient_id,
                        NotificationType.DISPUTE_UNDER_REVIEW, self._payload(dispute),
                    )

        await db.commit()
        logger.info(f"Dispute {dispute.id}: {previous} → {target.value} by {actor.id}")
        return dispute

    async def resolve_dispute(
        self,
        db: AsyncSession,
        dispute_id: UUID,
        admin: Actor,
        resolution: DisputeResolution | str,
        notes: str | None,
        resolved_amount: Decimal | float | str | None = None,
    ) -> Dispute:
        """Resolve a dispute (administrators only) and notify both parties."""
        dispute = await self._get_dispute(db, dispute_id)
        if not admin.is_admin:
            raise ForbiddenError("Only administrators can resolve disputes")

        can_resolve, error = can_resolve_dispute(dispute.status)
        if not can_resolve:
            raise InvalidOperationError(error)

        resolution = self._parse_enum(DisputeResolution, resolution, "resolution")
        amount = self._parse_amount(
            resolved_amount, dispute.booking.total_amount, "Resolved amount"
        )
        assert_dispute_transition(dispute.status, DisputeStatus.RESOLVED.value)

        dispute.status = DisputeStatus.RESOLVED.value
        dispute.resolution = resolution.value
        dispute.resolution_notes = notes.strip() if notes and notes.strip() else None
        dispute.resolved_amount = amount
        dispute.resolved_by_id = admin.id
        dispute.resolved_at = datetime.now(UTC)
        await db.flush()

        booking = dispute.booking
        await self.activities.record(
            db,
            ActivityEntry(
                dispute.filed_by_id, ActivityType.DISPUTE_RESOLVED,
                f"Dispute for {booking.plot.title} resolved",
                description=resolution.value, booking_id=booking.id,
            ),
        )
        payload = self._payload(dispute)
        for recipient_id in (booking.renter_id, booking.owner_id):
            queue_notification(
                db, self.dispatcher, recipient_id, NotificationType.DISPUTE_RESOLVED, payload
            )

        await db.commit()
        logger.info(f"Dispute {dispute.id} resolved by {admin.id}: {resolution.value}")
        return dispute

    async def get_dispute_for_viewer(
        self, db: AsyncSession, booking_id: UUID, viewer: Actor
    ) -> DisputeView:
        booking = await self._get_booking(db, booking_id)
        if not parties_for(booking, viewer):
            raise ForbiddenError("You don't have permission to view this dispute")

        result = await db.execute(select(Dispute).where(Dispute.booking_id == booking.id))
        dispute = result.scalar_one_or_none()
        if not dispute:
            raise NotFoundError("Dispute for booking", str(booking_id))

        return DisputeView(
            dispute=dispute,
            messages=visible_messages(dispute.messages, viewer.is_admin),
            viewer_is_admin=viewer.is_admin,
        )

    async def list_disputes_for_user(
        self,
        db: AsyncSession,
        actor: Actor,
        role: str = "all",
        status: DisputeStatus | str | None = None,
    ) -> list[Dispute]:
        """Disputes on the actor's bookings.

        ``role`` is ``filed`` (filed by the actor), ``received`` (filed by
        the other party) or ``all``.
        """
        involved = or_(Booking.renter_id == actor.id, Plot.owner_id == actor.id)
        query = (
            select(Dispute)
            .join(Booking, Dispute.booking_id == Booking.id)
            .join(Plot, Booking.plot_id == Plot.id)
        )
        if role == "filed":
            query = query.where(Dispute.filed_by_id == actor.id)
        elif role == "received":
            query = query.where(and_(involved, Dispute.filed_by_id != actor.id))
        elif role == "all":
            query = query.where(involved)
        else:
            raise ValidationError(f"Invalid role filter: {role!r}")

        if status:
            query = query.where(
                Dispute.status == self._parse_enum(DisputeStatus, status, "dispute status").value
            )

        result = await db.execute(query.order_by(Dispute.created_at.desc()))
        return list(result.scalars().all())

    async def list_disputes_for_admin(
        self,
        db: AsyncSession,
        admin: Actor,
        status: DisputeStatus | str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> DisputePage:
        """Paginated dispute queue for administrators."""
        if not admin.is_admin:
            raise ForbiddenError("Only administrators can list all disputes")
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}")

        filters = []
        if status:
            filters.append(
                Dispute.status == self._parse_enum(DisputeStatus, status, "dispute status").value
            )

        total = await db.scalar(select(func.count(Dispute.id)).where(*filters))
        result = await db.execute(
            select(Dispute)
            .where(*filters)
            .order_by(Dispute.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return DisputePage(
            items=list(result.scalars().all()), total=total or 0, page=page, limit=limit
        )

    async def append_dispute_message(
        self,
        db: AsyncSession,
        dispute_id: UUID,
        sender: Actor,
        content: str,
        attachments: list[str] | None = None,
        is_internal: bool = False,
    ) -> DisputeMessage:
        """Append a message to a dispute thread.

        ``is_internal`` is honoured only for administrators.
        """
        dispute = await self._get_dispute(db, dispute_id)
        if not parties_for(dispute.booking, sender) - {BookingParty.SYSTEM}:
            raise ForbiddenError("You don't have permission to post in this dispute")

        content = (content or "").strip()
        if not content:
            raise ValidationError("Message content is required")

        sender_user = await self._get_user(db, sender.id)
        message = DisputeMessage(
            dispute=dispute,
            sender=sender_user,
            content=content,
            attachments=list(attachments or []),
            is_internal=bool(is_internal and sender.is_admin),
        )
        db.add(message)
        await db.commit()
        logger.info(
            f"Message {message.id} added to dispute {dispute.id} "
            f"(internal={message.is_internal})"
        )
        return message

    def _payload(self, dispute: Dispute) -> dict[str, Any]:
        booking = dispute.booking
        payload: dict[str, Any] = {
            "dispute_id": str(dispute.id),
            "booking_id": str(booking.id),
            "plot_title": booking.plot.title,
            "reason": dispute.reason,
            "status": dispute.status,
        }
        if dispute.resolution:
            payload["resolution"] = dispute.resolution
        return payload

    def _parse_enum(self, enum_cls, value, label: str):
        if isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(str(value).upper())
        except ValueError:
            raise ValidationError(f"Invalid {label}: {value!r}") from None

    def _parse_amount(
        self, value: Decimal | float | str | None, total: Decimal, label: str
    ) -> Decimal | None:
        if value is None:
            return None
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(f"{label} must be a number") from None
        if not amount.is_finite() or amount < 0 or amount > Decimal(total):
            raise ValidationError(f"{label} must be between 0 and the booking total ({total})")
        return amount.quantize(Decimal("0.01"))

    async def _get_booking(self, db: AsyncSession, booking_id: UUID) -> Booking:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def _get_dispute(self, db: AsyncSession, dispute_id: UUID) -> Dispute:
        """Get dispute by ID or raise NotFoundError."""
        result = await db.execute(select(Dispute).where(Dispute.id == dispute_id))
        dispute = result.scalar_one_or_none()
        if not dispute:
            raise NotFoundError("Dispute", str(dispute_id))
        return dispute

    async def _get_user(self, db: AsyncSession, user_id: UUID) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user


dispute_service = DisputeService()
