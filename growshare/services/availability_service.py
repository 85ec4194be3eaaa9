"""Availability checks for new booking requests."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from growshare.config import settings
from growshare.core.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    PolicyViolationError,
)
from growshare.domain.availability import (
    BLOCKING_STATUSES,
    duration_in_months,
    parse_booking_date,
    validate_booking_window,
)
from growshare.domain.booking_state import BookingStatus
from growshare.models.booking import Booking
from growshare.models.plot import Plot

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


def utc_today() -> date:
    return datetime.now(UTC).date()


@dataclass(frozen=True)
class BookingQuote:
    """Outcome of a successful availability check."""

    plot: Plot
    start_date: date
    end_date: date
    duration_months: int
    monthly_rate: Decimal
    total_amount: Decimal
    security_deposit: Decimal | None
    initial_status: BookingStatus


class AvailabilityService:
    """Decides whether a plot may be booked for a date range."""

    def __init__(self, clock: Clock = utc_today) -> None:
        self.clock = clock

    async def check_booking_request(
        self,
        db: AsyncSession,
        plot_id: UUID,
        renter_id: UUID,
        start_date,
        end_date,
        *,
        lock: bool = True,
    ) -> BookingQuote:
        """Run every availability check; the first failure is raised.

        With ``lock=True`` the plot row stays locked until the caller's
        transaction ends, serializing concurrent requests for the plot.

        Raises:
            NotFoundError: Plot missing or inactive
            InvalidOperationError: Renter owns the plot
            ValidationError: Dates unparseable, in the past, reversed or too far out
            PolicyViolationError: Shorter than the plot's minimum lease
            ConflictError: Overlaps a pending, approved or active booking
        """
        plot = await self._get_plot(db, plot_id, lock=lock)

        if plot.owner_id == renter_id:
            raise InvalidOperationError("You cannot book your own plot")

        start = parse_booking_date(start_date, "start date")
        end = parse_booking_date(end_date, "end date")
        validate_booking_window(
            start, end, self.clock(), horizon_years=settings.max_booking_horizon_years
        )

        months = duration_in_months(start, end)
        if plot.minimum_lease is not None and months < plot.minimum_lease:
            raise PolicyViolationError(
                f"This plot requires a minimum lease of {plot.minimum_lease} months"
            )

        conflict = await self.find_conflict(db, plot.id, start, end)
        if conflict is not None:
            logger.info(
                f"Booking request for plot {plot.id} {start}..{end} overlaps booking {conflict.id}"
            )
            raise ConflictError("Plot is not available for the selected dates")

        monthly_rate = Decimal(plot.price_per_month)
        return BookingQuote(
            plot=plot,
            start_date=start,
            end_date=end,
            duration_months=months,
            monthly_rate=monthly_rate,
            total_amount=monthly_rate * months,
            security_deposit=plot.security_deposit,
            initial_status=BookingStatus.APPROVED if plot.instant_book else BookingStatus.PENDING,
        )

    async def find_conflict(
        self, db: AsyncSession, plot_id: UUID, start: date, end: date
    ) -> Booking | None:
        """First calendar-holding booking on the plot that touches [start, end]."""
        result = await db.execute(
            select(Booking)
            .where(
                and_(
                    Booking.plot_id == plot_id,
                    Booking.status.in_([s.value for s in BLOCKING_STATUSES]),
                    Booking.start_date <= end,
                    Booking.end_date >= start,
                )
            )
            .order_by(Booking.start_date)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _get_plot(self, db: AsyncSession, plot_id: UUID, lock: bool) -> Plot:
        query = select(Plot).where(Plot.id == plot_id, Plot.is_active.is_(True))
        if lock:
            query = query.with_for_update()
        result = await db.execute(query)
        plot = result.scalar_one_or_none()
        if not plot:
            raise NotFoundError("Plot", str(plot_id))
        return plot


# Singleton instance
availability_service = AvailabilityService()
