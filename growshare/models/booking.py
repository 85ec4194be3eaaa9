"""Booking model."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from growshare.database import Base, utcnow
from growshare.domain.booking_state import BookingStatus

if TYPE_CHECKING:
    from growshare.models.plot import Plot
    from growshare.models.user import User


class Booking(Base):
    """Reservation of a plot for a date range. Cancelled, never deleted."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_bookings_date_order"),
        Index("ix_bookings_plot_calendar", "plot_id", "status", "start_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    plot_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("plots.id"), nullable=False, index=True
    )
    renter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )

    # Dates
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Status: PENDING, APPROVED, REJECTED, ACTIVE, COMPLETED, CANCELLED
    status: Mapped[str] = mapped_column(
        String(20), default=BookingStatus.PENDING.value, nullable=False, index=True
    )

    # Pricing snapshot taken from the plot at creation
    monthly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    duration_months: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    security_deposit: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    message: Mapped[str | None] = mapped_column(Text)

    # Cancellation
    cancelled_by: Mapped[str | None] = mapped_column(String(10))  # renter, admin
    refund_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    refund_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    # Timestamps
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    # Relationships
    plot: Mapped["Plot"] = relationship("Plot", back_populates="bookings", lazy="selectin")
    renter: Mapped["User"] = relationship("User", lazy="selectin")

    @property
    def owner_id(self) -> uuid.UUID:
        return self.plot.owner_id
