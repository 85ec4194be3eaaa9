"""Plot listing model."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from growshare.database import Base, utcnow

if TYPE_CHECKING:
    from growshare.models.booking import Booking
    from growshare.models.user import User


class Plot(Base):
    """A parcel of land offered for lease."""

    __tablename__ = "plots"
    __table_args__ = (
        CheckConstraint("price_per_month > 0", name="ck_plots_price_positive"),
        CheckConstraint("size_acres > 0", name="ck_plots_size_positive"),
        CheckConstraint(
            "minimum_lease IS NULL OR minimum_lease > 0", name="ck_plots_minimum_lease_positive"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Basic Info
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    size_acres: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Pricing & lease terms; NULL means "not set", never 0
    price_per_month: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    minimum_lease: Mapped[int | None] = mapped_column(Integer)  # months
    security_deposit: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    instant_book: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", lazy="selectin")
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking", back_populates="plot", lazy="noload"
    )
