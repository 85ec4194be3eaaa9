"""Dispute models."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from growshare.database import Base, utcnow
from growshare.domain.dispute_state import DisputeStatus

if TYPE_CHECKING:
    from growshare.models.booking import Booking
    from growshare.models.user import User


class Dispute(Base):
    """Formal disagreement over a booking, mediated by an administrator."""

    __tablename__ = "disputes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # One dispute per booking
    booking_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("bookings.id"), nullable=False, unique=True
    )
    filed_by_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )

    # Details
    reason: Mapped[str] = mapped_column(String(40), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    evidence: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    requested_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    # Status: OPEN → UNDER_REVIEW → RESOLVED (or CLOSED)
    status: Mapped[str] = mapped_column(
        String(20), default=DisputeStatus.OPEN.value, nullable=False, index=True
    )

    # Resolution
    resolution: Mapped[str | None] = mapped_column(String(30))
    resolution_notes: Mapped[str | None] = mapped_column(Text)
    resolved_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    resolved_by_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    # Relationships
    booking: Mapped["Booking"] = relationship("Booking", lazy="selectin")
    filed_by: Mapped["User"] = relationship("User", foreign_keys=[filed_by_id], lazy="selectin")
    resolved_by: Mapped["User | None"] = relationship("User", foreign_keys=[resolved_by_id])
    messages: Mapped[list["DisputeMessage"]] = relationship(
        "DisputeMessage",
        back_populates="dispute",
        lazy="selectin",
        order_by="DisputeMessage.created_at",
    )


class DisputeMessage(Base):
    """Append-only message in a dispute thread."""

    __tablename__ = "dispute_messages"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    dispute_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("disputes.id"), nullable=False, index=True
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)
    attachments: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # Only visible to administrators
    is_internal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True
    )

    # Relationships
    dispute: Mapped["Dispute"] = relationship("Dispute", back_populates="messages")
    sender: Mapped["User"] = relationship("User", lazy="selectin")
