"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookingQuoteRequest(BaseModel):
    """Schema for checking availability without booking.

    Dates are passed through as given; the availability checker accepts ISO
    dates and ISO datetimes.
    """

    plot_id: UUID
    start_date: str = Field(..., examples=["2025-06-01"])
    end_date: str = Field(..., examples=["2025-08-30"])

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def coerce_date(cls, v):
        if isinstance(v, (date, datetime)):
            return v.isoformat()
        return v


class BookingCreate(BookingQuoteRequest):
    """Schema for creating a booking."""

    message: str | None = Field(None, max_length=1000)


class BookingStatusUpdate(BaseModel):
    """Schema for moving a booking to a new status."""

    status: str = Field(..., examples=["APPROVED"])


class BookingQuoteResponse(BaseModel):
    """Schema for an availability quote."""

    plot_id: UUID
    start_date: date
    end_date: date
    duration_months: int
    monthly_rate: Decimal
    total_amount: Decimal
    security_deposit: Decimal | None
    initial_status: str


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    plot_id: UUID
    renter_id: UUID
    owner_id: UUID

    # Dates
    start_date: date
    end_date: date

    # Status
    status: str

    # Pricing
    monthly_rate: Decimal
    duration_months: int
    total_amount: Decimal
    security_deposit: Decimal | None

    message: str | None

    # Cancellation
    cancelled_by: str | None
    refund_percentage: Decimal | None
    refund_amount: Decimal | None

    # Timestamps
    approved_at: datetime | None
    rejected_at: datetime | None
    activated_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    created_at: datetime
    updated_at: datetime


class BookingDetailResponse(BookingResponse):
    """Schema for detailed booking response with related data."""

    plot_title: str | None = None
    renter_name: str | None = None


class BookingListResponse(BaseModel):
    """Schema for booking list."""

    bookings: list[BookingResponse]
    total: int
