"""Pydantic schemas for API validation."""

from growshare.schemas.booking import (
    BookingCreate,
    BookingDetailResponse,
    BookingListResponse,
    BookingQuoteRequest,
    BookingQuoteResponse,
    BookingResponse,
    BookingStatusUpdate,
)
from growshare.schemas.dispute import (
    DisputeCreate,
    DisputeDetailResponse,
    DisputeListResponse,
    DisputeMessageCreate,
    DisputeMessageResponse,
    DisputeResolve,
    DisputeResponse,
    DisputeStatusUpdate,
)

__all__ = [
    # Booking
    "BookingCreate",
    "BookingDetailResponse",
    "BookingListResponse",
    "BookingQuoteRequest",
    "BookingQuoteResponse",
    "BookingResponse",
    "BookingStatusUpdate",
    # Dispute
    "DisputeCreate",
    "DisputeDetailResponse",
    "DisputeListResponse",
    "DisputeMessageCreate",
    "DisputeMessageResponse",
    "DisputeResolve",
    "DisputeResponse",
    "DisputeStatusUpdate",
]
