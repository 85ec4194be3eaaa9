"""Booking endpoints."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Query, status

from growshare.api.deps import Bookings, CurrentActor, DbSession, Disputes
from growshare.models.booking import Booking
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
    DisputeMessageResponse,
    DisputeResponse,
)

router = APIRouter()


def booking_detail(booking: Booking) -> BookingDetailResponse:
    return BookingDetailResponse.model_validate(booking).model_copy(
        update={
            "plot_title": booking.plot.title,
            "renter_name": booking.renter.full_name,
        }
    )


@router.post("/quote", response_model=BookingQuoteResponse)
async def quote_booking(
    request: BookingQuoteRequest,
    actor: CurrentActor,
    db: DbSession,
    bookings: Bookings,
) -> BookingQuoteResponse:
    """Check availability and price a booking without creating it."""
    quote = await bookings.quote(db, request.plot_id, actor, request.start_date, request.end_date)
    return BookingQuoteResponse(
        plot_id=quote.plot.id,
        start_date=quote.start_date,
        end_date=quote.end_date,
        duration_months=quote.duration_months,
        monthly_rate=quote.monthly_rate,
        total_amount=quote.total_amount,
        security_deposit=quote.security_deposit,
        initial_status=quote.initial_status.value,
    )


@router.post("", response_model=BookingDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: BookingCreate,
    actor: CurrentActor,
    db: DbSession,
    bookings: Bookings,
) -> BookingDetailResponse:
    """Request a booking; instant-book plots are approved immediately."""
    booking = await bookings.create_booking(
        db,
        plot_id=request.plot_id,
        renter=actor,
        start_date=request.start_date,
        end_date=request.end_date,
        message=request.message,
    )
    return booking_detail(booking)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    actor: CurrentActor,
    db: DbSession,
    bookings: Bookings,
    role: Literal["renter", "owner"] = Query("renter"),
    status_filter: str | None = Query(None, alias="status"),
) -> BookingListResponse:
    """List the actor's bookings, or bookings on the actor's plots."""
    results = await bookings.list_bookings(
        db, actor, as_owner=role == "owner", status=status_filter
    )
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in results],
        total=len(results),
    )


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking(
    booking_id: UUID,
    actor: CurrentActor,
    db: DbSession,
    bookings: Bookings,
) -> BookingDetailResponse:
    booking = await bookings.get_booking_for_actor(db, booking_id, actor)
    return booking_detail(booking)


@router.patch("/{booking_id}", response_model=BookingDetailResponse)
async def update_booking_status(
    booking_id: UUID,
    request: BookingStatusUpdate,
    actor: CurrentActor,
    db: DbSession,
    bookings: Bookings,
) -> BookingDetailResponse:
    """Approve, reject, cancel, start or complete a booking."""
    booking = await bookings.transition_booking(db, booking_id, actor, request.status)
    return booking_detail(booking)


@router.post(
    "/{booking_id}/dispute",
    response_model=DisputeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def open_dispute(
    booking_id: UUID,
    request: DisputeCreate,
    actor: CurrentActor,
    db: DbSession,
    disputes: Disputes,
) -> DisputeResponse:
    """File the dispute for a booking."""
    dispute = await disputes.open_dispute(
        db,
        booking_id,
        filer=actor,
        reason=request.reason,
        description=request.description,
        requested_amount=request.requested_amount,
        evidence=request.evidence,
    )
    return DisputeResponse.model_validate(dispute)


@router.get("/{booking_id}/dispute", response_model=DisputeDetailResponse)
async def get_booking_dispute(
    booking_id: UUID,
    actor: CurrentActor,
    db: DbSession,
    disputes: Disputes,
) -> DisputeDetailResponse:
    """Get the booking's dispute with the messages the caller may see."""
    view = await disputes.get_dispute_for_viewer(db, booking_id, actor)
    return DisputeDetailResponse(
        dispute=DisputeResponse.model_validate(view.dispute),
        messages=[DisputeMessageResponse.model_validate(m) for m in view.messages],
    )
