"""Dispute endpoints."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Query, status

from growshare.api.deps import CurrentActor, DbSession, Disputes
from growshare.schemas.dispute import (
    DisputeListResponse,
    DisputeMessageCreate,
    DisputeMessageResponse,
    DisputeResolve,
    DisputeResponse,
    DisputeStatusUpdate,
)

router = APIRouter()


@router.get("", response_model=DisputeListResponse)
async def list_my_disputes(
    actor: CurrentActor,
    db: DbSession,
    disputes: Disputes,
    role: Literal["all", "filed", "received"] = Query("all"),
    status_filter: str | None = Query(None, alias="status"),
) -> DisputeListResponse:
    """List disputes on bookings the caller rents or owns."""
    results = await disputes.list_disputes_for_user(db, actor, role=role, status=status_filter)
    return DisputeListResponse(
        disputes=[DisputeResponse.model_validate(d) for d in results],
        total=len(results),
    )


@router.patch("/{dispute_id}", response_model=DisputeResponse)
async def update_dispute_status(
    dispute_id: UUID,
    request: DisputeStatusUpdate,
    actor: CurrentActor,
    db: DbSession,
    disputes: Disputes,
) -> DisputeResponse:
    dispute = await disputes.update_dispute_status(db, dispute_id, actor, request.status)
    return DisputeResponse.model_validate(dispute)


@router.post("/{dispute_id}/resolve", response_model=DisputeResponse)
async def resolve_dispute(
    dispute_id: UUID,
    request: DisputeResolve,
    actor: CurrentActor,
    db: DbSession,
    disputes: Disputes,
) -> DisputeResponse:
    """Resolve a dispute (admin only)."""
    dispute = await disputes.resolve_dispute(
        db,
        dispute_id,
        admin=actor,
        resolution=request.resolution,
        notes=request.notes,
        resolved_amount=request.resolved_amount,
    )
    return DisputeResponse.model_validate(dispute)


@router.post(
    "/{dispute_id}/messages",
    response_model=DisputeMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_dispute_message(
    dispute_id: UUID,
    request: DisputeMessageCreate,
    actor: CurrentActor,
    db: DbSession,
    disputes: Disputes,
) -> DisputeMessageResponse:
    """Append a message to the dispute thread."""
    message = await disputes.append_dispute_message(
        db,
        dispute_id,
        sender=actor,
        content=request.content,
        attachments=request.attachments,
        is_internal=request.is_internal,
    )
    return DisputeMessageResponse.model_validate(message)
