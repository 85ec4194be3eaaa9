"""Admin endpoints."""

from fastapi import APIRouter, Query

from growshare.api.deps import CurrentAdmin, DbSession, Disputes
from growshare.schemas.dispute import DisputeListResponse, DisputeResponse

router = APIRouter()


@router.get("/disputes", response_model=DisputeListResponse)
async def list_disputes(
    admin: CurrentAdmin,
    db: DbSession,
    disputes: Disputes,
    status_filter: str | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> DisputeListResponse:
    """List all disputes, newest first."""
    result = await disputes.list_disputes_for_admin(
        db, admin, status=status_filter, page=page, limit=limit
    )
    return DisputeListResponse(
        disputes=[DisputeResponse.model_validate(d) for d in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )
