"""Dispute-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DisputeCreate(BaseModel):
    """Schema for filing a dispute."""

    reason: str = Field(..., examples=["ACCESS_ISSUES"])
    description: str = Field(..., max_length=5000)
    requested_amount: Decimal | None = None
    evidence: list[str] = Field(default_factory=list, max_length=20)


class DisputeStatusUpdate(BaseModel):
    status: str = Field(..., examples=["UNDER_REVIEW"])


class DisputeResolve(BaseModel):
    """Schema for an administrator resolving a dispute."""

    resolution: str = Field(..., examples=["PARTIAL_REFUND"])
    notes: str | None = Field(None, max_length=5000)
    resolved_amount: Decimal | None = None


class DisputeMessageCreate(BaseModel):
    """Schema for posting to a dispute thread."""

    content: str = Field(..., max_length=5000)
    attachments: list[str] = Field(default_factory=list, max_length=10)
    is_internal: bool = False


class DisputeMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    dispute_id: UUID
    sender_id: UUID
    content: str
    attachments: list[str]
    is_internal: bool
    created_at: datetime


class DisputeResponse(BaseModel):
    """Schema for dispute response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    filed_by_id: UUID
    reason: str
    description: str
    evidence: list[str]
    requested_amount: Decimal | None
    status: str

    # Resolution
    resolution: str | None
    resolution_notes: str | None
    resolved_amount: Decimal | None
    resolved_by_id: UUID | None
    resolved_at: datetime | None

    created_at: datetime
    updated_at: datetime


class DisputeDetailResponse(BaseModel):
    """A dispute with the messages the viewer may see."""

    dispute: DisputeResponse
    messages: list[DisputeMessageResponse]


class DisputeListResponse(BaseModel):
    """Schema for paginated dispute list."""

    disputes: list[DisputeResponse]
    total: int
    page: int = 1
    limit: int | None = None
    total_pages: int = 1
