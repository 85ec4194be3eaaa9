"""API dependencies for authentication and common operations."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from growshare.core.exceptions import AuthenticationError, AuthorizationError
from growshare.core.permissions import Actor
from growshare.core.security import token_subject
from growshare.database import get_db
from growshare.models.user import User
from growshare.services.booking_service import BookingService, booking_service
from growshare.services.dispute_service import DisputeService, dispute_service

__all__ = [
    "get_booking_service",
    "get_current_actor",
    "get_current_admin",
    "get_current_user",
    "get_db",
    "get_dispute_service",
]

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    if not credentials:
        raise AuthenticationError("Not authenticated")

    user_id = token_subject(credentials.credentials)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user


async def get_current_actor(
    current_user: Annotated[User, Depends(get_current_user)],
) -> Actor:
    """The authenticated user as the principal passed to services."""
    return Actor(id=current_user.id, roles=current_user.role_set)


async def get_current_admin(
    actor: Annotated[Actor, Depends(get_current_actor)],
) -> Actor:
    """Get current actor and verify they are an admin."""
    if not actor.is_admin:
        raise AuthorizationError("Admin access required")
    return actor


def get_booking_service() -> BookingService:
    return booking_service


def get_dispute_service() -> DisputeService:
    return dispute_service


DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
CurrentAdmin = Annotated[Actor, Depends(get_current_admin)]
Bookings = Annotated[BookingService, Depends(get_booking_service)]
Disputes = Annotated[DisputeService, Depends(get_dispute_service)]
