"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from growshare.api.v1 import admin, bookings, disputes

api_router = APIRouter()

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Disputes
api_router.include_router(disputes.router, prefix="/disputes", tags=["Disputes"])

# Admin
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
