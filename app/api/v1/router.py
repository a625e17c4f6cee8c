"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from app.api.v1 import admin, auth, bookings, manager, vendor, vendors

api_router = APIRouter()

# Authentication
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])

# Marketplace (public)
api_router.include_router(vendors.router, prefix="/vendors", tags=["Marketplace"])

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Manager
api_router.include_router(manager.router, prefix="/manager", tags=["Manager"])

# Vendor
api_router.include_router(vendor.router, prefix="/vendor", tags=["Vendor"])

# Admin
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
