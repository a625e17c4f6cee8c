"""Dashboard and report schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from app.schemas.booking import BookingResponse
from app.schemas.vendor import VendorResponse


class BookingStatsResponse(BaseModel):
    total: int
    by_status: dict[str, int]


class ManagerDashboardResponse(BaseModel):
    pending_vendors: int
    approved_vendors: int
    total_appointments: int
    pending_appointments: int
    completed_appointments: int
    total_revenue: int
    monthly_revenue: int
    recent_pending_vendors: list[VendorResponse]
    recent_bookings: list[BookingResponse]


class VendorCounts(BaseModel):
    by_status: dict[str, int]
    new: int


class AppointmentCounts(BaseModel):
    total: int
    by_status: dict[str, int]


class TopVendor(BaseModel):
    vendor_id: UUID
    shop_name: str
    revenue: int
    completed_bookings: int


class ManagerReportResponse(BaseModel):
    range: str
    since: datetime
    vendors: VendorCounts
    appointments: AppointmentCounts
    revenue: int
    customers: int
    top_vendors: list[TopVendor]


class AdminDashboardResponse(BaseModel):
    users_by_role: dict[str, int]
    vendors_by_status: dict[str, int]
    bookings_by_status: dict[str, int]
    payments_by_status: dict[str, int]
    total_revenue: int


class VendorDashboardResponse(BaseModel):
    total_bookings: int
    bookings_by_status: dict[str, int]
    pending_responses: int
    completed_revenue: int
    upcoming_bookings: list[BookingResponse]

