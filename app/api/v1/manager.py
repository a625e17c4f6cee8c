"""Manager endpoints: vendor approval, booking triage and reports."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import Pagination, get_db, require_manager
from app.domain.booking_state import parse_booking_status
from app.domain.vendor_state import VendorStatus, parse_vendor_status
from app.models.booking import Booking
from app.models.user import User
from app.models.vendor import Vendor
from app.schemas.booking import (
    AssignVendorRequest,
    BookingCancelRequest,
    BookingListResponse,
    BookingResponse,
    BulkClassifyRequest,
    BulkClassifyResponse,
)
from app.schemas.reporting import (
    BookingStatsResponse,
    ManagerDashboardResponse,
    ManagerReportResponse,
)
from app.schemas.vendor import VendorRejectRequest, VendorResponse
from app.services.booking_service import booking_service
from app.services.booking_workflow_service import booking_workflow_service
from app.services.reporting_service import reporting_service
from app.services.vendor_approval_service import vendor_approval_service

router = APIRouter()


# ==================== DASHBOARD ====================


@router.get("/dashboard", response_model=ManagerDashboardResponse)
async def get_dashboard(
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Vendor pipeline, appointments and revenue."""
    return await reporting_service.get_manager_dashboard(db)


@router.get("/reports", response_model=ManagerReportResponse)
async def get_reports(
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
    range: str = Query("month", pattern="^(week|month|quarter|year)$"),
) -> dict:
    """Activity report over a trailing range."""
    return await reporting_service.get_manager_reports(db, range)


# ==================== VENDORS ====================


@router.get("/vendors/pending", response_model=list[VendorResponse])
async def list_pending_vendors(
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[Vendor]:
    """Vendor applications awaiting a decision, oldest first."""
    result = await db.execute(
        select(Vendor)
        .where(Vendor.status == VendorStatus.PENDING.value)
        .order_by(Vendor.created_at)
    )
    return list(result.scalars().all())


@router.get("/vendors", response_model=list[VendorResponse])
async def list_vendors(
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
    status: str | None = None,
) -> list[Vendor]:
    """List vendors, optionally filtered by status."""
    query = select(Vendor).order_by(Vendor.created_at.desc())
    if status:
        query = query.where(Vendor.status == parse_vendor_status(status).value)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("/vendors/{vendor_id}/approve", response_model=VendorResponse)
async def approve_vendor(
    vendor_id: UUID,
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vendor:
    """Approve a pending vendor."""
    return await vendor_approval_service.approve_vendor(db, vendor_id, current_user)


@router.post("/vendors/{vendor_id}/reject", response_model=VendorResponse)
async def reject_vendor(
    vendor_id: UUID,
    request: VendorRejectRequest,
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vendor:
    """Reject a pending vendor."""
    return await vendor_approval_service.reject_vendor(
        db, vendor_id, current_user, reason=request.reason
    )


# ==================== BOOKINGS ====================


@router.get("/bookings", response_model=BookingListResponse)
async def list_bookings(
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[Pagination, Depends()],
    status: str | None = None,
) -> BookingListResponse:
    """List all bookings, optionally filtered by status."""
    where = []
    if status:
        where.append(Booking.status == parse_booking_status(status).value)
    bookings, total = await booking_service.list_bookings(
        db, *where, page=pagination.page, page_size=pagination.page_size
    )
    return BookingListResponse(
        items=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get("/bookings/stats", response_model=BookingStatsResponse)
async def get_booking_stats(
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Booking counts per status."""
    return await reporting_service.get_manager_booking_stats(db)


@router.post("/bookings/bulk/awaiting-manager", response_model=BulkClassifyResponse)
async def bulk_classify_at_home(
    request: BulkClassifyRequest,
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BulkClassifyResponse:
    """Move every pending at-home booking to manager triage."""
    updated = await booking_workflow_service.bulk_classify_at_home(
        db, current_user, phrase=request.phrase
    )
    return BulkClassifyResponse(updated=updated)


@router.post("/bookings/{booking_id}/classify", response_model=BookingResponse)
async def classify_booking(
    booking_id: UUID,
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Route a pending booking to manager triage."""
    return await booking_workflow_service.classify_at_home(db, booking_id, current_user)


@router.post("/bookings/{booking_id}/assign-vendor", response_model=BookingResponse)
async def assign_vendor(
    booking_id: UUID,
    request: AssignVendorRequest,
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Assign an approved vendor to a booking."""
    return await booking_workflow_service.assign_vendor(
        db, booking_id, request.vendor_id, current_user
    )


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: UUID,
    request: BookingCancelRequest,
    current_user: Annotated[User, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Cancel any non-terminal booking."""
    return await booking_workflow_service.cancel(
        db, booking_id, current_user, reason=request.reason
    )
