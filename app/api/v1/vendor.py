"""Vendor endpoints: access gate, profile, assigned bookings, staff and services."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    Pagination,
    get_current_vendor,
    get_db,
    require_approved_vendor,
    require_vendor,
)
from app.config import settings
from app.core.exceptions import NotFoundError
from app.domain.booking_state import AssignmentDecision, parse_booking_status
from app.domain.vendor_state import VendorAccessDecision
from app.models.booking import Booking
from app.models.user import User
from app.models.vendor import Employee, Service, Vendor
from app.schemas.booking import (
    AssignmentAcceptRequest,
    AssignmentRejectRequest,
    BookingListResponse,
    BookingResponse,
)
from app.schemas.reporting import VendorDashboardResponse
from app.schemas.vendor import (
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
    VendorAccessResponse,
    VendorProfileUpdate,
    VendorResponse,
)
from app.services.booking_service import booking_service
from app.services.booking_workflow_service import booking_workflow_service
from app.services.reporting_service import reporting_service
from app.services.vendor_access_service import resolve_vendor_access, vendor_status_lookup

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== ACCESS GATE ====================


@router.get("/access", response_model=VendorAccessResponse)
async def get_vendor_access(
    current_user: Annotated[User, Depends(require_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
    on_pending_page: bool = Query(False),
) -> VendorAccessResponse:
    """Approval gate decision for the current vendor.

    Clients poll this while showing the pending-approval page and stop once
    the decision is ALLOW or SHOW_REJECTED.
    """
    lookup = vendor_status_lookup(db, current_user.id)
    decision, vendor_status = await resolve_vendor_access(lookup, on_pending_page=on_pending_page)
    return VendorAccessResponse(
        decision=decision.value,
        vendor_status=vendor_status,
        redirect_to=(
            settings.vendor_pending_page
            if decision == VendorAccessDecision.REDIRECT_PENDING
            else None
        ),
    )


@router.get("/profile", response_model=VendorResponse)
async def get_profile(
    vendor: Annotated[Vendor, Depends(get_current_vendor)],
) -> Vendor:
    """Vendor profile, available whatever the approval status."""
    return vendor


@router.put("/profile", response_model=VendorResponse)
async def update_profile(
    profile_data: VendorProfileUpdate,
    vendor: Annotated[Vendor, Depends(get_current_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vendor:
    """Edit shop details. Pending vendors may fix their profile before review."""
    for field, value in profile_data.model_dump(exclude_unset=True).items():
        setattr(vendor, field, value)
    await db.flush()
    await db.refresh(vendor)
    return vendor


@router.get("/dashboard", response_model=VendorDashboardResponse)
async def get_dashboard(
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Booking counts, revenue and upcoming work."""
    return await reporting_service.get_vendor_dashboard(db, vendor.id)


# ==================== BOOKINGS ====================


@router.get("/bookings", response_model=BookingListResponse)
async def list_bookings(
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[Pagination, Depends()],
    status: str | None = None,
) -> BookingListResponse:
    """Bookings assigned to this vendor."""
    where = [Booking.vendor_id == vendor.id]
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


@router.post("/bookings/{booking_id}/approve", response_model=BookingResponse)
async def accept_booking(
    booking_id: UUID,
    request: AssignmentAcceptRequest,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    current_user: Annotated[User, Depends(require_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Accept an assigned booking, optionally binding an employee."""
    return await booking_workflow_service.respond_to_assignment(
        db,
        booking_id,
        vendor.id,
        AssignmentDecision.ACCEPT,
        employee_id=request.employee_id,
        actor=current_user,
    )


@router.post("/bookings/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(
    booking_id: UUID,
    request: AssignmentRejectRequest,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    current_user: Annotated[User, Depends(require_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Reject an assigned booking."""
    return await booking_workflow_service.respond_to_assignment(
        db,
        booking_id,
        vendor.id,
        AssignmentDecision.REJECT,
        reason=request.reason,
        actor=current_user,
    )


@router.post("/bookings/{booking_id}/start", response_model=BookingResponse)
async def start_booking(
    booking_id: UUID,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    current_user: Annotated[User, Depends(require_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Mark a confirmed booking as in progress."""
    return await booking_workflow_service.start_service(
        db, booking_id, vendor_id=vendor.id, actor=current_user
    )


@router.post("/bookings/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: UUID,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    current_user: Annotated[User, Depends(require_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Mark an in-progress booking as completed."""
    return await booking_workflow_service.complete(
        db, booking_id, vendor_id=vendor.id, actor=current_user
    )


# ==================== EMPLOYEES ====================


async def _get_employee(db: AsyncSession, vendor_id: UUID, employee_id: UUID) -> Employee:
    result = await db.execute(
        select(Employee).where(Employee.id == employee_id, Employee.vendor_id == vendor_id)
    )
    employee = result.scalar_one_or_none()
    if not employee:
        raise NotFoundError("Employee", str(employee_id))
    return employee


@router.get("/employees", response_model=list[EmployeeResponse])
async def list_employees(
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[Employee]:
    result = await db.execute(
        select(Employee).where(Employee.vendor_id == vendor.id).order_by(Employee.name)
    )
    return list(result.scalars().all())


@router.post("/employees", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_data: EmployeeCreate,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Employee:
    employee = Employee(vendor_id=vendor.id, **employee_data.model_dump())
    db.add(employee)
    await db.flush()
    await db.refresh(employee)
    return employee


@router.get("/employees/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: UUID,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Employee:
    return await _get_employee(db, vendor.id, employee_id)


@router.patch("/employees/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: UUID,
    employee_data: EmployeeUpdate,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Employee:
    employee = await _get_employee(db, vendor.id, employee_id)
    for field, value in employee_data.model_dump(exclude_unset=True).items():
        setattr(employee, field, value)
    await db.flush()
    await db.refresh(employee)
    return employee


@router.delete("/employees/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(
    employee_id: UUID,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    employee = await _get_employee(db, vendor.id, employee_id)
    await db.delete(employee)


# ==================== SERVICES ====================


async def _get_service(db: AsyncSession, vendor_id: UUID, service_id: UUID) -> Service:
    result = await db.execute(
        select(Service).where(Service.id == service_id, Service.vendor_id == vendor_id)
    )
    service = result.scalar_one_or_none()
    if not service:
        raise NotFoundError("Service", str(service_id))
    return service


@router.get("/services", response_model=list[ServiceResponse])
async def list_services(
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
    include_inactive: bool = Query(True),
) -> list[Service]:
    """The vendor's own catalogue, retired services included by default."""
    query = select(Service).where(Service.vendor_id == vendor.id)
    if not include_inactive:
        query = query.where(Service.is_active.is_(True))
    result = await db.execute(query.order_by(Service.name))
    return list(result.scalars().all())


@router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    service_data: ServiceCreate,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Service:
    service = Service(vendor_id=vendor.id, is_active=True, **service_data.model_dump())
    db.add(service)
    await db.flush()
    await db.refresh(service)
    logger.info(f"Vendor {vendor.id} added service {service.id} ({service.name})")
    return service


@router.get("/services/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: UUID,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Service:
    return await _get_service(db, vendor.id, service_id)


@router.patch("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: UUID,
    service_data: ServiceUpdate,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Service:
    """Change a service. Existing bookings keep the price they were booked at."""
    service = await _get_service(db, vendor.id, service_id)
    for field, value in service_data.model_dump(exclude_unset=True).items():
        setattr(service, field, value)
    await db.flush()
    await db.refresh(service)
    return service


@router.delete("/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: UUID,
    vendor: Annotated[Vendor, Depends(require_approved_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    """Retire a service (soft delete).

    Booking lines reference services, so the row stays and is only hidden
    from customers and new bookings.
    """
    service = await _get_service(db, vendor.id, service_id)
    service.is_active = False
    await db.flush()
    logger.info(f"Vendor {vendor.id} retired service {service.id}")
