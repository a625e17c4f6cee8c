"""Customer booking endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import Pagination, get_current_active_user, get_db, require_customer
from app.models.booking import Booking
from app.models.user import User
from app.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
)
from app.services.booking_service import booking_service
from app.services.booking_workflow_service import booking_workflow_service

router = APIRouter()


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    current_user: Annotated[User, Depends(require_customer)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Create a new booking; totals are computed from the service catalogue."""
    return await booking_service.create_booking(db, current_user, booking_data)


@router.get("/", response_model=BookingListResponse)
async def list_my_bookings(
    current_user: Annotated[User, Depends(require_customer)],
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[Pagination, Depends()],
) -> BookingListResponse:
    """List the current customer's bookings."""
    bookings, total = await booking_service.list_bookings(
        db,
        Booking.customer_id == current_user.id,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return BookingListResponse(
        items=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Get booking details."""
    return await booking_service.get_booking_for_user(db, booking_id, current_user)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: UUID,
    request: BookingCancelRequest,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Cancel a booking that has not completed."""
    return await booking_workflow_service.cancel(
        db, booking_id, current_user, reason=request.reason
    )
