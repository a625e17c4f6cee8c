"""
Integration tests for BookingWorkflowService against an in-memory database.
"""
from uuid import uuid4

import pytest
from sqlalchemy import select, update

from app.core.exceptions import (
    AuthorizationError,
    InvalidTransition,
    InvalidVendorState,
    NotFoundError,
    ValidationError,
)
from app.models.admin import AuditLog
from app.models.booking import Booking
from app.services.booking_workflow_service import (
    DEFAULT_REJECTION_REASON,
    booking_workflow_service as workflow,
)
from tests.factories import make_booking, make_employee, make_user, make_vendor


async def _status(db, booking_id) -> str:
    result = await db.execute(
        select(Booking.status).where(Booking.id == booking_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ==================== assign_vendor ====================


@pytest.mark.integration
@pytest.mark.asyncio
async def test_assign_approved_vendor(db):
    """PENDING booking + APPROVED vendor -> AWAITING_VENDOR_RESPONSE."""
    manager = await make_user(db, role="MANAGER")
    customer = await make_user(db)
    vendor = await make_vendor(db, status="APPROVED")
    booking = await make_booking(db, customer)

    booking = await workflow.assign_vendor(db, booking.id, vendor.id, manager)

    assert booking.status == "AWAITING_VENDOR_RESPONSE"
    assert booking.vendor_id == vendor.id
    assert booking.assigned_at is not None


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.parametrize("vendor_status", ["PENDING", "REJECTED", "SUSPENDED"])
async def test_assign_unapproved_vendor_fails(db, vendor_status):
    customer = await make_user(db)
    vendor = await make_vendor(db, status=vendor_status)
    booking = await make_booking(db, customer)

    with pytest.raises(InvalidVendorState):
        await workflow.assign_vendor(db, booking.id, vendor.id)

    assert await _status(db, booking.id) == "PENDING"
    refreshed = await workflow.get_booking(db, booking.id)
    assert refreshed.vendor_id is None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_assign_from_awaiting_manager(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer, status="AWAITING_MANAGER")

    booking = await workflow.assign_vendor(db, booking.id, vendor.id)

    assert booking.status == "AWAITING_VENDOR_RESPONSE"


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["COMPLETED", "CANCELLED", "CONFIRMED"])
async def test_assign_to_booking_past_triage_fails(db, status):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer, status=status)

    with pytest.raises(InvalidTransition):
        await workflow.assign_vendor(db, booking.id, vendor.id)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_assign_missing_booking_or_vendor(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer)

    with pytest.raises(NotFoundError):
        await workflow.assign_vendor(db, uuid4(), vendor.id)
    with pytest.raises(NotFoundError):
        await workflow.assign_vendor(db, booking.id, uuid4())


@pytest.mark.integration
@pytest.mark.asyncio
async def test_assign_loses_race_to_concurrent_update(db):
    """The write only applies if the status is still a source state."""
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer)

    # Another request cancels the booking behind this session's back
    await db.execute(
        update(Booking)
        .where(Booking.id == booking.id)
        .values(status="CANCELLED")
        .execution_options(synchronize_session=False)
    )

    with pytest.raises(InvalidTransition):
        await workflow.assign_vendor(db, booking.id, vendor.id)

    assert await _status(db, booking.id) == "CANCELLED"


# ==================== respond_to_assignment ====================


@pytest.mark.integration
@pytest.mark.asyncio
async def test_accept_with_active_employee(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    employee = await make_employee(db, vendor)
    booking = await make_booking(db, customer, status="AWAITING_VENDOR_RESPONSE", vendor=vendor)

    booking = await workflow.respond_to_assignment(
        db, booking.id, vendor.id, "accept", employee_id=employee.id
    )

    assert booking.status == "CONFIRMED"
    assert booking.employee_id == employee.id
    assert booking.confirmed_at is not None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_reject_with_reason(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer, status="AWAITING_VENDOR_RESPONSE", vendor=vendor)

    booking = await workflow.respond_to_assignment(
        db, booking.id, vendor.id, "reject", reason="unavailable"
    )

    assert booking.status == "CANCELLED"
    assert booking.cancellation_reason == "unavailable"
    assert booking.cancelled_by == "VENDOR"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_reject_without_reason_uses_default(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer, status="AWAITING_VENDOR_RESPONSE", vendor=vendor)

    booking = await workflow.respond_to_assignment(db, booking.id, vendor.id, "reject")

    assert booking.cancellation_reason == DEFAULT_REJECTION_REASON


@pytest.mark.integration
@pytest.mark.asyncio
async def test_accept_with_other_vendors_employee_fails(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    other_vendor = await make_vendor(db)
    foreign_employee = await make_employee(db, other_vendor)
    booking = await make_booking(db, customer, status="AWAITING_VENDOR_RESPONSE", vendor=vendor)

    with pytest.raises(NotFoundError):
        await workflow.respond_to_assignment(
            db, booking.id, vendor.id, "accept", employee_id=foreign_employee.id
        )

    assert await _status(db, booking.id) == "AWAITING_VENDOR_RESPONSE"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_accept_with_inactive_employee_fails(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    employee = await make_employee(db, vendor, status="INACTIVE")
    booking = await make_booking(db, customer, status="AWAITING_VENDOR_RESPONSE", vendor=vendor)

    with pytest.raises(NotFoundError):
        await workflow.respond_to_assignment(
            db, booking.id, vendor.id, "accept", employee_id=employee.id
        )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_respond_by_unassigned_vendor_fails(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    intruder = await make_vendor(db)
    booking = await make_booking(db, customer, status="AWAITING_VENDOR_RESPONSE", vendor=vendor)

    with pytest.raises(NotFoundError):
        await workflow.respond_to_assignment(db, booking.id, intruder.id, "accept")


@pytest.mark.integration
@pytest.mark.asyncio
async def test_vendor_can_accept_pending_booking_assigned_to_them(db):
    """Salon bookings created with a vendor can be accepted straight from PENDING."""
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer, status="PENDING", vendor=vendor)

    booking = await workflow.respond_to_assignment(db, booking.id, vendor.id, "accept")

    assert booking.status == "CONFIRMED"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_respond_twice_fails(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer, status="AWAITING_VENDOR_RESPONSE", vendor=vendor)

    await workflow.respond_to_assignment(db, booking.id, vendor.id, "accept")

    with pytest.raises(InvalidTransition):
        await workflow.respond_to_assignment(db, booking.id, vendor.id, "reject")


@pytest.mark.integration
@pytest.mark.asyncio
async def test_unknown_decision(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer, status="AWAITING_VENDOR_RESPONSE", vendor=vendor)

    with pytest.raises(ValidationError):
        await workflow.respond_to_assignment(db, booking.id, vendor.id, "maybe")


# ==================== fulfilment ====================


@pytest.mark.integration
@pytest.mark.asyncio
async def test_full_lifecycle_writes_audit_trail(db):
    manager = await make_user(db, role="MANAGER")
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer, booking_type="AT_HOME")

    await workflow.classify_at_home(db, booking.id, manager)
    await workflow.assign_vendor(db, booking.id, vendor.id, manager)
    await workflow.respond_to_assignment(db, booking.id, vendor.id, "accept")
    await workflow.start_service(db, booking.id, vendor_id=vendor.id)
    booking = await workflow.complete(db, booking.id, vendor_id=vendor.id)
    await db.flush()

    assert booking.status == "COMPLETED"
    assert booking.started_at is not None
    assert booking.completed_at is not None

    result = await db.execute(
        select(AuditLog.action)
        .where(AuditLog.resource_id == booking.id)
        .order_by(AuditLog.created_at, AuditLog.action)
    )
    actions = set(result.scalars().all())
    assert actions == {
        "booking_classify_at_home",
        "booking_assign_vendor",
        "booking_accept",
        "booking_start_service",
        "booking_complete",
    }


@pytest.mark.integration
@pytest.mark.asyncio
async def test_complete_requires_in_progress(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer, status="CONFIRMED", vendor=vendor)

    with pytest.raises(InvalidTransition):
        await workflow.complete(db, booking.id, vendor_id=vendor.id)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_start_by_other_vendor_fails(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    other = await make_vendor(db)
    booking = await make_booking(db, customer, status="CONFIRMED", vendor=vendor)

    with pytest.raises(NotFoundError):
        await workflow.start_service(db, booking.id, vendor_id=other.id)


# ==================== cancel ====================


@pytest.mark.integration
@pytest.mark.asyncio
async def test_customer_cancels_own_booking(db):
    customer = await make_user(db)
    booking = await make_booking(db, customer)

    booking = await workflow.cancel(db, booking.id, customer, reason="changed plans")

    assert booking.status == "CANCELLED"
    assert booking.cancelled_by == "CUSTOMER"
    assert booking.cancellation_reason == "changed plans"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_customer_cannot_cancel_someone_elses_booking(db):
    owner = await make_user(db)
    stranger = await make_user(db)
    booking = await make_booking(db, owner)

    with pytest.raises(AuthorizationError):
        await workflow.cancel(db, booking.id, stranger)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_manager_cancels_confirmed_booking(db):
    manager = await make_user(db, role="MANAGER")
    customer = await make_user(db)
    vendor = await make_vendor(db)
    booking = await make_booking(db, customer, status="CONFIRMED", vendor=vendor)

    booking = await workflow.cancel(db, booking.id, manager)

    assert booking.status == "CANCELLED"
    assert booking.cancelled_by == "MANAGER"


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["COMPLETED", "CANCELLED"])
async def test_cancel_terminal_booking_fails(db, status):
    admin = await make_user(db, role="ADMIN")
    customer = await make_user(db)
    booking = await make_booking(db, customer, status=status)

    with pytest.raises(InvalidTransition):
        await workflow.cancel(db, booking.id, admin)


# ==================== bulk classification ====================


@pytest.mark.integration
@pytest.mark.asyncio
async def test_bulk_classify_matches_type_and_notes(db):
    customer = await make_user(db)
    at_home = await make_booking(db, customer, booking_type="AT_HOME")
    noted = await make_booking(db, customer, notes="Please come At Home after 5pm")
    salon = await make_booking(db, customer, notes="window seat")
    confirmed = await make_booking(db, customer, booking_type="AT_HOME", status="CONFIRMED")

    moved = await workflow.bulk_classify_at_home(db)

    assert moved == 2
    assert await _status(db, at_home.id) == "AWAITING_MANAGER"
    assert await _status(db, noted.id) == "AWAITING_MANAGER"
    assert await _status(db, salon.id) == "PENDING"
    assert await _status(db, confirmed.id) == "CONFIRMED"
