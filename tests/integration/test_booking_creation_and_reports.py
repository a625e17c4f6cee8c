"""
Integration tests for booking creation, payment status updates and dashboards.
"""
from datetime import UTC, date, datetime, timedelta
from uuid import uuid4

import pytest
from sqlalchemy import select

from app.core.exceptions import (
    AuthorizationError,
    InvalidTransition,
    InvalidVendorState,
    NotFoundError,
    ValidationError,
)
from app.models.payment import Payment
from app.models.user import User
from app.schemas.booking import BookingCreate
from app.services.booking_service import booking_service
from app.services.payment_service import update_payment_status
from app.services.reporting_service import reporting_service
from tests.factories import make_booking, make_service, make_user, make_vendor


def _booking_data(**overrides) -> BookingCreate:
    data = {
        "scheduled_date": date.today() + timedelta(days=2),
        "scheduled_time": "14:00",
        "items": [],
    }
    data.update(overrides)
    return BookingCreate(**data)


# ==================== create_booking ====================


@pytest.mark.integration
@pytest.mark.asyncio
async def test_create_booking_prices_on_server(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    braids = await make_service(db, vendor, price=3000, duration=120)
    nails = await make_service(db, vendor, price=1500, duration=45)

    booking = await booking_service.create_booking(
        db,
        customer,
        _booking_data(
            vendor_id=vendor.id,
            items=[
                {"service_id": braids.id, "quantity": 1},
                {"service_id": nails.id, "quantity": 2},
            ],
        ),
    )

    assert booking.status == "PENDING"
    assert booking.total == 6000
    assert booking.subtotal == 6000
    assert booking.duration == 210
    assert sorted(item.price for item in booking.items) == [1500, 3000]

    result = await db.execute(select(Payment).where(Payment.booking_id == booking.id))
    payment = result.scalar_one()
    assert payment.status == "PENDING"
    assert payment.amount == 6000
    assert payment.method == "ONLINE"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_at_home_booking_without_vendor_creates_address(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    service = await make_service(db, vendor, price=2000)

    booking = await booking_service.create_booking(
        db,
        customer,
        _booking_data(
            booking_type="AT_HOME",
            items=[{"service_id": service.id}],
            address={"street": "12 Avenue du Commerce", "city": "Kinshasa"},
            payment_method="CASH",
        ),
    )

    assert booking.vendor_id is None
    assert booking.address_id is not None
    assert booking.status == "PENDING"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_at_home_booking_requires_address(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    service = await make_service(db, vendor)

    with pytest.raises(ValidationError):
        await booking_service.create_booking(
            db, customer, _booking_data(booking_type="AT_HOME", items=[{"service_id": service.id}])
        )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_services_from_another_vendor_rejected(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    other = await make_vendor(db)
    foreign = await make_service(db, other)

    with pytest.raises(ValidationError):
        await booking_service.create_booking(
            db, customer, _booking_data(vendor_id=vendor.id, items=[{"service_id": foreign.id}])
        )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_inactive_service_not_bookable(db):
    customer = await make_user(db)
    vendor = await make_vendor(db)
    retired = await make_service(db, vendor, is_active=False)

    with pytest.raises(NotFoundError):
        await booking_service.create_booking(
            db, customer, _booking_data(items=[{"service_id": retired.id}])
        )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_booking_with_unapproved_vendor_rejected(db):
    customer = await make_user(db)
    vendor = await make_vendor(db, status="PENDING")
    service = await make_service(db, vendor)

    with pytest.raises(InvalidVendorState):
        await booking_service.create_booking(
            db, customer, _booking_data(vendor_id=vendor.id, items=[{"service_id": service.id}])
        )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_booking_visibility_by_role(db):
    customer = await make_user(db)
    stranger = await make_user(db)
    manager = await make_user(db, role="MANAGER")
    vendor = await make_vendor(db)
    vendor_user = await db.get(User, vendor.user_id)
    booking = await make_booking(db, customer, vendor=vendor)

    assert (await booking_service.get_booking_for_user(db, booking.id, customer)).id == booking.id
    assert (await booking_service.get_booking_for_user(db, booking.id, manager)).id == booking.id
    assert (await booking_service.get_booking_for_user(db, booking.id, vendor_user)).id == booking.id
    with pytest.raises(AuthorizationError):
        await booking_service.get_booking_for_user(db, booking.id, stranger)
    with pytest.raises(NotFoundError):
        await booking_service.get_booking_for_user(db, uuid4(), manager)


# ==================== payments ====================


@pytest.mark.integration
@pytest.mark.asyncio
async def test_payment_completion_sets_timestamp(db):
    admin = await make_user(db, role="ADMIN")
    customer = await make_user(db)
    booking = await make_booking(db, customer, with_payment=True)
    result = await db.execute(select(Payment).where(Payment.booking_id == booking.id))
    payment = result.scalar_one()

    payment = await update_payment_status(db, payment.id, "COMPLETED", admin)

    assert payment.status == "COMPLETED"
    assert payment.completed_at is not None

    payment = await update_payment_status(db, payment.id, "REFUNDED", admin)
    assert payment.status == "REFUNDED"

    with pytest.raises(InvalidTransition):
        await update_payment_status(db, payment.id, "COMPLETED", admin)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_payment_missing(db):
    with pytest.raises(NotFoundError):
        await update_payment_status(db, uuid4(), "COMPLETED")


# ==================== reporting ====================


async def _seed_activity(db):
    customer = await make_user(db)
    busy = await make_vendor(db, shop_name="Busy Salon")
    quiet = await make_vendor(db, shop_name="Quiet Salon")
    await make_vendor(db, status="PENDING")
    await make_vendor(db, status="PENDING")

    for total in (4000, 6000):
        booking = await make_booking(db, customer, status="COMPLETED", vendor=busy, total=total)
        booking.completed_at = datetime.now(UTC)
    booking = await make_booking(db, customer, status="COMPLETED", vendor=quiet, total=1000)
    booking.completed_at = datetime.now(UTC)
    await make_booking(db, customer, status="PENDING")
    await make_booking(db, customer, status="AWAITING_VENDOR_RESPONSE", vendor=busy)
    await make_booking(db, customer, status="CONFIRMED", vendor=busy)
    await make_booking(db, customer, status="CANCELLED", total=9000)
    await db.flush()
    return busy, quiet


@pytest.mark.integration
@pytest.mark.asyncio
async def test_manager_dashboard(db):
    await _seed_activity(db)

    dashboard = await reporting_service.get_manager_dashboard(db)

    assert dashboard["pending_vendors"] == 2
    assert dashboard["approved_vendors"] == 2
    assert dashboard["total_appointments"] == 7
    assert dashboard["pending_appointments"] == 2
    assert dashboard["completed_appointments"] == 3
    assert dashboard["total_revenue"] == 11000
    assert dashboard["monthly_revenue"] == 11000
    assert len(dashboard["recent_pending_vendors"]) == 2
    assert len(dashboard["recent_bookings"]) == 5


@pytest.mark.integration
@pytest.mark.asyncio
async def test_manager_dashboard_on_empty_database(db):
    dashboard = await reporting_service.get_manager_dashboard(db)

    assert dashboard["total_revenue"] == 0
    assert dashboard["pending_vendors"] == 0
    assert dashboard["recent_bookings"] == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_manager_reports_rank_vendors_by_revenue(db):
    busy, quiet = await _seed_activity(db)

    report = await reporting_service.get_manager_reports(db, "week")

    assert report["range"] == "week"
    assert report["revenue"] == 11000
    assert report["appointments"]["by_status"]["COMPLETED"] == 3
    assert report["vendors"]["by_status"]["PENDING"] == 2
    assert [v["vendor_id"] for v in report["top_vendors"]] == [busy.id, quiet.id]
    assert report["top_vendors"][0]["revenue"] == 10000
    assert report["top_vendors"][0]["completed_bookings"] == 2


@pytest.mark.integration
@pytest.mark.asyncio
async def test_manager_reports_unknown_range(db):
    with pytest.raises(ValidationError):
        await reporting_service.get_manager_reports(db, "decade")


@pytest.mark.integration
@pytest.mark.asyncio
async def test_vendor_dashboard_is_scoped_to_vendor(db):
    busy, quiet = await _seed_activity(db)

    dashboard = await reporting_service.get_vendor_dashboard(db, busy.id)

    assert dashboard["total_bookings"] == 4
    assert dashboard["pending_responses"] == 1
    assert dashboard["completed_revenue"] == 10000
    assert [b.status for b in dashboard["upcoming_bookings"]] == ["CONFIRMED"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_admin_dashboard(db):
    await _seed_activity(db)
    await make_user(db, role="ADMIN")

    dashboard = await reporting_service.get_admin_dashboard(db)

    assert dashboard["users_by_role"]["VENDOR"] == 4
    assert dashboard["users_by_role"]["ADMIN"] == 1
    assert dashboard["vendors_by_status"]["SUSPENDED"] == 0
    assert dashboard["total_revenue"] == 11000
