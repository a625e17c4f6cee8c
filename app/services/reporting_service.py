"""Dashboard and report aggregation (read-only queries)."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.core.permissions import UserRole
from app.domain.booking_state import BookingStatus
from app.domain.payment_state import PaymentStatus
from app.domain.vendor_state import PERSISTED_STATUSES, VendorStatus
from app.models.booking import Booking
from app.models.payment import Payment
from app.models.user import User
from app.models.vendor import Vendor

REPORT_RANGES: dict[str, int] = {
    "week": 7,
    "month": 30,
    "quarter": 90,
    "year": 365,
}

RECENT_LIMIT = 5
TOP_VENDORS_LIMIT = 10


async def _count_by(
    db: AsyncSession,
    column: Any,
    keys: list[str],
    *where: Any,
) -> dict[str, int]:
    """Count rows grouped by `column`, with a zero for every expected key."""
    result = await db.execute(select(column, func.count()).where(*where).group_by(column))
    counts = {key: 0 for key in keys}
    for value, count in result.all():
        counts[value] = count
    return counts


def _values(members: Any) -> list[str]:
    return sorted(m.value for m in members)


def _month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class ReportingService:
    """Read-only dashboard aggregation service."""

    async def _completed_revenue(self, db: AsyncSession, *where: Any) -> int:
        result = await db.execute(
            select(func.coalesce(func.sum(Booking.total), 0)).where(
                Booking.status == BookingStatus.COMPLETED.value,
                *where,
            )
        )
        return int(result.scalar_one())

    async def _count(self, db: AsyncSession, model: Any, *where: Any) -> int:
        result = await db.execute(select(func.count()).select_from(model).where(*where))
        return result.scalar_one()

    # ==================== MANAGER ====================

    async def get_manager_booking_stats(self, db: AsyncSession) -> dict:
        """Total bookings plus a count per status."""
        by_status = await _count_by(db, Booking.status, _values(BookingStatus))
        return {"total": sum(by_status.values()), "by_status": by_status}

    async def get_manager_dashboard(self, db: AsyncSession, now: datetime | None = None) -> dict:
        """Vendor pipeline, appointment counts and revenue for managers."""
        now = now or datetime.now(UTC)

        vendors = await _count_by(db, Vendor.status, _values(PERSISTED_STATUSES))
        bookings = await _count_by(db, Booking.status, _values(BookingStatus))

        total_revenue = await self._completed_revenue(db)
        monthly_revenue = await self._completed_revenue(
            db, Booking.completed_at >= _month_start(now)
        )

        pending_vendors = await db.execute(
            select(Vendor)
            .where(Vendor.status == VendorStatus.PENDING.value)
            .order_by(Vendor.created_at.desc())
            .limit(RECENT_LIMIT)
        )
        recent_bookings = await db.execute(
            select(Booking).order_by(Booking.created_at.desc()).limit(RECENT_LIMIT)
        )

        return {
            "pending_vendors": vendors[VendorStatus.PENDING.value],
            "approved_vendors": vendors[VendorStatus.APPROVED.value],
            "total_appointments": sum(bookings.values()),
            "pending_appointments": bookings[BookingStatus.PENDING.value]
            + bookings[BookingStatus.AWAITING_MANAGER.value]
            + bookings[BookingStatus.AWAITING_VENDOR_RESPONSE.value],
            "completed_appointments": bookings[BookingStatus.COMPLETED.value],
            "total_revenue": total_revenue,
            "monthly_revenue": monthly_revenue,
            "recent_pending_vendors": list(pending_vendors.scalars().all()),
            "recent_bookings": list(recent_bookings.scalars().all()),
        }

    async def get_manager_reports(
        self,
        db: AsyncSession,
        range_name: str = "month",
        now: datetime | None = None,
    ) -> dict:
        """Activity over the last week, month, quarter or year."""
        if range_name not in REPORT_RANGES:
            raise ValidationError(
                f"Unknown report range '{range_name}'; expected one of {', '.join(REPORT_RANGES)}"
            )
        now = now or datetime.now(UTC)
        since = now - timedelta(days=REPORT_RANGES[range_name])

        vendors = await _count_by(db, Vendor.status, _values(PERSISTED_STATUSES))
        new_vendors = await self._count(db, Vendor, Vendor.created_at >= since)
        appointments = await _count_by(
            db, Booking.status, _values(BookingStatus), Booking.created_at >= since
        )
        revenue = await self._completed_revenue(db, Booking.completed_at >= since)
        customers = await self._count(db, User, User.role == UserRole.CUSTOMER.value)

        vendor_revenue = func.coalesce(func.sum(Booking.total), 0).label("revenue")
        top = await db.execute(
            select(Vendor.id, Vendor.shop_name, vendor_revenue, func.count(Booking.id))
            .join(Booking, Booking.vendor_id == Vendor.id)
            .where(
                Vendor.status == VendorStatus.APPROVED.value,
                Booking.status == BookingStatus.COMPLETED.value,
            )
            .group_by(Vendor.id, Vendor.shop_name)
            .order_by(vendor_revenue.desc())
            .limit(TOP_VENDORS_LIMIT)
        )

        return {
            "range": range_name,
            "since": since,
            "vendors": {"by_status": vendors, "new": new_vendors},
            "appointments": {"total": sum(appointments.values()), "by_status": appointments},
            "revenue": revenue,
            "customers": customers,
            "top_vendors": [
                {
                    "vendor_id": vendor_id,
                    "shop_name": shop_name,
                    "revenue": int(total),
                    "completed_bookings": count,
                }
                for vendor_id, shop_name, total, count in top.all()
            ],
        }

    # ==================== ADMIN ====================

    async def get_admin_dashboard(self, db: AsyncSession) -> dict:
        """Platform-wide counts for admins."""
        return {
            "users_by_role": await _count_by(db, User.role, _values(UserRole)),
            "vendors_by_status": await _count_by(db, Vendor.status, _values(PERSISTED_STATUSES)),
            "bookings_by_status": await _count_by(db, Booking.status, _values(BookingStatus)),
            "payments_by_status": await _count_by(db, Payment.status, _values(PaymentStatus)),
            "total_revenue": await self._completed_revenue(db),
        }

    # ==================== VENDOR ====================

    async def get_vendor_dashboard(self, db: AsyncSession, vendor_id: UUID) -> dict:
        """Booking counts, revenue and upcoming work for one vendor."""
        by_status = await _count_by(
            db, Booking.status, _values(BookingStatus), Booking.vendor_id == vendor_id
        )
        revenue = await self._completed_revenue(db, Booking.vendor_id == vendor_id)
        upcoming = await db.execute(
            select(Booking)
            .where(
                Booking.vendor_id == vendor_id,
                Booking.status.in_(
                    [BookingStatus.CONFIRMED.value, BookingStatus.IN_PROGRESS.value]
                ),
            )
            .order_by(Booking.scheduled_date, Booking.scheduled_time)
        )
        return {
            "total_bookings": sum(by_status.values()),
            "bookings_by_status": by_status,
            "pending_responses": by_status[BookingStatus.AWAITING_VENDOR_RESPONSE.value],
            "completed_revenue": revenue,
            "upcoming_bookings": list(upcoming.scalars().all()),
        }


reporting_service = ReportingService()
