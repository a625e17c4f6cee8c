"""Customer booking creation and lookup."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, InvalidVendorState, NotFoundError, ValidationError
from app.core.permissions import UserRole
from app.domain.booking_state import BookingStatus
from app.domain.payment_state import PaymentStatus
from app.domain.pricing import PricedLine, calculate_booking_amounts
from app.domain.vendor_state import VendorStatus
from app.models.booking import Booking, BookingItem
from app.models.payment import Payment
from app.models.user import Address, User
from app.models.vendor import Service, Vendor
from app.schemas.booking import BookingCreate

logger = logging.getLogger(__name__)


class BookingService:
    """Creates bookings in PENDING and answers role-scoped lookups."""

    async def _resolve_address(
        self,
        db: AsyncSession,
        customer: User,
        data: BookingCreate,
    ) -> UUID | None:
        if data.address_id:
            result = await db.execute(
                select(Address).where(
                    Address.id == data.address_id, Address.user_id == customer.id
                )
            )
            address = result.scalar_one_or_none()
            if not address:
                raise NotFoundError("Address", str(data.address_id))
            return address.id

        if data.address:
            address = Address(user_id=customer.id, **data.address.model_dump())
            db.add(address)
            await db.flush()
            return address.id

        result = await db.execute(
            select(Address.id).where(Address.user_id == customer.id, Address.is_default.is_(True))
        )
        address_id = result.scalar_one_or_none()
        if address_id is None and data.booking_type == "AT_HOME":
            raise ValidationError("An address is required for at-home bookings")
        return address_id

    async def create_booking(
        self,
        db: AsyncSession,
        customer: User,
        data: BookingCreate,
    ) -> Booking:
        """Create a PENDING booking with server-side totals and a PENDING payment.

        Raises:
            NotFoundError: Unknown or inactive service, vendor or address
            InvalidVendorState: Requested vendor is not APPROVED
            ValidationError: Services span vendors, or the booking is otherwise invalid
        """
        if data.vendor_id:
            result = await db.execute(select(Vendor).where(Vendor.id == data.vendor_id))
            vendor = result.scalar_one_or_none()
            if not vendor:
                raise NotFoundError("Vendor", str(data.vendor_id))
            if vendor.status != VendorStatus.APPROVED.value:
                raise InvalidVendorState(vendor.status)

        service_ids = {item.service_id for item in data.items}
        result = await db.execute(
            select(Service).where(Service.id.in_(service_ids), Service.is_active.is_(True))
        )
        services = {service.id: service for service in result.scalars().all()}
        for service_id in service_ids:
            if service_id not in services:
                raise NotFoundError("Service", str(service_id))

        if data.vendor_id and any(s.vendor_id != data.vendor_id for s in services.values()):
            raise ValidationError("All services must be offered by the selected vendor")

        lines = [
            PricedLine(
                service_id=item.service_id,
                quantity=item.quantity,
                unit_price=services[item.service_id].price,
                duration_minutes=services[item.service_id].duration,
            )
            for item in data.items
        ]
        amounts = calculate_booking_amounts(lines)

        address_id = await self._resolve_address(db, customer, data)

        booking = Booking(
            customer_id=customer.id,
            vendor_id=data.vendor_id,
            address_id=address_id,
            scheduled_date=data.scheduled_date,
            scheduled_time=data.scheduled_time,
            booking_type=data.booking_type,
            notes=data.notes,
            duration=amounts["duration"],
            subtotal=amounts["subtotal"],
            total=amounts["total"],
            status=BookingStatus.PENDING.value,
            items=[
                BookingItem(
                    service_id=line.service_id,
                    quantity=line.quantity,
                    price=line.unit_price,
                )
                for line in lines
            ],
        )
        db.add(booking)
        await db.flush()

        db.add(
            Payment(
                booking_id=booking.id,
                user_id=customer.id,
                amount=booking.total,
                method=data.payment_method,
                status=PaymentStatus.PENDING.value,
            )
        )
        await db.flush()
        await db.refresh(booking)

        logger.info(
            f"Booking {booking.id} created by {customer.id} "
            f"({data.booking_type}, total={booking.total})"
        )
        return booking

    async def get_booking_for_user(self, db: AsyncSession, booking_id: UUID, user: User) -> Booking:
        """Fetch a booking the user may see.

        Customers see their own bookings, vendors the ones assigned to them,
        managers and admins all of them.
        """
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))

        if user.role in (UserRole.MANAGER.value, UserRole.ADMIN.value):
            return booking
        if user.role == UserRole.CUSTOMER.value and booking.customer_id == user.id:
            return booking
        if user.role == UserRole.VENDOR.value and booking.vendor_id is not None:
            result = await db.execute(select(Vendor.user_id).where(Vendor.id == booking.vendor_id))
            if result.scalar_one_or_none() == user.id:
                return booking

        raise AuthorizationError("You don't have permission to access this booking")

    async def list_bookings(
        self,
        db: AsyncSession,
        *where,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Booking], int]:
        """Page through bookings, newest first."""
        count = await db.execute(select(func.count()).select_from(Booking).where(*where))
        total = count.scalar_one()

        result = await db.execute(
            select(Booking)
            .where(*where)
            .order_by(Booking.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total


booking_service = BookingService()
