"""Booking assignment workflow.

The only code that writes `Booking.status`, `vendor_id`, `employee_id` or
`cancellation_reason`. Every transition is a conditional UPDATE that only
matches while the booking is still in one of the action's source states, so
concurrent callers cannot both win.
"""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AuthorizationError,
    InvalidTransition,
    InvalidVendorState,
    NotFoundError,
    ValidationError,
)
from app.core.permissions import Permission, UserRole, has_permission
from app.domain.booking_state import (
    BOOKING_TRANSITIONS,
    AssignmentDecision,
    BookingAction,
    BookingStatus,
    next_status,
)
from app.domain.vendor_state import VendorStatus
from app.models.booking import Booking
from app.models.user import User
from app.models.vendor import Employee, Vendor
from app.services.audit_service import audit_service

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Booking rejected by vendor"
AT_HOME_PHRASE = "at home"


class BookingWorkflowService:
    """Executes booking state transitions."""

    async def get_booking(self, db: AsyncSession, booking_id: UUID) -> Booking:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def _apply(
        self,
        db: AsyncSession,
        booking: Booking,
        action: BookingAction,
        actor: User | None,
        values: dict[str, Any] | None = None,
        vendor_id: UUID | None = None,
    ) -> Booking:
        """Run one transition as a conditional write and record it.

        Args:
            db: Database session
            booking: Booking as last read by the caller
            action: Transition to perform
            actor: Acting user, or None for system actions
            values: Extra columns to set alongside the status
            vendor_id: If given, the write also requires this vendor to own the booking

        Raises:
            InvalidTransition: Booking is not in a source state of `action`,
                including when another request moved it first
            NotFoundError: Booking disappeared, or is no longer assigned to `vendor_id`
        """
        old_status = booking.status
        target = next_status(old_status, action)
        transition = BOOKING_TRANSITIONS[action]

        conditions = [
            Booking.id == booking.id,
            Booking.status.in_([s.value for s in transition.sources]),
        ]
        if vendor_id is not None:
            conditions.append(Booking.vendor_id == vendor_id)

        result = await db.execute(
            update(Booking).where(*conditions).values(status=target.value, **(values or {}))
        )
        if result.rowcount == 0:
            await self._raise_lost_update(db, booking.id, action, vendor_id)

        await db.refresh(booking)

        extra = {k: v for k, v in (values or {}).items() if not k.endswith("_at")}
        await audit_service.log_status_change(
            db,
            user_id=actor.id if actor else None,
            resource_type="booking",
            resource_id=booking.id,
            action=action.value,
            old_status=old_status,
            new_status=target.value,
            **extra,
        )
        logger.info(f"Booking {booking.id}: {old_status} -> {target.value} ({action.value})")
        return booking

    async def _raise_lost_update(
        self,
        db: AsyncSession,
        booking_id: UUID,
        action: BookingAction,
        vendor_id: UUID | None,
    ) -> None:
        result = await db.execute(
            select(Booking)
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        current = result.scalar_one_or_none()
        if current is None:
            raise NotFoundError("Booking", str(booking_id))
        if vendor_id is not None and current.vendor_id != vendor_id:
            raise NotFoundError("Booking", str(booking_id))
        raise InvalidTransition(
            f"Invalid booking transition: cannot {action.value} a booking in {current.status}",
            current=current.status,
            action=action.value,
        )

    # ==================== MANAGER ====================

    async def classify_at_home(
        self,
        db: AsyncSession,
        booking_id: UUID,
        actor: User | None = None,
    ) -> Booking:
        """Route a PENDING booking to manager triage."""
        booking = await self.get_booking(db, booking_id)
        return await self._apply(db, booking, BookingAction.CLASSIFY_AT_HOME, actor)

    async def bulk_classify_at_home(
        self,
        db: AsyncSession,
        actor: User | None = None,
        phrase: str = AT_HOME_PHRASE,
    ) -> int:
        """Move every PENDING at-home booking to AWAITING_MANAGER.

        A booking counts as at-home when its type is AT_HOME or its notes
        mention `phrase` (case-insensitive).

        Returns:
            Number of bookings moved
        """
        result = await db.execute(
            select(Booking.id).where(
                Booking.status == BookingStatus.PENDING.value,
                or_(Booking.booking_type == "AT_HOME", Booking.notes.ilike(f"%{phrase}%")),
            )
        )
        booking_ids = list(result.scalars().all())

        moved = 0
        for booking_id in booking_ids:
            try:
                await self.classify_at_home(db, booking_id, actor)
            except (InvalidTransition, NotFoundError):
                # Changed by someone else since the select
                continue
            moved += 1

        logger.info(f"Classified {moved} of {len(booking_ids)} bookings as awaiting manager")
        return moved

    async def assign_vendor(
        self,
        db: AsyncSession,
        booking_id: UUID,
        vendor_id: UUID,
        actor: User | None = None,
    ) -> Booking:
        """Assign an approved vendor to a booking.

        Raises:
            NotFoundError: Booking or vendor missing
            InvalidVendorState: Vendor is not APPROVED
            InvalidTransition: Booking not in PENDING or AWAITING_MANAGER
        """
        booking = await self.get_booking(db, booking_id)

        result = await db.execute(select(Vendor).where(Vendor.id == vendor_id))
        vendor = result.scalar_one_or_none()
        if not vendor:
            raise NotFoundError("Vendor", str(vendor_id))
        if vendor.status != VendorStatus.APPROVED.value:
            raise InvalidVendorState(vendor.status)

        return await self._apply(
            db,
            booking,
            BookingAction.ASSIGN_VENDOR,
            actor,
            values={"vendor_id": vendor_id, "assigned_at": datetime.now(UTC)},
        )

    # ==================== VENDOR ====================

    async def respond_to_assignment(
        self,
        db: AsyncSession,
        booking_id: UUID,
        vendor_id: UUID,
        decision: str | AssignmentDecision,
        employee_id: UUID | None = None,
        reason: str | None = None,
        actor: User | None = None,
    ) -> Booking:
        """Accept or reject a booking assigned to `vendor_id`.

        Raises:
            ValidationError: Unknown decision
            NotFoundError: Booking missing or not assigned to this vendor, or
                the employee is not an active member of this vendor
            InvalidTransition: Booking not in PENDING or AWAITING_VENDOR_RESPONSE
        """
        try:
            decision = AssignmentDecision(decision)
        except ValueError:
            raise ValidationError(f"Unknown decision: {decision!r}")

        booking = await self.get_booking(db, booking_id)
        if booking.vendor_id != vendor_id:
            raise NotFoundError("Booking", str(booking_id))

        if decision == AssignmentDecision.REJECT:
            return await self._apply(
                db,
                booking,
                BookingAction.REJECT,
                actor,
                values={
                    "cancellation_reason": reason or DEFAULT_REJECTION_REASON,
                    "cancelled_by": UserRole.VENDOR.value,
                    "cancelled_at": datetime.now(UTC),
                },
                vendor_id=vendor_id,
            )

        values: dict[str, Any] = {"confirmed_at": datetime.now(UTC)}
        if employee_id is not None:
            await self._get_active_employee(db, vendor_id, employee_id)
            values["employee_id"] = employee_id

        return await self._apply(
            db, booking, BookingAction.ACCEPT, actor, values=values, vendor_id=vendor_id
        )

    async def _get_active_employee(
        self,
        db: AsyncSession,
        vendor_id: UUID,
        employee_id: UUID,
    ) -> Employee:
        result = await db.execute(
            select(Employee).where(
                Employee.id == employee_id,
                Employee.vendor_id == vendor_id,
                Employee.status == "ACTIVE",
            )
        )
        employee = result.scalar_one_or_none()
        if not employee:
            raise NotFoundError("Employee", str(employee_id))
        return employee

    async def start_service(
        self,
        db: AsyncSession,
        booking_id: UUID,
        vendor_id: UUID | None = None,
        actor: User | None = None,
    ) -> Booking:
        """Mark a confirmed booking as in progress."""
        booking = await self._get_owned_booking(db, booking_id, vendor_id)
        return await self._apply(
            db,
            booking,
            BookingAction.START_SERVICE,
            actor,
            values={"started_at": datetime.now(UTC)},
            vendor_id=vendor_id,
        )

    async def complete(
        self,
        db: AsyncSession,
        booking_id: UUID,
        vendor_id: UUID | None = None,
        actor: User | None = None,
    ) -> Booking:
        """Mark an in-progress booking as completed."""
        booking = await self._get_owned_booking(db, booking_id, vendor_id)
        return await self._apply(
            db,
            booking,
            BookingAction.COMPLETE,
            actor,
            values={"completed_at": datetime.now(UTC)},
            vendor_id=vendor_id,
        )

    async def _get_owned_booking(
        self,
        db: AsyncSession,
        booking_id: UUID,
        vendor_id: UUID | None,
    ) -> Booking:
        booking = await self.get_booking(db, booking_id)
        if vendor_id is not None and booking.vendor_id != vendor_id:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    # ==================== ANY ROLE ====================

    async def cancel(
        self,
        db: AsyncSession,
        booking_id: UUID,
        actor: User,
        reason: str | None = None,
    ) -> Booking:
        """Cancel a non-terminal booking.

        Customers may cancel their own bookings; managers and admins any.

        Raises:
            NotFoundError: Booking missing
            AuthorizationError: Actor may not cancel this booking
            InvalidTransition: Booking already COMPLETED or CANCELLED
        """
        booking = await self.get_booking(db, booking_id)

        can_cancel = has_permission(actor.role, Permission.CANCEL_ANY_BOOKING) or (
            has_permission(actor.role, Permission.CANCEL_OWN_BOOKING)
            and booking.customer_id == actor.id
        )
        if not can_cancel:
            raise AuthorizationError("Not authorized to cancel this booking")

        return await self._apply(
            db,
            booking,
            BookingAction.CANCEL,
            actor,
            values={
                "cancellation_reason": reason,
                "cancelled_by": actor.role,
                "cancelled_at": datetime.now(UTC),
            },
        )


booking_workflow_service = BookingWorkflowService()
