"""Vendor registration and approval workflow."""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidTransition, NotFoundError, ValidationError
from app.domain.vendor_state import (
    VendorStatus,
    assert_vendor_transition,
    parse_vendor_status,
    sources_for,
)
from app.models.user import User
from app.models.vendor import Vendor
from app.services.audit_service import audit_service
from app.services.notification_service import NotificationService
from app.tasks import queue_notification

logger = logging.getLogger(__name__)

_ACTION_NAMES = {
    VendorStatus.APPROVED: "approve",
    VendorStatus.REJECTED: "reject",
    VendorStatus.SUSPENDED: "suspend",
}

_NOTIFICATION_TYPES = {
    VendorStatus.APPROVED: NotificationService.VENDOR_APPROVED,
    VendorStatus.REJECTED: NotificationService.VENDOR_REJECTED,
    VendorStatus.SUSPENDED: NotificationService.VENDOR_SUSPENDED,
}

DEFAULT_REJECTION_REASON = "Your application did not meet our requirements at this time."


class VendorApprovalService:
    """Owns every write to `Vendor.status`."""

    async def get_vendor(self, db: AsyncSession, vendor_id: UUID) -> Vendor:
        result = await db.execute(select(Vendor).where(Vendor.id == vendor_id))
        vendor = result.scalar_one_or_none()
        if not vendor:
            raise NotFoundError("Vendor", str(vendor_id))
        return vendor

    async def get_vendor_for_user(self, db: AsyncSession, user_id: UUID) -> Vendor:
        result = await db.execute(select(Vendor).where(Vendor.user_id == user_id))
        vendor = result.scalar_one_or_none()
        if not vendor:
            raise NotFoundError("Vendor profile")
        return vendor

    async def register_vendor(
        self,
        db: AsyncSession,
        user: User,
        shop_name: str,
        description: str | None = None,
        address: str | None = None,
        city: str | None = None,
        state: str | None = None,
        zip_code: str | None = None,
    ) -> Vendor:
        """Create the PENDING vendor profile for a newly registered user."""
        existing = await db.execute(select(Vendor.id).where(Vendor.user_id == user.id))
        if existing.scalar_one_or_none():
            raise ValidationError("Vendor profile already exists")

        vendor = Vendor(
            user_id=user.id,
            shop_name=shop_name,
            description=description,
            address=address,
            city=city,
            state=state,
            zip_code=zip_code,
            status=VendorStatus.PENDING.value,
        )
        db.add(vendor)
        await db.flush()
        await db.refresh(vendor)

        logger.info(f"Vendor {vendor.id} registered ({shop_name}); awaiting approval")
        queue_notification(
            db,
            NotificationService.VENDOR_SIGNUP,
            {
                "shop_name": shop_name,
                "owner_name": user.full_name,
                "email": user.email,
                "phone": user.phone,
                "address": ", ".join(p for p in (address, city) if p) or None,
            },
        )
        return vendor

    async def set_status(
        self,
        db: AsyncSession,
        vendor_id: UUID,
        target: str | VendorStatus,
        actor: User | None = None,
        reason: str | None = None,
    ) -> Vendor:
        """Move a vendor to `target` if the transition table allows it.

        The write is conditional on the vendor still being in a valid
        source state, so two racing managers cannot both succeed.

        Raises:
            NotFoundError: Vendor does not exist
            InvalidStatus: `target` is not a vendor status
            InvalidTransition: Transition not allowed from the current status
        """
        target = parse_vendor_status(target)
        vendor = await self.get_vendor(db, vendor_id)
        old_status = vendor.status
        assert_vendor_transition(old_status, target)

        values: dict[str, Any] = {"status": target.value, "status_reason": reason}
        if target == VendorStatus.APPROVED:
            values["approved_at"] = datetime.now(UTC)
            values["status_reason"] = None
        elif target == VendorStatus.REJECTED and not reason:
            values["status_reason"] = DEFAULT_REJECTION_REASON

        result = await db.execute(
            update(Vendor)
            .where(
                Vendor.id == vendor_id,
                Vendor.status.in_([s.value for s in sources_for(target)]),
            )
            .values(**values)
        )
        if result.rowcount == 0:
            raise InvalidTransition(
                f"Vendor {vendor_id} changed status concurrently; cannot move to {target.value}",
                current=old_status,
            )
        await db.refresh(vendor)

        await audit_service.log_status_change(
            db,
            user_id=actor.id if actor else None,
            resource_type="vendor",
            resource_id=vendor.id,
            action=_ACTION_NAMES[target],
            old_status=old_status,
            new_status=target.value,
            reason=values["status_reason"],
        )
        logger.info(f"Vendor {vendor.id}: {old_status} -> {target.value}")

        await self._notify_status_change(db, vendor, target, values["status_reason"])
        return vendor

    async def approve_vendor(self, db: AsyncSession, vendor_id: UUID, actor: User | None = None) -> Vendor:
        return await self.set_status(db, vendor_id, VendorStatus.APPROVED, actor)

    async def reject_vendor(
        self,
        db: AsyncSession,
        vendor_id: UUID,
        actor: User | None = None,
        reason: str | None = None,
    ) -> Vendor:
        return await self.set_status(db, vendor_id, VendorStatus.REJECTED, actor, reason)

    async def suspend_vendor(
        self,
        db: AsyncSession,
        vendor_id: UUID,
        actor: User | None = None,
        reason: str | None = None,
    ) -> Vendor:
        return await self.set_status(db, vendor_id, VendorStatus.SUSPENDED, actor, reason)

    async def _notify_status_change(
        self,
        db: AsyncSession,
        vendor: Vendor,
        target: VendorStatus,
        reason: str | None,
    ) -> None:
        try:
            result = await db.execute(select(User).where(User.id == vendor.user_id))
            owner = result.scalar_one()
            payload: dict[str, Any] = {
                "email": owner.email,
                "shop_name": vendor.shop_name,
                "owner_name": owner.full_name,
            }
            if target != VendorStatus.APPROVED:
                payload["reason"] = reason
        except Exception:
            logger.exception(f"Could not build notification for vendor {vendor.id}")
            return
        queue_notification(db, _NOTIFICATION_TYPES[target], payload)


vendor_approval_service = VendorApprovalService()
