"""Audit trail for booking, vendor and payment status changes."""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.admin import AuditLog


class AuditService:
    """Appends audit log rows inside the caller's transaction."""

    async def log_action(
        self,
        db: AsyncSession,
        user_id: UUID | None,
        action: str,
        resource_type: str,
        resource_id: UUID,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Record an action.

        Args:
            db: Database session
            user_id: Acting user, or None for system actions
            action: Action name (e.g., "booking_assign_vendor")
            resource_type: Resource type (e.g., "booking", "vendor")
            resource_id: Resource ID
            old_values: Previous state
            new_values: New state

        Returns:
            Created audit log entry
        """
        audit = AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            old_values=old_values,
            new_values=new_values,
        )
        db.add(audit)
        return audit

    async def log_status_change(
        self,
        db: AsyncSession,
        user_id: UUID | None,
        resource_type: str,
        resource_id: UUID,
        action: str,
        old_status: str,
        new_status: str,
        **extra: Any,
    ) -> AuditLog:
        """Log a status transition."""
        new_values: dict[str, Any] = {"status": new_status}
        new_values.update({k: str(v) if isinstance(v, UUID) else v for k, v in extra.items()})
        return await self.log_action(
            db=db,
            user_id=user_id,
            action=f"{resource_type}_{action}",
            resource_type=resource_type,
            resource_id=resource_id,
            old_values={"status": old_status},
            new_values=new_values,
        )


audit_service = AuditService()
