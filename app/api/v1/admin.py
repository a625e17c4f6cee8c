"""Admin endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_admin
from app.core.exceptions import NotFoundError, ValidationError
from app.core.permissions import UserRole
from app.domain.vendor_state import parse_vendor_status
from app.models.admin import AuditLog
from app.models.payment import Payment
from app.models.user import User
from app.models.vendor import Vendor
from app.schemas.payment import PaymentResponse, PaymentStatusUpdate
from app.schemas.reporting import AdminDashboardResponse
from app.schemas.user import UserResponse, UserStatusUpdate
from app.schemas.vendor import VendorRejectRequest, VendorResponse, VendorStatusUpdate
from app.services.audit_service import audit_service
from app.services.payment_service import update_payment_status
from app.services.reporting_service import reporting_service
from app.services.vendor_approval_service import vendor_approval_service

router = APIRouter()


@router.get("/dashboard", response_model=AdminDashboardResponse)
async def get_dashboard(
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Platform-wide counts."""
    return await reporting_service.get_admin_dashboard(db)


# ============ USER MANAGEMENT ============


@router.get("/users", response_model=list[UserResponse])
async def get_users(
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    role: str | None = None,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=100),
) -> list[User]:
    """Get all users."""
    query = select(User)
    if role:
        query = query.where(User.role == role.upper())

    offset = (page - 1) * page_size
    query = query.order_by(User.created_at.desc()).offset(offset).limit(page_size)

    result = await db.execute(query)
    return list(result.scalars().all())


@router.patch("/users/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: UUID,
    request: UserStatusUpdate,
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Activate or deactivate a user account."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User", str(user_id))

    if user.role == UserRole.ADMIN.value and not request.is_active:
        raise ValidationError("Cannot deactivate admin accounts")

    old_active = user.is_active
    user.is_active = request.is_active

    await audit_service.log_action(
        db,
        user_id=admin.id,
        action="activate_user" if request.is_active else "deactivate_user",
        resource_type="user",
        resource_id=user_id,
        old_values={"is_active": old_active},
        new_values={"is_active": request.is_active},
    )
    await db.flush()
    await db.refresh(user)
    return user


# ============ VENDORS ============


@router.get("/vendors", response_model=list[VendorResponse])
async def get_vendors(
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    status: str | None = None,
) -> list[Vendor]:
    """List vendors, optionally filtered by status."""
    query = select(Vendor).order_by(Vendor.created_at.desc())
    if status:
        query = query.where(Vendor.status == parse_vendor_status(status).value)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.patch("/vendors/{vendor_id}/status", response_model=VendorResponse)
async def update_vendor_status(
    vendor_id: UUID,
    request: VendorStatusUpdate,
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vendor:
    """Set a vendor status through the vendor transition table."""
    return await vendor_approval_service.set_status(
        db, vendor_id, request.status, admin, reason=request.reason
    )


@router.post("/vendors/{vendor_id}/suspend", response_model=VendorResponse)
async def suspend_vendor(
    vendor_id: UUID,
    request: VendorRejectRequest,
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vendor:
    """Suspend an approved vendor."""
    return await vendor_approval_service.suspend_vendor(
        db, vendor_id, admin, reason=request.reason
    )


# ============ PAYMENTS ============


@router.patch("/payments/{payment_id}/status", response_model=PaymentResponse)
async def set_payment_status(
    payment_id: UUID,
    request: PaymentStatusUpdate,
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Payment:
    """Record a payment status change."""
    return await update_payment_status(db, payment_id, request.status, admin)


# ============ AUDIT LOGS ============


@router.get("/audit-logs")
async def get_audit_logs(
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    resource_type: str | None = None,
    resource_id: UUID | None = None,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=100),
) -> dict:
    """Get audit logs."""
    query = select(AuditLog).order_by(AuditLog.created_at.desc())
    if resource_type:
        query = query.where(AuditLog.resource_type == resource_type)
    if resource_id:
        query = query.where(AuditLog.resource_id == resource_id)

    # Count
    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar() or 0

    # Pagination
    offset = (page - 1) * page_size
    query = query.offset(offset).limit(page_size)

    result = await db.execute(query)
    logs = result.scalars().all()

    return {
        "logs": [
            {
                "id": str(log.id),
                "user_id": str(log.user_id) if log.user_id else None,
                "action": log.action,
                "resource_type": log.resource_type,
                "resource_id": str(log.resource_id) if log.resource_id else None,
                "old_values": log.old_values,
                "new_values": log.new_values,
                "created_at": log.created_at.isoformat() if log.created_at else None,
            }
            for log in logs
        ],
        "total": total,
        "page": page,
        "page_size": page_size,
    }
