"""API dependencies for authentication and common operations."""

from typing import Annotated, Any, Callable
from uuid import UUID

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    VendorAccessDenied,
    VendorPendingApproval,
)
from app.core.permissions import Permission, UserRole, has_permission
from app.core.security import verify_token
from app.database import get_db
from app.domain.vendor_state import VendorAccessDecision, authorize_vendor_access
from app.models.user import User
from app.models.vendor import Vendor

# Security scheme
security = HTTPBearer()

__all__ = [
    "get_db",
    "get_current_user",
    "get_current_active_user",
    "get_current_vendor",
    "require_approved_vendor",
    "require_role",
    "require_permission",
    "require_admin",
    "require_manager",
    "require_customer",
    "require_vendor",
    "Pagination",
]


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    payload = verify_token(credentials.credentials, token_type="access")
    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        raise AuthenticationError("Invalid token payload")

    # Fetch user from database
    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Get current user and verify they are active."""
    if not current_user.is_active:
        raise AuthorizationError("User account is deactivated")
    return current_user


def require_role(*allowed_roles: UserRole) -> Callable[..., Any]:
    """Dependency to require specific roles."""

    async def role_checker(
        current_user: Annotated[User, Depends(get_current_active_user)],
    ) -> User:
        if current_user.role not in {role.value for role in allowed_roles}:
            raise AuthorizationError(
                f"Role '{current_user.role}' is not authorized for this action"
            )
        return current_user

    return role_checker


def require_permission(permission: Permission) -> Callable[..., Any]:
    """Dependency to require a specific permission."""

    async def permission_checker(
        current_user: Annotated[User, Depends(get_current_active_user)],
    ) -> User:
        if not has_permission(current_user.role, permission):
            raise AuthorizationError(f"Permission '{permission.value}' is required for this action")
        return current_user

    return permission_checker


# Convenience dependencies
require_admin = require_role(UserRole.ADMIN)
require_manager = require_role(UserRole.MANAGER, UserRole.ADMIN)
require_customer = require_role(UserRole.CUSTOMER)
require_vendor = require_role(UserRole.VENDOR)


async def get_current_vendor(
    current_user: Annotated[User, Depends(require_vendor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vendor:
    """Vendor profile of the current user, whatever its approval status."""
    result = await db.execute(select(Vendor).where(Vendor.user_id == current_user.id))
    vendor = result.scalar_one_or_none()
    if not vendor:
        raise NotFoundError("Vendor profile")
    return vendor


async def require_approved_vendor(
    vendor: Annotated[Vendor, Depends(get_current_vendor)],
) -> Vendor:
    """Vendor approval gate for vendor-only endpoints."""
    decision = authorize_vendor_access(vendor.status)
    if decision == VendorAccessDecision.REDIRECT_PENDING:
        raise VendorPendingApproval(settings.vendor_pending_page)
    if decision == VendorAccessDecision.SHOW_REJECTED:
        raise VendorAccessDenied(vendor.status)
    return vendor


class Pagination:
    """Common page / page_size query parameters."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        page_size: int = Query(20, ge=1, le=100),
    ) -> None:
        self.page = page
        self.page_size = page_size
