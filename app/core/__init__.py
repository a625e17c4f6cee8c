"""Core utilities and security modules."""

from app.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    InvalidStatus,
    InvalidTransition,
    InvalidVendorState,
    NotFoundError,
    ValidationError,
    VendorAccessDenied,
    VendorPendingApproval,
)
from app.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_token,
)

__all__ = [
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "InvalidStatus",
    "InvalidTransition",
    "InvalidVendorState",
    "NotFoundError",
    "ValidationError",
    "VendorAccessDenied",
    "VendorPendingApproval",
    "create_access_token",
    "create_refresh_token",
    "get_password_hash",
    "verify_password",
    "verify_token",
]
