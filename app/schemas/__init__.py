"""Pydantic schemas for API validation."""

from app.schemas.booking import (
    AssignVendorRequest,
    BookingCancelRequest,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
)
from app.schemas.payment import PaymentResponse, PaymentStatusUpdate
from app.schemas.user import (
    RegisterResponse,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from app.schemas.vendor import (
    EmployeeCreate,
    EmployeeResponse,
    VendorAccessResponse,
    VendorResponse,
)

__all__ = [
    # User
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "TokenResponse",
    "RegisterResponse",
    # Vendor
    "VendorResponse",
    "VendorAccessResponse",
    "EmployeeCreate",
    "EmployeeResponse",
    # Booking
    "BookingCreate",
    "BookingResponse",
    "BookingListResponse",
    "BookingCancelRequest",
    "AssignVendorRequest",
    # Payment
    "PaymentResponse",
    "PaymentStatusUpdate",
]
