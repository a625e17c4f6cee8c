"""Database models."""

from app.models.admin import AuditLog
from app.models.booking import Booking, BookingItem
from app.models.payment import Payment
from app.models.user import Address, User
from app.models.vendor import Employee, Service, Vendor

__all__ = [
    # User
    "User",
    "Address",
    # Vendor
    "Vendor",
    "Employee",
    "Service",
    # Booking
    "Booking",
    "BookingItem",
    # Payment
    "Payment",
    # Admin
    "AuditLog",
]
