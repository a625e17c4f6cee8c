"""Booking-related database models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.database import Base

if TYPE_CHECKING:
    from app.models.payment import Payment
    from app.models.user import Address, User
    from app.models.vendor import Employee, Service, Vendor


class Booking(Base):
    """Booking model."""

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    vendor_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("vendors.id"), index=True
    )
    employee_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("employees.id", ondelete="SET NULL")
    )
    address_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("addresses.id"))

    # Schedule
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    scheduled_time: Mapped[str] = mapped_column(String(10), nullable=False)  # HH:MM
    booking_type: Mapped[str] = mapped_column(String(20), default="SALON")  # SALON, AT_HOME
    notes: Mapped[str | None] = mapped_column(Text)

    # Pricing (smallest currency unit)
    duration: Mapped[int] = mapped_column(Integer, default=0)  # minutes
    subtotal: Mapped[int] = mapped_column(Integer, nullable=False)
    total: Mapped[int] = mapped_column(Integer, nullable=False)

    # Status
    status: Mapped[str] = mapped_column(
        String(30), default="PENDING", nullable=False, index=True
    )  # see app.domain.booking_state.BookingStatus

    # Cancellation
    cancelled_by: Mapped[str | None] = mapped_column(String(20))  # CUSTOMER, VENDOR, MANAGER, ADMIN
    cancellation_reason: Mapped[str | None] = mapped_column(Text)

    # Timestamps
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    customer: Mapped["User"] = relationship(
        "User", back_populates="bookings", foreign_keys=[customer_id]
    )
    vendor: Mapped["Vendor | None"] = relationship("Vendor", back_populates="bookings")
    employee: Mapped["Employee | None"] = relationship("Employee")
    address: Mapped["Address | None"] = relationship("Address")
    items: Mapped[list["BookingItem"]] = relationship(
        "BookingItem", back_populates="booking", cascade="all, delete-orphan", lazy="selectin"
    )
    payments: Mapped[list["Payment"]] = relationship("Payment", back_populates="booking")


class BookingItem(Base):
    """One booked service line."""

    __tablename__ = "booking_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("services.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    price: Mapped[int] = mapped_column(Integer, nullable=False)  # unit price at booking time

    booking: Mapped["Booking"] = relationship("Booking", back_populates="items")
    service: Mapped["Service"] = relationship("Service")
