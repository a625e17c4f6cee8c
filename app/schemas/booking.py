"""Booking-related Pydantic schemas."""

import re
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BookingItemCreate(BaseModel):
    """One requested service line; the price comes from the catalogue."""

    service_id: UUID
    quantity: int = Field(default=1, ge=1, le=20)


class AddressCreate(BaseModel):
    """Inline address supplied with a booking."""

    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(default="", max_length=100)
    zip_code: str = Field(default="", max_length=20)


class BookingCreate(BaseModel):
    """Schema for creating a booking."""

    vendor_id: UUID | None = None
    items: list[BookingItemCreate] = Field(..., min_length=1)
    scheduled_date: date
    scheduled_time: str
    booking_type: str = Field(default="SALON", pattern="^(SALON|AT_HOME)$")
    notes: str | None = Field(None, max_length=1000)
    address_id: UUID | None = None
    address: AddressCreate | None = None
    payment_method: str = Field(default="ONLINE", pattern="^(ONLINE|CASH)$")

    @field_validator("scheduled_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not re.match(r"^([01][0-9]|2[0-3]):[0-5][0-9]$", v):
            raise ValueError("scheduled_time must be HH:MM")
        return v

    @model_validator(mode="after")
    def validate_address(self) -> "BookingCreate":
        if self.address_id and self.address:
            raise ValueError("Provide either address_id or address, not both")
        return self


class BookingItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    service_id: UUID
    quantity: int
    price: int


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    vendor_id: UUID | None
    employee_id: UUID | None
    address_id: UUID | None

    scheduled_date: date
    scheduled_time: str
    booking_type: str
    notes: str | None

    duration: int
    subtotal: int
    total: int

    status: str
    cancelled_by: str | None
    cancellation_reason: str | None

    items: list[BookingItemResponse] = []

    assigned_at: datetime | None
    confirmed_at: datetime | None
    started_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    created_at: datetime
    updated_at: datetime


class BookingListResponse(BaseModel):
    """Paginated booking list."""

    items: list[BookingResponse]
    total: int
    page: int
    page_size: int


class BookingCancelRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class AssignVendorRequest(BaseModel):
    vendor_id: UUID


class AssignmentAcceptRequest(BaseModel):
    employee_id: UUID | None = None


class AssignmentRejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class BulkClassifyRequest(BaseModel):
    phrase: str = Field(default="at home", min_length=1, max_length=100)


class BulkClassifyResponse(BaseModel):
    updated: int
