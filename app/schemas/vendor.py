"""Vendor, employee and access-gate schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class VendorResponse(BaseModel):
    """Schema for vendor response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    shop_name: str
    description: str | None
    address: str | None
    city: str | None
    state: str | None
    zip_code: str | None
    status: str
    status_reason: str | None
    approved_at: datetime | None
    created_at: datetime


class VendorStatusUpdate(BaseModel):
    """Admin status change, routed through the vendor transition table."""

    status: str
    reason: str | None = Field(None, max_length=500)


class VendorRejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class VendorAccessResponse(BaseModel):
    """Vendor approval gate decision."""

    decision: str
    vendor_status: str
    redirect_to: str | None = None


class EmployeeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    role: str = Field(..., min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)
    experience: int = Field(default=0, ge=0, le=80)
    specialization: str | None = Field(None, max_length=200)


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    role: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)
    experience: int | None = Field(None, ge=0, le=80)
    specialization: str | None = Field(None, max_length=200)
    status: str | None = Field(None, pattern="^(ACTIVE|INACTIVE)$")


class EmployeeResponse(EmployeeBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    vendor_id: UUID
    email: str | None = None
    status: str
    created_at: datetime


class VendorProfileUpdate(BaseModel):
    """Shop fields a vendor may edit; approval fields are not writable here."""

    shop_name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    address: str | None = Field(None, max_length=500)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    zip_code: str | None = Field(None, max_length=20)

    @field_validator("shop_name")
    @classmethod
    def shop_name_not_cleared(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("shop_name cannot be cleared")
        return v


class VendorPublicResponse(BaseModel):
    """Vendor as shown to customers browsing the marketplace."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    shop_name: str
    description: str | None
    address: str | None
    city: str | None
    state: str | None


class VendorListResponse(BaseModel):
    items: list[VendorPublicResponse]
    total: int
    page: int
    page_size: int


# Prices are in the smallest currency unit, durations in minutes
class ServiceBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    price: int = Field(..., ge=0)
    duration: int = Field(default=60, gt=0, le=24 * 60)


class ServiceCreate(ServiceBase):
    pass


class ServiceUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    price: int | None = Field(None, ge=0)
    duration: int | None = Field(None, gt=0, le=24 * 60)
    is_active: bool | None = None

    @field_validator("name", "price", "duration", "is_active")
    @classmethod
    def required_fields_not_cleared(cls, v):
        if v is None:
            raise ValueError("field cannot be cleared")
        return v


class ServiceResponse(ServiceBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    vendor_id: UUID
    is_active: bool
    created_at: datetime
