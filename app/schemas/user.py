"""User-related Pydantic schemas."""

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

PHONE_PATTERN = r"^\+?[0-9]{9,15}$"


class UserBase(BaseModel):
    """Base user schema."""

    email: EmailStr
    phone: str | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not re.match(PHONE_PATTERN, v):
            raise ValueError("Phone must contain 9 to 15 digits, optionally prefixed with +")
        return v


class UserCreate(UserBase):
    """Schema for user registration.

    Vendors register with their shop profile; the vendor account starts
    PENDING until a manager approves it.
    """

    password: str = Field(..., min_length=8, max_length=128)
    role: str = Field(default="CUSTOMER", pattern="^(CUSTOMER|VENDOR)$")

    # Vendor shop profile
    shop_name: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=2000)
    address: str | None = None
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    zip_code: str | None = Field(None, max_length=20)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one digit")
        return v

    @model_validator(mode="after")
    def validate_vendor_profile(self) -> "UserCreate":
        if self.role == "VENDOR" and not self.shop_name:
            raise ValueError("shop_name is required for vendor registration")
        return self


class UserLogin(BaseModel):
    """Schema for user login."""

    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    phone: str | None
    first_name: str | None
    last_name: str | None
    role: str
    is_active: bool
    created_at: datetime


class UserStatusUpdate(BaseModel):
    """Admin activation / deactivation of an account."""

    is_active: bool


class TokenResponse(BaseModel):
    """Schema for authentication token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RegisterResponse(BaseModel):
    """Registration result: the new account plus tokens."""

    user: UserResponse
    tokens: TokenResponse
    vendor_status: str | None = None
