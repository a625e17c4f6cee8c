"""Payment-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PaymentResponse(BaseModel):
    """Schema for payment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    user_id: UUID
    amount: int
    method: str
    status: str
    completed_at: datetime | None
    created_at: datetime


class PaymentStatusUpdate(BaseModel):
    status: str
