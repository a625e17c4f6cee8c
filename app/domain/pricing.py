"""Booking price calculation.

Totals are always derived from the catalogue price of each booked service;
any total supplied by the client is ignored.
"""

from dataclasses import dataclass
from uuid import UUID

from app.core.exceptions import ValidationError


@dataclass(frozen=True)
class PricedLine:
    service_id: UUID
    quantity: int
    unit_price: int  # smallest currency unit
    duration_minutes: int = 0

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


def calculate_booking_amounts(lines: list[PricedLine]) -> dict[str, int]:
    """Calculate subtotal, total and duration for a booking.

    Args:
        lines: Priced line items

    Returns:
        dict with subtotal, total and duration (minutes)
    """
    if not lines:
        raise ValidationError("A booking needs at least one service")
    for line in lines:
        if line.quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        if line.unit_price < 0:
            raise ValidationError("Service price cannot be negative")

    subtotal = sum(line.line_total for line in lines)
    duration = sum(line.duration_minutes * line.quantity for line in lines)

    return {
        "subtotal": subtotal,
        "total": subtotal,
        "duration": duration,
    }
