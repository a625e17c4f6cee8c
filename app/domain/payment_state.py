"""Payment state machine."""

from enum import Enum

from app.core.exceptions import InvalidStatus, InvalidTransition


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


PAYMENT_TRANSITIONS: dict[PaymentStatus, set[PaymentStatus]] = {
    PaymentStatus.PENDING: {PaymentStatus.PROCESSING, PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.PROCESSING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}


def assert_payment_transition(current: str, target: str) -> None:
    try:
        current_status = PaymentStatus(current)
        target_status = PaymentStatus(target)
    except ValueError as e:
        raise InvalidStatus(str(e))
    if target_status not in PAYMENT_TRANSITIONS[current_status]:
        raise InvalidTransition(
            f"Invalid payment transition: {current} → {target}",
            current=current,
        )
