"""Booking assignment state machine.

PENDING -> AWAITING_MANAGER -> AWAITING_VENDOR_RESPONSE -> CONFIRMED
        -> IN_PROGRESS -> COMPLETED, with CANCELLED reachable from every
non-terminal state. Each action names the states it may start from and the
single state it leads to.
"""

from dataclasses import dataclass
from enum import Enum

from app.core.exceptions import InvalidStatus, InvalidTransition


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    PENDING = "PENDING"
    AWAITING_MANAGER = "AWAITING_MANAGER"
    AWAITING_VENDOR_RESPONSE = "AWAITING_VENDOR_RESPONSE"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class BookingAction(str, Enum):
    """Actions that move a booking between states."""

    CLASSIFY_AT_HOME = "classify_at_home"
    ASSIGN_VENDOR = "assign_vendor"
    ACCEPT = "accept"
    REJECT = "reject"
    START_SERVICE = "start_service"
    COMPLETE = "complete"
    CANCEL = "cancel"


class AssignmentDecision(str, Enum):
    """Vendor response to an assignment."""

    ACCEPT = "accept"
    REJECT = "reject"


TERMINAL_STATES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED}
)

NON_TERMINAL_STATES: frozenset[BookingStatus] = frozenset(
    s for s in BookingStatus if s not in TERMINAL_STATES
)

# States in which a booking legitimately has no vendor
UNASSIGNED_STATES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.AWAITING_MANAGER}
)


@dataclass(frozen=True)
class Transition:
    """One row of the transition table."""

    action: BookingAction
    sources: frozenset[BookingStatus]
    target: BookingStatus


BOOKING_TRANSITIONS: dict[BookingAction, Transition] = {
    t.action: t
    for t in (
        Transition(
            BookingAction.CLASSIFY_AT_HOME,
            frozenset({BookingStatus.PENDING}),
            BookingStatus.AWAITING_MANAGER,
        ),
        Transition(
            BookingAction.ASSIGN_VENDOR,
            frozenset({BookingStatus.PENDING, BookingStatus.AWAITING_MANAGER}),
            BookingStatus.AWAITING_VENDOR_RESPONSE,
        ),
        Transition(
            BookingAction.ACCEPT,
            frozenset({BookingStatus.PENDING, BookingStatus.AWAITING_VENDOR_RESPONSE}),
            BookingStatus.CONFIRMED,
        ),
        Transition(
            BookingAction.REJECT,
            frozenset({BookingStatus.PENDING, BookingStatus.AWAITING_VENDOR_RESPONSE}),
            BookingStatus.CANCELLED,
        ),
        Transition(
            BookingAction.START_SERVICE,
            frozenset({BookingStatus.CONFIRMED}),
            BookingStatus.IN_PROGRESS,
        ),
        Transition(
            BookingAction.COMPLETE,
            frozenset({BookingStatus.IN_PROGRESS}),
            BookingStatus.COMPLETED,
        ),
        Transition(
            BookingAction.CANCEL,
            NON_TERMINAL_STATES,
            BookingStatus.CANCELLED,
        ),
    )
}


def parse_booking_status(value: str | BookingStatus) -> BookingStatus:
    """Coerce a stored value into a BookingStatus."""
    if isinstance(value, BookingStatus):
        return value
    try:
        return BookingStatus(value)
    except ValueError:
        raise InvalidStatus(value)


def is_terminal(status: str | BookingStatus) -> bool:
    return parse_booking_status(status) in TERMINAL_STATES


def next_status(current: str | BookingStatus, action: BookingAction) -> BookingStatus:
    """Return the state `action` leads to from `current`.

    Raises:
        InvalidTransition: If `action` is not allowed from `current`
    """
    current = parse_booking_status(current)
    transition = BOOKING_TRANSITIONS[action]
    if current not in transition.sources:
        raise InvalidTransition(
            f"Invalid booking transition: cannot {action.value} a booking in {current.value}",
            current=current.value,
            action=action.value,
        )
    return transition.target


def allowed_actions(current: str | BookingStatus) -> list[BookingAction]:
    """Actions that may be taken from `current`, in table order."""
    current = parse_booking_status(current)
    return [t.action for t in BOOKING_TRANSITIONS.values() if current in t.sources]


def assert_booking_transition(current: str | BookingStatus, target: str | BookingStatus) -> None:
    """Validate that some single action leads from `current` to `target`."""
    current = parse_booking_status(current)
    target = parse_booking_status(target)
    for transition in BOOKING_TRANSITIONS.values():
        if current in transition.sources and transition.target == target:
            return
    raise InvalidTransition(
        f"Invalid booking transition: {current.value} → {target.value}",
        current=current.value,
    )
