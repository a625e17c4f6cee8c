"""Vendor approval state machine and access gate.

States: PENDING -> APPROVED | REJECTED, APPROVED -> SUSPENDED.
REJECTED and SUSPENDED are terminal.
"""

from enum import Enum

from app.core.exceptions import InvalidStatus, InvalidTransition


class VendorStatus(str, Enum):
    """Vendor account states."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"
    # Profile lookup returned no status; never persisted
    UNKNOWN = "UNKNOWN"


class VendorAccessDecision(str, Enum):
    """Outcome of the vendor approval gate."""

    ALLOW = "ALLOW"
    REDIRECT_PENDING = "REDIRECT_PENDING"
    SHOW_REJECTED = "SHOW_REJECTED"


VENDOR_TRANSITIONS: dict[VendorStatus, set[VendorStatus]] = {
    VendorStatus.PENDING: {VendorStatus.APPROVED, VendorStatus.REJECTED},
    VendorStatus.APPROVED: {VendorStatus.SUSPENDED},
    VendorStatus.REJECTED: set(),
    VendorStatus.SUSPENDED: set(),
}

PERSISTED_STATUSES: frozenset[VendorStatus] = frozenset(VENDOR_TRANSITIONS)

# Decisions after which callers stop re-evaluating
SETTLED_DECISIONS: frozenset[VendorAccessDecision] = frozenset(
    {VendorAccessDecision.ALLOW, VendorAccessDecision.SHOW_REJECTED}
)


def parse_vendor_status(value: str | VendorStatus | None) -> VendorStatus:
    """Coerce a raw status into a VendorStatus.

    None maps to UNKNOWN; any other unrecognized value raises InvalidStatus.
    """
    if value is None:
        return VendorStatus.UNKNOWN
    if isinstance(value, VendorStatus):
        return value
    try:
        return VendorStatus(value)
    except ValueError:
        raise InvalidStatus(value)


def sources_for(target: VendorStatus) -> set[VendorStatus]:
    """States from which `target` can be reached."""
    return {source for source, targets in VENDOR_TRANSITIONS.items() if target in targets}


def assert_vendor_transition(current: str | VendorStatus, target: str | VendorStatus) -> None:
    """Validate vendor state transition.

    Raises:
        InvalidStatus: If either value is not a persisted vendor status
        InvalidTransition: If the transition is not allowed
    """
    current = parse_vendor_status(current)
    target = parse_vendor_status(target)
    if target not in PERSISTED_STATUSES:
        raise InvalidStatus(target.value)
    allowed = VENDOR_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidTransition(
            f"Invalid vendor transition: {current.value} → {target.value}",
            current=current.value,
        )


def authorize_vendor_access(
    vendor_status: str | VendorStatus | None,
    on_pending_page: bool = False,
) -> VendorAccessDecision:
    """Decide whether a vendor may reach a vendor-only surface.

    Args:
        vendor_status: Current vendor status, or None if unknown
        on_pending_page: Whether the request already targets the pending-approval page

    Returns:
        VendorAccessDecision

    Raises:
        InvalidStatus: If `vendor_status` is not a recognized value
    """
    status = parse_vendor_status(vendor_status)

    if status == VendorStatus.APPROVED:
        return VendorAccessDecision.ALLOW
    if status in (VendorStatus.REJECTED, VendorStatus.SUSPENDED):
        return VendorAccessDecision.SHOW_REJECTED

    # PENDING or UNKNOWN
    if on_pending_page:
        return VendorAccessDecision.ALLOW
    return VendorAccessDecision.REDIRECT_PENDING
