"""Vendor approval gate evaluation and status polling.

The decision itself is the pure `authorize_vendor_access`; this module adds
the I/O around it: fetching the status, degrading to REDIRECT_PENDING when
the fetch fails, and re-checking on a timer until the vendor is settled.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.domain.vendor_state import (
    SETTLED_DECISIONS,
    VendorAccessDecision,
    VendorStatus,
    authorize_vendor_access,
    parse_vendor_status,
)
from app.models.vendor import Vendor

logger = logging.getLogger(__name__)

StatusLookup = Callable[[], Awaitable[str | VendorStatus | None]]


def vendor_status_lookup(db: AsyncSession, user_id: UUID) -> StatusLookup:
    """Build a lookup returning the status of the vendor owned by `user_id`."""

    async def lookup() -> str | None:
        result = await db.execute(select(Vendor.status).where(Vendor.user_id == user_id))
        return result.scalar_one_or_none()

    return lookup


async def resolve_vendor_access(
    lookup: StatusLookup,
    on_pending_page: bool = False,
) -> tuple[VendorAccessDecision, str]:
    """Fetch the vendor status once and run the gate on it.

    A failing lookup is treated like a missing status, so the caller gets
    REDIRECT_PENDING rather than an error. A lookup that succeeds but
    returns a malformed status still raises InvalidStatus.

    Returns:
        The decision and the status it was based on, UNKNOWN when the
        vendor has no profile or the lookup failed
    """
    try:
        status = await lookup()
    except Exception:
        logger.warning("Vendor status lookup failed; treating vendor as pending", exc_info=True)
        status = None
    decision = authorize_vendor_access(status, on_pending_page=on_pending_page)
    return decision, parse_vendor_status(status).value


async def evaluate_vendor_access(
    lookup: StatusLookup,
    on_pending_page: bool = False,
) -> VendorAccessDecision:
    """Fetch the vendor status and run the gate."""
    decision, _ = await resolve_vendor_access(lookup, on_pending_page=on_pending_page)
    return decision


async def poll_vendor_access(
    lookup: StatusLookup,
    interval: float | None = None,
    max_attempts: int | None = None,
    on_decision: Callable[[VendorAccessDecision], None] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> VendorAccessDecision:
    """Re-evaluate the gate until the vendor is no longer pending.

    Args:
        lookup: Status lookup, called once per attempt
        interval: Seconds between attempts (defaults to settings)
        max_attempts: Stop after this many evaluations; None polls until settled
        on_decision: Called with every decision, including the last
        sleep: Awaitable sleep, injectable for tests

    Returns:
        The last decision: ALLOW or SHOW_REJECTED once settled, otherwise
        REDIRECT_PENDING when `max_attempts` ran out
    """
    if interval is None:
        interval = settings.vendor_status_poll_seconds

    attempts = 0
    while True:
        decision = await evaluate_vendor_access(lookup)
        attempts += 1
        if on_decision is not None:
            on_decision(decision)
        if decision in SETTLED_DECISIONS:
            return decision
        if max_attempts is not None and attempts >= max_attempts:
            return decision
        await sleep(interval)
