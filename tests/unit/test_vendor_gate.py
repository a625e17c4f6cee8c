"""
Unit tests for the vendor approval gate, its fail-safe evaluator and the poller.
"""
from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import InvalidStatus, InvalidTransition
from app.domain.vendor_state import (
    VendorAccessDecision,
    VendorStatus,
    assert_vendor_transition,
    authorize_vendor_access,
    parse_vendor_status,
    sources_for,
)
from app.services.vendor_access_service import (
    evaluate_vendor_access,
    poll_vendor_access,
    resolve_vendor_access,
)

ALLOW = VendorAccessDecision.ALLOW
REDIRECT = VendorAccessDecision.REDIRECT_PENDING
REJECTED = VendorAccessDecision.SHOW_REJECTED


# ==================== authorize_vendor_access ====================


@pytest.mark.unit
@pytest.mark.parametrize(
    "status, on_pending_page, expected",
    [
        ("APPROVED", False, ALLOW),
        ("APPROVED", True, ALLOW),
        ("PENDING", False, REDIRECT),
        ("PENDING", True, ALLOW),
        ("REJECTED", False, REJECTED),
        ("REJECTED", True, REJECTED),
        ("SUSPENDED", False, REJECTED),
        (None, False, REDIRECT),
        (None, True, ALLOW),
        (VendorStatus.UNKNOWN, False, REDIRECT),
    ],
)
def test_gate_decision_table(status, on_pending_page, expected):
    assert authorize_vendor_access(status, on_pending_page=on_pending_page) == expected


@pytest.mark.unit
def test_gate_rejects_malformed_status():
    with pytest.raises(InvalidStatus):
        authorize_vendor_access("approved-ish")


@pytest.mark.unit
def test_parse_vendor_status_maps_none_to_unknown():
    assert parse_vendor_status(None) == VendorStatus.UNKNOWN


# ==================== vendor transitions ====================


@pytest.mark.unit
def test_vendor_transition_sources():
    assert sources_for(VendorStatus.APPROVED) == {VendorStatus.PENDING}
    assert sources_for(VendorStatus.SUSPENDED) == {VendorStatus.APPROVED}


@pytest.mark.unit
@pytest.mark.parametrize(
    "current, target",
    [("REJECTED", "APPROVED"), ("SUSPENDED", "APPROVED"), ("APPROVED", "PENDING"), ("PENDING", "SUSPENDED")],
)
def test_vendor_transition_not_allowed(current, target):
    with pytest.raises(InvalidTransition):
        assert_vendor_transition(current, target)


@pytest.mark.unit
def test_vendor_transition_to_unknown_is_invalid_status():
    with pytest.raises(InvalidStatus):
        assert_vendor_transition("PENDING", "UNKNOWN")


# ==================== evaluate_vendor_access ====================


@pytest.mark.unit
@pytest.mark.asyncio
async def test_evaluate_uses_lookup_result():
    lookup = AsyncMock(return_value="APPROVED")
    assert await evaluate_vendor_access(lookup) == ALLOW
    lookup.assert_awaited_once()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_evaluate_lookup_failure_redirects_to_pending():
    """A failing profile lookup must not surface as an error."""
    lookup = AsyncMock(side_effect=ConnectionError("db down"))
    assert await evaluate_vendor_access(lookup) == REDIRECT


@pytest.mark.unit
@pytest.mark.asyncio
async def test_evaluate_lookup_failure_on_pending_page_allows():
    lookup = AsyncMock(side_effect=RuntimeError("boom"))
    assert await evaluate_vendor_access(lookup, on_pending_page=True) == ALLOW


@pytest.mark.unit
@pytest.mark.asyncio
async def test_resolve_reports_status_with_decision():
    lookup = AsyncMock(return_value="SUSPENDED")
    assert await resolve_vendor_access(lookup) == (REJECTED, "SUSPENDED")
    lookup.assert_awaited_once()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_resolve_lookup_failure_reports_unknown():
    lookup = AsyncMock(side_effect=ConnectionError("db down"))
    assert await resolve_vendor_access(lookup) == (REDIRECT, "UNKNOWN")
    lookup.assert_awaited_once()


# ==================== poll_vendor_access ====================


@pytest.mark.unit
@pytest.mark.asyncio
async def test_poll_stops_once_approved():
    lookup = AsyncMock(side_effect=["PENDING", "PENDING", "APPROVED", "PENDING"])
    sleep = AsyncMock()
    seen = []

    decision = await poll_vendor_access(lookup, interval=5, on_decision=seen.append, sleep=sleep)

    assert decision == ALLOW
    assert seen == [REDIRECT, REDIRECT, ALLOW]
    assert lookup.await_count == 3
    assert sleep.await_count == 2
    sleep.assert_awaited_with(5)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_poll_stops_on_rejection():
    lookup = AsyncMock(side_effect=["PENDING", "REJECTED"])
    sleep = AsyncMock()

    assert await poll_vendor_access(lookup, interval=1, sleep=sleep) == REJECTED
    assert lookup.await_count == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_poll_keeps_going_through_lookup_errors():
    lookup = AsyncMock(side_effect=[TimeoutError(), "APPROVED"])
    sleep = AsyncMock()

    assert await poll_vendor_access(lookup, interval=1, sleep=sleep) == ALLOW


@pytest.mark.unit
@pytest.mark.asyncio
async def test_poll_respects_max_attempts():
    lookup = AsyncMock(return_value="PENDING")
    sleep = AsyncMock()

    decision = await poll_vendor_access(lookup, interval=1, max_attempts=3, sleep=sleep)

    assert decision == REDIRECT
    assert lookup.await_count == 3
    assert sleep.await_count == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_poll_does_not_sleep_when_already_settled():
    lookup = AsyncMock(return_value="SUSPENDED")
    sleep = AsyncMock()

    assert await poll_vendor_access(lookup, sleep=sleep) == REJECTED
    sleep.assert_not_awaited()
