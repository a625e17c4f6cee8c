"""Payment status transitions recorded by back-office staff."""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidTransition, NotFoundError
from app.domain.payment_state import PaymentStatus, assert_payment_transition
from app.models.payment import Payment
from app.models.user import User
from app.services.audit_service import audit_service

logger = logging.getLogger(__name__)


async def update_payment_status(
    db: AsyncSession,
    payment_id: UUID,
    target: str,
    actor: User | None = None,
) -> Payment:
    """Move a payment along the payment transition table.

    Raises:
        NotFoundError: Payment missing
        InvalidStatus: Unknown status value
        InvalidTransition: Transition not allowed, or lost to a concurrent update
    """
    result = await db.execute(select(Payment).where(Payment.id == payment_id))
    payment = result.scalar_one_or_none()
    if not payment:
        raise NotFoundError("Payment", str(payment_id))

    old_status = payment.status
    assert_payment_transition(old_status, target)

    values: dict[str, Any] = {"status": target}
    if target == PaymentStatus.COMPLETED.value:
        values["completed_at"] = datetime.now(UTC)

    result = await db.execute(
        update(Payment)
        .where(Payment.id == payment_id, Payment.status == old_status)
        .values(**values)
    )
    if result.rowcount == 0:
        raise InvalidTransition(
            f"Payment {payment_id} changed status concurrently; cannot move to {target}",
            current=old_status,
        )
    await db.refresh(payment)

    await audit_service.log_status_change(
        db,
        user_id=actor.id if actor else None,
        resource_type="payment",
        resource_id=payment.id,
        action="status_update",
        old_status=old_status,
        new_status=target,
    )
    logger.info(f"Payment {payment.id}: {old_status} -> {target}")
    return payment
