"""Celery background tasks for notification dispatch."""

import asyncio
import logging
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, SessionTransaction

from app.services.notification_service import NotificationService
from app.worker import celery_app

logger = logging.getLogger(__name__)

PENDING_NOTIFICATIONS_KEY = "pending_notifications"


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


@celery_app.task(bind=True, max_retries=3)
def send_notification(self, notification_type: str, payload: dict[str, Any]):
    """Deliver one notification email.

    Retries only on unexpected errors; a delivery refusal is logged by the
    notification service and not retried.
    """
    try:
        sent = run_async(NotificationService().dispatch(notification_type, payload))
        return {"status": "sent" if sent else "skipped", "type": notification_type}
    except Exception as exc:
        logger.exception(f"Notification task {notification_type} failed")
        raise self.retry(exc=exc, countdown=60)


def enqueue_notification(notification_type: str, payload: dict[str, Any]) -> bool:
    """Queue a notification without ever failing the caller.

    Returns:
        bool: True if the task was handed to the broker
    """
    try:
        send_notification.delay(notification_type, payload)
    except Exception:
        logger.exception(f"Failed to enqueue {notification_type} notification")
        return False
    return True


def queue_notification(
    db: AsyncSession | Session, notification_type: str, payload: dict[str, Any]
) -> None:
    """Hold a notification on the session until its transaction commits.

    Nothing reaches the broker if the transaction rolls back or the session
    closes without committing.
    """
    db.info.setdefault(PENDING_NOTIFICATIONS_KEY, []).append((notification_type, payload))


@event.listens_for(Session, "after_commit")
def _dispatch_committed_notifications(session: Session) -> None:
    pending = session.info.pop(PENDING_NOTIFICATIONS_KEY, [])
    for notification_type, payload in pending:
        enqueue_notification(notification_type, payload)


@event.listens_for(Session, "after_transaction_end")
def _discard_uncommitted_notifications(session: Session, transaction: SessionTransaction) -> None:
    # Savepoints end inside the outer transaction; only the root decides
    if transaction.parent is None:
        dropped = session.info.pop(PENDING_NOTIFICATIONS_KEY, None)
        if dropped:
            logger.info(f"Discarded {len(dropped)} notification(s) from an uncommitted transaction")
