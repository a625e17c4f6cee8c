"""Celery worker configuration.

Background processing is limited to notification dispatch; status
transitions never wait on it.
"""

from celery import Celery

from app.config import settings

celery_app = Celery(
    "bonzenga_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.tasks"],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=120,
    task_soft_time_limit=90,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Results are never read
    task_ignore_result=True,

    # Retry settings
    task_default_retry_delay=60,
    task_max_retries=3,

    # Fail fast when the broker is down; callers swallow the error
    broker_connection_timeout=2,
    task_publish_retry=False,
)


if __name__ == "__main__":
    celery_app.start()
