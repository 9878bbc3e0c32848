"""Celery application configuration"""

from celery import Celery
from reservation_service.config import settings

# Create Celery app
celery_app = Celery(
    "reservation_service",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "reservation_service.jobs.tasks",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=60,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Beat schedule for periodic tasks
    beat_schedule={
        "expire-pending-reservations": {
            "task": "expire_pending_reservations",
            "schedule": settings.reaper_interval_seconds,
        },
    },
)
