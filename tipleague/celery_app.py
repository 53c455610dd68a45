"""Celery application configuration."""

from celery import Celery
from celery.schedules import crontab

from tipleague.config import get_settings

_settings = get_settings()

# Create Celery app
celery_app = Celery(
    "tipleague",
    broker=_settings.redis_url,
    backend=_settings.redis_url,
    include=["tipleague.tasks.pipeline"],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=_settings.timezone,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=1800,  # 30 minutes max
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

# Beat schedule: one settlement batch per day, before the notification cutoff
celery_app.conf.beat_schedule = {
    "daily-settlement": {
        "task": "tipleague.tasks.pipeline.run_settlement_batch",
        "schedule": crontab(minute=0, hour=_settings.batch_hour),
    },
}
