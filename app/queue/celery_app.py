"""
Celery application configuration
"""
from celery import Celery

from app.config import get_settings

settings = get_settings()

celery_app = Celery(
    "scriptflow",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "app.queue.periodic_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

from app.queue.beat_schedule import beat_schedule
import app.queue.signals  # noqa: F401 - register Celery signal handlers

celery_app.conf.beat_schedule = beat_schedule
