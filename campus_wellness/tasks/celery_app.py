from datetime import timedelta

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from campus_wellness.core.config import settings
from campus_wellness.core.logging import setup_logging

celery_app = Celery(
    "campus_wellness",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["campus_wellness.tasks.notifications", "campus_wellness.tasks.reminders"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "remind-upcoming-bookings": {
            "task": "bookings.remind_upcoming",
            "schedule": timedelta(minutes=settings.celery_reminder_interval_minutes),
        },
    },
)


@celery_setup_logging.connect
def configure_worker_logging(**_) -> None:
    setup_logging()
