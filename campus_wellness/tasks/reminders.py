import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from campus_wellness.core.clock import utcnow
from campus_wellness.core.config import settings
from campus_wellness.db.models import ACTIVE_BOOKING_STATUSES, Booking
from campus_wellness.db.session import SessionLocal
from campus_wellness.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def find_bookings_to_remind(db: Session, now: datetime | None = None) -> list[Booking]:
    current_time = now or utcnow()
    remind_until = current_time + timedelta(minutes=settings.reminder_lookahead_minutes)
    return list(
        db.scalars(
            select(Booking)
            .where(
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                Booking.scheduled_at >= current_time,
                Booking.scheduled_at < remind_until,
            )
            .order_by(Booking.scheduled_at)
        ).all()
    )


@celery_app.task(name="bookings.remind_upcoming")
def remind_upcoming_bookings_task() -> dict[str, int]:
    db = SessionLocal()
    try:
        upcoming = find_bookings_to_remind(db=db)
        for booking in upcoming:
            logger.info(
                "booking_reminder_due booking_id=%s user_id=%s scheduled_at=%s",
                booking.id,
                booking.user_id,
                booking.scheduled_at.isoformat(),
            )
        return {"to_remind": len(upcoming)}
    finally:
        db.close()
