from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from campus_wellness.core.clock import as_utc, utcnow
from campus_wellness.core.config import settings
from campus_wellness.db.models import ACTIVE_BOOKING_STATUSES, AvailabilityRule, Booking, Consultant


@dataclass(frozen=True)
class TimeSlot:
    time: str
    scheduled_at: datetime
    available: bool


def day_of_week(value: date) -> int:
    """Weekday index used by availability rules: Sunday is 0, Saturday is 6."""
    return (value.weekday() + 1) % 7


def find_rule(rules: Iterable[AvailabilityRule], target_date: date) -> AvailabilityRule | None:
    weekday = day_of_week(target_date)
    return next((rule for rule in rules if rule.day_of_week == weekday), None)


def generate_time_slots(
    rules: Sequence[AvailabilityRule],
    target_date: date,
    booked_instants: Iterable[datetime],
    now: datetime,
    tz: ZoneInfo,
    slot_minutes: int = 60,
) -> list[TimeSlot]:
    """Expand the weekday's window into fixed-size slots.

    A slot is unavailable when an active booking starts at exactly the same
    instant or when it starts before ``now``. Bookings that are not aligned
    to a slot boundary are not detected here.
    """
    rule = find_rule(rules, target_date)
    if rule is None:
        return []

    booked = {as_utc(instant) for instant in booked_instants}
    current = datetime.combine(target_date, rule.start_time, tzinfo=tz)
    window_end = datetime.combine(target_date, rule.end_time, tzinfo=tz)
    step = timedelta(minutes=slot_minutes)

    slots: list[TimeSlot] = []
    while current < window_end:
        start_utc = as_utc(current)
        slots.append(
            TimeSlot(
                time=current.strftime("%H:%M"),
                scheduled_at=start_utc,
                available=start_utc not in booked and start_utc >= as_utc(now),
            )
        )
        current += step
    return slots


def is_date_selectable(
    rules: Sequence[AvailabilityRule],
    target_date: date,
    today: date,
    horizon_days: int = 14,
) -> bool:
    if find_rule(rules, target_date) is None:
        return False
    return today <= target_date <= today + timedelta(days=horizon_days)


def selectable_dates(rules: Sequence[AvailabilityRule], today: date, horizon_days: int = 14) -> list[date]:
    candidates = (today + timedelta(days=offset) for offset in range(horizon_days + 1))
    return [day for day in candidates if is_date_selectable(rules, day, today, horizon_days)]


def availability_zone() -> ZoneInfo:
    return ZoneInfo(settings.availability_timezone)


def local_today(now: datetime | None = None) -> date:
    return (now or utcnow()).astimezone(availability_zone()).date()


def get_consultant_or_404(db: Session, consultant_id: int) -> Consultant:
    consultant = db.scalar(select(Consultant).where(Consultant.id == consultant_id))
    if not consultant:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Consultant not found")
    return consultant


def load_rules(db: Session, consultant_id: int) -> list[AvailabilityRule]:
    return list(
        db.scalars(
            select(AvailabilityRule)
            .where(AvailabilityRule.consultant_id == consultant_id)
            .order_by(AvailabilityRule.day_of_week, AvailabilityRule.start_time)
        ).all()
    )


def load_booked_instants(db: Session, consultant_id: int, target_date: date, tz: ZoneInfo) -> list[datetime]:
    day_start = as_utc(datetime.combine(target_date, time.min, tzinfo=tz))
    day_end = as_utc(datetime.combine(target_date + timedelta(days=1), time.min, tzinfo=tz))
    return list(
        db.scalars(
            select(Booking.scheduled_at).where(
                Booking.consultant_id == consultant_id,
                Booking.scheduled_at >= day_start,
                Booking.scheduled_at < day_end,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            )
        ).all()
    )


def get_slots_for_date(
    db: Session,
    consultant_id: int,
    target_date: date,
    now: datetime | None = None,
) -> tuple[bool, list[TimeSlot]]:
    """Return whether the date can be selected and, if so, its slots."""
    get_consultant_or_404(db, consultant_id)
    current_time = now or utcnow()
    tz = availability_zone()
    rules = load_rules(db, consultant_id)

    if not is_date_selectable(rules, target_date, local_today(current_time), settings.booking_horizon_days):
        return False, []

    booked = load_booked_instants(db, consultant_id, target_date, tz)
    slots = generate_time_slots(
        rules,
        target_date,
        booked,
        now=current_time,
        tz=tz,
        slot_minutes=settings.slot_duration_minutes,
    )
    return True, slots


def get_selectable_dates(db: Session, consultant_id: int, now: datetime | None = None) -> list[date]:
    get_consultant_or_404(db, consultant_id)
    rules = load_rules(db, consultant_id)
    return selectable_dates(rules, local_today(now), settings.booking_horizon_days)
