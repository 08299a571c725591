from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from campus_wellness.db.base import Base
from campus_wellness.db.models import Booking, BookingStatus, Consultant, User, UserRole
from campus_wellness.tasks.notifications import send_booking_confirmation_task
from campus_wellness.tasks.reminders import find_bookings_to_remind


def _build_session() -> Session:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    return TestSession()


def _seed(db: Session) -> tuple[User, Consultant]:
    student = User(email="task-student@example.com", hashed_password="x", role=UserRole.CLIENT.value)
    consultant = Consultant(name="Dr. Task", title="Counselor", hourly_rate=Decimal("60.00"), experience_years=3)
    db.add_all([student, consultant])
    db.flush()
    return student, consultant


def test_reminders_include_only_active_bookings_inside_lookahead():
    db = _build_session()
    student, consultant = _seed(db)
    now = datetime.now(UTC).replace(microsecond=0)

    def booking(offset: timedelta, status: str) -> Booking:
        return Booking(
            user_id=student.id,
            consultant_id=consultant.id,
            scheduled_at=now + offset,
            payment_amount=Decimal("60.00"),
            status=status,
        )

    near = booking(timedelta(minutes=30), BookingStatus.PENDING.value)
    db.add_all(
        [
            near,
            booking(timedelta(minutes=60), BookingStatus.CANCELLED.value),
            booking(timedelta(hours=5), BookingStatus.CONFIRMED.value),
            booking(-timedelta(hours=1), BookingStatus.CONFIRMED.value),
        ]
    )
    db.commit()

    upcoming = find_bookings_to_remind(db=db, now=now)

    assert [item.id for item in upcoming] == [near.id]
    db.close()


def test_confirmation_task_runs_the_notification_eagerly():
    result = send_booking_confirmation_task.apply(
        kwargs={
            "payload": {
                "booking_id": 9,
                "user_email": "student@example.com",
                "consultant_name": "Dr. Task",
                "scheduled_at": "2026-10-26T09:00:00+00:00",
                "duration_minutes": 60,
            }
        }
    ).get()

    assert result["success"] is True
    assert "calendar.google.com" in result["calendar_link"]
