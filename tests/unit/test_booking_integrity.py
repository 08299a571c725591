import sqlite3
from datetime import UTC, datetime, time, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from campus_wellness.core.exceptions import BookingError, BookingErrorCode
from campus_wellness.db.models import ACTIVE_SLOT_INDEX, User, UserRole
from campus_wellness.schemas.booking import BookingCreateRequest
from campus_wellness.services.booking_service import create_booking, is_active_slot_conflict
from conftest import add_consultant


class _Diag:
    def __init__(self, constraint_name: str | None) -> None:
        self.constraint_name = constraint_name


class _PostgresError(Exception):
    def __init__(self, constraint_name: str | None) -> None:
        super().__init__("duplicate key value violates unique constraint")
        self.diag = _Diag(constraint_name)


def _integrity_error(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT INTO bookings ...", {}, orig)


SLOT_TAKEN = _integrity_error(
    sqlite3.IntegrityError("UNIQUE constraint failed: bookings.consultant_id, bookings.scheduled_at")
)
USER_MISSING = _integrity_error(sqlite3.IntegrityError("NOT NULL constraint failed: bookings.user_id"))


def test_active_slot_conflict_is_recognised_by_index_name():
    assert is_active_slot_conflict(_integrity_error(_PostgresError(ACTIVE_SLOT_INDEX))) is True
    assert is_active_slot_conflict(_integrity_error(_PostgresError("bookings_user_id_fkey"))) is False


def test_active_slot_conflict_is_recognised_from_sqlite_message():
    assert is_active_slot_conflict(SLOT_TAKEN) is True
    assert is_active_slot_conflict(USER_MISSING) is False
    assert is_active_slot_conflict(
        _integrity_error(sqlite3.IntegrityError("FOREIGN KEY constraint failed"))
    ) is False


def _seed(db_session):
    consultant = add_consultant(db_session, rules=[(1, time(9, 0), time(12, 0))])
    user = User(email="integrity@example.com", hashed_password="x", role=UserRole.CLIENT.value)
    db_session.add(user)
    db_session.commit()
    payload = BookingCreateRequest(
        consultant_id=consultant.id,
        scheduled_at=datetime.combine(datetime.now(UTC).date() + timedelta(days=2), time(10, 0), tzinfo=UTC),
        payment_amount=Decimal("80.00"),
    )
    return user, payload


@pytest.mark.parametrize(
    ("error", "expected_code"),
    [
        (SLOT_TAKEN, BookingErrorCode.SLOT_ALREADY_BOOKED),
        (USER_MISSING, BookingErrorCode.PERSISTENCE_ERROR),
    ],
)
def test_insert_integrity_errors_map_by_constraint(db_session, monkeypatch, error, expected_code):
    user, payload = _seed(db_session)

    def failing_commit() -> None:
        raise error

    monkeypatch.setattr(db_session, "commit", failing_commit)

    with pytest.raises(BookingError) as exc_info:
        create_booking(db=db_session, user=user, payload=payload)

    assert exc_info.value.code == expected_code
