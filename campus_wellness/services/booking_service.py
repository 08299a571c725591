import logging
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from campus_wellness.core.clock import as_utc
from campus_wellness.core.config import settings
from campus_wellness.core.exceptions import BookingError, BookingErrorCode
from campus_wellness.core.metrics import BOOKING_OUTCOMES
from campus_wellness.db.models import (
    ACTIVE_BOOKING_STATUSES,
    ACTIVE_SLOT_INDEX,
    Booking,
    BookingStatus,
    Consultant,
    PaymentStatus,
    User,
    UserRole,
)
from campus_wellness.schemas.booking import BookingCreateRequest
from campus_wellness.schemas.notification import BookingConfirmationRequest
from campus_wellness.services.notification_service import Notifier

logger = logging.getLogger(__name__)

MISSING_FIELDS_DETAIL = "Missing required fields: consultant_id, scheduled_at, or payment_amount"
INVALID_DURATION_DETAIL = "duration_minutes must be a positive number of minutes"
CONSULTANT_UNAVAILABLE_DETAIL = "Consultant not found or not available"
SLOT_ALREADY_BOOKED_DETAIL = "This time slot is already booked"
AVAILABILITY_CHECK_FAILED_DETAIL = "Error checking booking availability"
SQLITE_ACTIVE_SLOT_VIOLATION = "UNIQUE constraint failed: bookings.consultant_id, bookings.scheduled_at"


def _fail(code: BookingErrorCode, message: str) -> BookingError:
    BOOKING_OUTCOMES.labels(outcome=code.value).inc()
    logger.info("booking_rejected code=%s message=%r", code.value, message)
    return BookingError(code, message)


def _validated_duration(payload: BookingCreateRequest) -> int:
    if payload.duration_minutes is None:
        return settings.default_booking_duration_minutes
    if payload.duration_minutes <= 0:
        raise _fail(BookingErrorCode.VALIDATION_ERROR, INVALID_DURATION_DETAIL)
    return payload.duration_minutes


def _validated_amount(payload: BookingCreateRequest) -> Decimal:
    if payload.payment_amount is None or payload.payment_amount <= 0:
        raise _fail(BookingErrorCode.VALIDATION_ERROR, MISSING_FIELDS_DETAIL)
    return payload.payment_amount


def is_active_slot_conflict(exc: IntegrityError) -> bool:
    """Whether the violated constraint is the one-active-booking-per-slot index."""
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint is not None:
        return constraint == ACTIVE_SLOT_INDEX
    # SQLite reports the indexed columns instead of the index name.
    return SQLITE_ACTIVE_SLOT_VIOLATION in str(exc.orig)


def find_active_booking(db: Session, consultant_id: int, scheduled_at) -> Booking | None:
    return db.scalar(
        select(Booking).where(
            Booking.consultant_id == consultant_id,
            Booking.scheduled_at == as_utc(scheduled_at),
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
    )


def create_booking(
    db: Session,
    user: User,
    payload: BookingCreateRequest,
    notifier: Notifier | None = None,
) -> Booking:
    if payload.consultant_id is None or payload.scheduled_at is None:
        raise _fail(BookingErrorCode.VALIDATION_ERROR, MISSING_FIELDS_DETAIL)
    amount = _validated_amount(payload)
    duration = _validated_duration(payload)
    scheduled_at = as_utc(payload.scheduled_at)
    logger.info(
        "booking_requested user_id=%s consultant_id=%s scheduled_at=%s duration=%s",
        user.id,
        payload.consultant_id,
        scheduled_at.isoformat(),
        duration,
    )

    consultant = db.scalar(
        select(Consultant).where(
            Consultant.id == payload.consultant_id,
            Consultant.is_available.is_(True),
        )
    )
    if not consultant:
        raise _fail(BookingErrorCode.PROVIDER_UNAVAILABLE, CONSULTANT_UNAVAILABLE_DETAIL)

    try:
        existing = find_active_booking(db, consultant.id, scheduled_at)
    except SQLAlchemyError:
        logger.exception("booking_availability_check_failed consultant_id=%s", consultant.id)
        raise _fail(BookingErrorCode.PERSISTENCE_ERROR, AVAILABILITY_CHECK_FAILED_DETAIL) from None
    if existing:
        raise _fail(BookingErrorCode.SLOT_ALREADY_BOOKED, SLOT_ALREADY_BOOKED_DETAIL)

    booking = Booking(
        user_id=user.id,
        consultant_id=consultant.id,
        scheduled_at=scheduled_at,
        duration_minutes=duration,
        notes=(payload.notes or "").strip() or None,
        payment_amount=amount,
        status=BookingStatus.PENDING.value,
        payment_status=PaymentStatus.UNPAID.value,
    )
    db.add(booking)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if is_active_slot_conflict(exc):
            # A concurrent request inserted the same active slot between the check and the insert.
            raise _fail(BookingErrorCode.SLOT_ALREADY_BOOKED, SLOT_ALREADY_BOOKED_DETAIL) from None
        logger.exception("booking_insert_failed consultant_id=%s", consultant.id)
        raise _fail(BookingErrorCode.PERSISTENCE_ERROR, "Failed to create booking: IntegrityError") from None
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("booking_insert_failed consultant_id=%s", consultant.id)
        raise _fail(BookingErrorCode.PERSISTENCE_ERROR, f"Failed to create booking: {exc.__class__.__name__}") from None

    db.refresh(booking)
    BOOKING_OUTCOMES.labels(outcome="created").inc()
    logger.info("booking_created booking_id=%s consultant_id=%s", booking.id, consultant.id)

    if notifier is not None:
        _notify_confirmation(notifier, booking, user, consultant)
    return booking


def _notify_confirmation(notifier: Notifier, booking: Booking, user: User, consultant: Consultant) -> None:
    try:
        notifier.booking_confirmed(
            BookingConfirmationRequest(
                booking_id=booking.id,
                user_email=user.email,
                consultant_name=consultant.name,
                scheduled_at=as_utc(booking.scheduled_at),
                duration_minutes=booking.duration_minutes,
            )
        )
    except Exception:
        logger.exception("booking_confirmation_failed booking_id=%s", booking.id)
    else:
        logger.info("booking_confirmation_sent booking_id=%s", booking.id)


def get_visible_booking(db: Session, booking_id: int, current_user: User) -> tuple[Booking, Consultant]:
    data = db.execute(
        select(Booking, Consultant)
        .join(Consultant, Booking.consultant_id == Consultant.id)
        .where(Booking.id == booking_id)
    ).first()
    if not data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")

    booking, consultant = data
    is_admin = current_user.role == UserRole.ADMIN.value
    is_owner = booking.user_id == current_user.id
    is_consultant_owner = consultant.user_id is not None and consultant.user_id == current_user.id
    if not (is_admin or is_owner or is_consultant_owner):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
    return booking, consultant
