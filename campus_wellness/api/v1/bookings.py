from datetime import date, datetime, time, timedelta

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from campus_wellness.api.deps import LimitParam, OffsetParam, RequestContext, get_current_user, get_request_context
from campus_wellness.core.clock import as_utc
from campus_wellness.db.models import Booking, BookingStatus, User
from campus_wellness.db.session import get_db
from campus_wellness.schemas.booking import BookingCreatedResponse, BookingCreateRequest, BookingResponse
from campus_wellness.services.availability_service import availability_zone
from campus_wellness.services.booking_service import create_booking, get_visible_booking
from campus_wellness.services.calendar_service import build_booking_calendar_ics

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingCreatedResponse, status_code=status.HTTP_200_OK)
def create_consultation_booking(
    payload: BookingCreateRequest,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> BookingCreatedResponse:
    booking = create_booking(db=db, user=context.user, payload=payload, notifier=context.notifier)
    return BookingCreatedResponse(booking_id=booking.id)


@router.get("/me", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_my_bookings(
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[BookingResponse]:
    tz = availability_zone()
    query = select(Booking).where(Booking.user_id == current_user.id)
    if status_filter:
        query = query.where(Booking.status == status_filter.value)
    if date_from:
        query = query.where(Booking.scheduled_at >= as_utc(datetime.combine(date_from, time.min, tzinfo=tz)))
    if date_to:
        end_dt = as_utc(datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=tz))
        query = query.where(Booking.scheduled_at < end_dt)

    bookings = db.scalars(query.order_by(Booking.scheduled_at, Booking.id).limit(limit).offset(offset)).all()
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.get("/{booking_id}/calendar.ics", status_code=status.HTTP_200_OK)
def download_booking_calendar_file(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    booking, consultant = get_visible_booking(db=db, booking_id=booking_id, current_user=current_user)
    ics_content = build_booking_calendar_ics(
        booking_id=booking.id,
        scheduled_at=as_utc(booking.scheduled_at),
        duration_minutes=booking.duration_minutes,
        consultant_name=consultant.name,
        client_email=booking.user.email,
        booking_status=booking.status,
    )
    return Response(
        content=ics_content,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="booking-{booking.id}.ics"'},
    )


@router.get("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def get_booking_by_id(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking, _ = get_visible_booking(db=db, booking_id=booking_id, current_user=current_user)
    return BookingResponse.model_validate(booking)
