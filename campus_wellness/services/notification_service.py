"""Booking confirmation payloads and the sinks that deliver them.

Nothing is actually mailed: the rendered message is logged, and the caller
gets back the calendar deep link and the formatted appointment details.
"""

import logging
from dataclasses import dataclass
from html import escape
from typing import Protocol

from campus_wellness.core.clock import as_utc
from campus_wellness.core.config import settings
from campus_wellness.schemas.notification import (
    AppointmentDetails,
    BookingConfirmationRequest,
    BookingConfirmationResponse,
)
from campus_wellness.services.availability_service import availability_zone
from campus_wellness.services.calendar_service import build_calendar_link
from campus_wellness.services.wellness_service import EMERGENCY_CONTACTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfirmationEmail:
    to: str
    subject: str
    html: str


def format_appointment(request: BookingConfirmationRequest) -> AppointmentDetails:
    local = as_utc(request.scheduled_at).astimezone(availability_zone())
    return AppointmentDetails(
        consultant_name=request.consultant_name,
        date=f"{local:%A, %B} {local.day}, {local.year}",
        time=local.strftime("%I:%M %p").lstrip("0"),
        duration=f"{request.duration_minutes} minutes",
    )


def confirmation_calendar_link(request: BookingConfirmationRequest) -> str:
    return build_calendar_link(
        title=f"Therapy Session with {request.consultant_name}",
        start_at=request.scheduled_at,
        duration_minutes=request.duration_minutes,
        description=(
            f"Your scheduled therapy session with {request.consultant_name}. "
            f"Duration: {request.duration_minutes} minutes. Meeting link will be provided separately."
        ),
    )


def render_confirmation_email(
    request: BookingConfirmationRequest,
    details: AppointmentDetails,
    calendar_link: str,
) -> ConfirmationEmail:
    rows = [
        ("Consultant", details.consultant_name),
        ("Date", details.date),
        ("Time", details.time),
        ("Duration", details.duration),
        ("Session Type", "Video Session"),
        ("Booking ID", str(request.booking_id)),
    ]
    detail_rows = "\n".join(
        f'<div class="detail-row"><span class="detail-label">{escape(label)}:</span> '
        f'<span class="detail-value">{escape(value)}</span></div>'
        for label, value in rows
    )
    crisis_rows = "\n".join(
        f"<p><strong>{escape(contact.name)}:</strong> {escape(contact.number)}</p>"
        for contact in EMERGENCY_CONTACTS
    )
    support_href = escape(f"mailto:{settings.support_email}?subject=Booking {request.booking_id}", quote=True)

    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Booking Confirmation</title></head>
<body>
<div class="container">
<h1>Booking Confirmed!</h1>
<p>Your therapy session has been successfully scheduled. Here are your booking details:</p>
<div class="booking-details">
{detail_rows}
</div>
<p>
<a href="{escape(calendar_link, quote=True)}" class="cta-button">Add to Google Calendar</a>
<a href="{support_href}" class="cta-button">Contact Support</a>
</p>
<ul>
<li>You'll receive a video meeting link 15 minutes before your session</li>
<li>Please find a quiet, private space for your session</li>
</ul>
<div class="emergency">
<p>If you're experiencing a mental health emergency, please contact:</p>
{crisis_rows}
</div>
<p>If you need to reschedule or cancel your appointment, please contact us at least 24 hours in advance.</p>
</div>
</body>
</html>
"""
    return ConfirmationEmail(
        to=request.user_email,
        subject=f"Booking Confirmation - Session with {request.consultant_name}",
        html=html,
    )


def send_booking_confirmation(request: BookingConfirmationRequest) -> BookingConfirmationResponse:
    details = format_appointment(request)
    calendar_link = confirmation_calendar_link(request)
    email = render_confirmation_email(request, details, calendar_link)

    logger.info(
        "booking_confirmation_prepared booking_id=%s to=%s subject=%r html_length=%s sender=%r",
        request.booking_id,
        email.to,
        email.subject,
        len(email.html),
        settings.notification_sender,
    )
    return BookingConfirmationResponse(
        success=True,
        message="Booking confirmation prepared",
        calendar_link=calendar_link,
        appointment_details=details,
    )


class Notifier(Protocol):
    def booking_confirmed(self, request: BookingConfirmationRequest) -> None: ...


class InlineNotifier:
    def booking_confirmed(self, request: BookingConfirmationRequest) -> None:
        send_booking_confirmation(request)


class CeleryNotifier:
    def booking_confirmed(self, request: BookingConfirmationRequest) -> None:
        from campus_wellness.tasks.notifications import send_booking_confirmation_task

        send_booking_confirmation_task.apply_async(
            kwargs={"payload": request.model_dump(mode="json")},
            retry=False,
        )


def build_notifier() -> Notifier:
    if settings.notification_backend.strip().lower() == "celery":
        return CeleryNotifier()
    return InlineNotifier()
