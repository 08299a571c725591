from datetime import UTC, datetime
from urllib.parse import parse_qs, urlparse

from campus_wellness.schemas.notification import BookingConfirmationRequest
from campus_wellness.services.calendar_service import build_booking_calendar_ics, build_calendar_link
from campus_wellness.services.notification_service import (
    InlineNotifier,
    format_appointment,
    render_confirmation_email,
    send_booking_confirmation,
)


def _request(**overrides) -> BookingConfirmationRequest:
    payload = {
        "booking_id": 17,
        "user_email": "student@example.com",
        "consultant_name": "Dr. Maya Chen",
        "scheduled_at": "2026-10-26T09:00:00Z",
        "duration_minutes": 60,
    }
    payload.update(overrides)
    return BookingConfirmationRequest.model_validate(payload)


def test_calendar_link_spans_start_to_end_in_utc():
    link = build_calendar_link(
        title="Therapy Session with Dr. Maya Chen",
        start_at=datetime(2026, 10, 26, 9, 0, tzinfo=UTC),
        duration_minutes=45,
        description="Session",
    )

    parsed = urlparse(link)
    params = parse_qs(parsed.query)
    assert parsed.netloc == "calendar.google.com"
    assert params["action"] == ["TEMPLATE"]
    assert params["dates"] == ["20261026T090000Z/20261026T094500Z"]
    assert params["text"] == ["Therapy Session with Dr. Maya Chen"]


def test_appointment_details_are_human_readable():
    details = format_appointment(_request())

    assert details.date == "Monday, October 26, 2026"
    assert details.time == "9:00 AM"
    assert details.duration == "60 minutes"


def test_confirmation_email_escapes_values_and_lists_crisis_lines():
    request = _request(consultant_name="Dr. <b>Chen</b>")
    email = render_confirmation_email(request, format_appointment(request), "https://calendar.example/?a=1&b=2")

    assert email.to == "student@example.com"
    assert email.subject == "Booking Confirmation - Session with Dr. <b>Chen</b>"
    assert "Dr. &lt;b&gt;Chen&lt;/b&gt;" in email.html
    assert "<b>Chen</b>" not in email.html
    assert "a=1&amp;b=2" in email.html
    assert "988" in email.html and "911" in email.html


def test_send_booking_confirmation_returns_link_and_details():
    result = send_booking_confirmation(_request())

    assert result.success is True
    assert result.calendar_link.startswith("https://calendar.google.com/calendar/render?")
    assert result.appointment_details.consultant_name == "Dr. Maya Chen"


def test_inline_notifier_sends_without_raising():
    InlineNotifier().booking_confirmed(_request())


def test_ics_contains_event_window_and_tentative_status_for_pending():
    ics = build_booking_calendar_ics(
        booking_id=5,
        scheduled_at=datetime(2026, 10, 26, 9, 0),
        duration_minutes=60,
        consultant_name="Dr. Chen, PhD",
        client_email="student@example.com",
        booking_status="pending",
    )

    assert "DTSTART:20261026T090000Z" in ics
    assert "DTEND:20261026T100000Z" in ics
    assert "STATUS:TENTATIVE" in ics
    assert r"SUMMARY:Therapy Session with Dr. Chen\, PhD" in ics
    assert ics.endswith("\r\n")
