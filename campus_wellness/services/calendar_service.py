from datetime import UTC, datetime, timedelta
from urllib.parse import urlencode

from campus_wellness.core.clock import as_utc

GOOGLE_CALENDAR_RENDER_URL = "https://calendar.google.com/calendar/render"
SESSION_LOCATION = "Video Session (Link will be provided)"


def _format_utc_stamp(value: datetime) -> str:
    return as_utc(value).strftime("%Y%m%dT%H%M%SZ")


def _escape_ics_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", r"\;")
        .replace(",", r"\,")
        .replace("\r\n", r"\n")
        .replace("\n", r"\n")
    )


def _to_ics_status(status: str) -> str:
    normalized = status.upper()
    if normalized == "PENDING":
        return "TENTATIVE"
    if normalized in {"CONFIRMED", "CANCELLED"}:
        return normalized
    return "TENTATIVE"


def build_calendar_link(title: str, start_at: datetime, duration_minutes: int, description: str) -> str:
    end_at = start_at + timedelta(minutes=duration_minutes)
    params = {
        "action": "TEMPLATE",
        "text": title,
        "dates": f"{_format_utc_stamp(start_at)}/{_format_utc_stamp(end_at)}",
        "details": description,
        "location": SESSION_LOCATION,
    }
    return f"{GOOGLE_CALENDAR_RENDER_URL}?{urlencode(params)}"


def build_booking_calendar_ics(
    booking_id: int,
    scheduled_at: datetime,
    duration_minutes: int,
    consultant_name: str,
    client_email: str,
    booking_status: str,
) -> str:
    end_at = scheduled_at + timedelta(minutes=duration_minutes)
    summary = _escape_ics_text(f"Therapy Session with {consultant_name}")
    description = _escape_ics_text(
        f"Booking #{booking_id}\nConsultant: {consultant_name}\nClient: {client_email}\n"
        f"Duration: {duration_minutes} minutes"
    )

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Campus Wellness//Consultations//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:booking-{booking_id}@campus-wellness.local",
        f"DTSTAMP:{_format_utc_stamp(datetime.now(UTC))}",
        f"DTSTART:{_format_utc_stamp(scheduled_at)}",
        f"DTEND:{_format_utc_stamp(end_at)}",
        f"SUMMARY:{summary}",
        f"DESCRIPTION:{description}",
        f"LOCATION:{_escape_ics_text(SESSION_LOCATION)}",
        f"STATUS:{_to_ics_status(booking_status)}",
        "END:VEVENT",
        "END:VCALENDAR",
        "",
    ]
    return "\r\n".join(lines)
