from typing import Any

from campus_wellness.schemas.notification import BookingConfirmationRequest
from campus_wellness.services.notification_service import send_booking_confirmation
from campus_wellness.tasks.celery_app import celery_app


@celery_app.task(name="notifications.send_booking_confirmation")
def send_booking_confirmation_task(payload: dict[str, Any]) -> dict[str, Any]:
    request = BookingConfirmationRequest.model_validate(payload)
    return send_booking_confirmation(request).model_dump(mode="json")
