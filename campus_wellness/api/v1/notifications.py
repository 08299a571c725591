from fastapi import APIRouter, Depends, status

from campus_wellness.api.deps import require_roles
from campus_wellness.db.models.user import User, UserRole
from campus_wellness.schemas.notification import BookingConfirmationRequest, BookingConfirmationResponse
from campus_wellness.services.notification_service import send_booking_confirmation

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post(
    "/booking-confirmation",
    response_model=BookingConfirmationResponse,
    status_code=status.HTTP_200_OK,
)
def trigger_booking_confirmation(
    payload: BookingConfirmationRequest,
    _: User = Depends(require_roles(UserRole.ADMIN)),
) -> BookingConfirmationResponse:
    return send_booking_confirmation(payload)
