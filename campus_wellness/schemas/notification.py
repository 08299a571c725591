from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class BookingConfirmationRequest(BaseModel):
    booking_id: int
    user_email: EmailStr
    consultant_name: str = Field(min_length=1, max_length=120)
    scheduled_at: datetime
    duration_minutes: int = Field(default=60, ge=1, le=480)


class AppointmentDetails(BaseModel):
    consultant_name: str
    date: str
    time: str
    duration: str


class BookingConfirmationResponse(BaseModel):
    success: bool
    message: str
    calendar_link: str
    appointment_details: AppointmentDetails
