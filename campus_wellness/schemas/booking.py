from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class BookingCreateRequest(BaseModel):
    # Presence is checked by the booking service so that a missing field is a
    # business failure (400) rather than a schema error.
    consultant_id: int | None = None
    scheduled_at: datetime | None = None
    notes: str | None = Field(default=None, max_length=2000)
    duration_minutes: int | None = None
    payment_amount: Decimal | None = None


class BookingCreatedResponse(BaseModel):
    success: bool = True
    booking_id: int
    message: str = "Booking created successfully"


class BookingResponse(BaseModel):
    id: int
    user_id: int
    consultant_id: int
    scheduled_at: datetime
    duration_minutes: int
    status: str
    payment_amount: Decimal
    payment_status: str
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
