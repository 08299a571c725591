from campus_wellness.db.models.availability_rule import AvailabilityRule
from campus_wellness.db.models.booking import (
    ACTIVE_BOOKING_STATUSES,
    ACTIVE_SLOT_INDEX,
    Booking,
    BookingStatus,
    PaymentStatus,
)
from campus_wellness.db.models.consultant import Consultant
from campus_wellness.db.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "Consultant",
    "AvailabilityRule",
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "ACTIVE_BOOKING_STATUSES",
    "ACTIVE_SLOT_INDEX",
]
