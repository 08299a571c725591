from datetime import date, datetime, time
from decimal import Decimal

from pydantic import BaseModel


class ConsultantResponse(BaseModel):
    id: int
    anonymous_id: int
    name: str
    title: str
    specializations: list[str]
    languages: list[str]
    qualifications: list[str]
    bio: str
    avatar_url: str | None
    hourly_rate: Decimal
    experience_years: int


class AvailabilityRuleResponse(BaseModel):
    day_of_week: int
    start_time: time
    end_time: time

    model_config = {"from_attributes": True}


class TimeSlotResponse(BaseModel):
    time: str
    scheduled_at: datetime
    available: bool


class DaySlotsResponse(BaseModel):
    date: date
    selectable: bool
    slots: list[TimeSlotResponse]


class SelectableDatesResponse(BaseModel):
    consultant_id: int
    dates: list[date]
