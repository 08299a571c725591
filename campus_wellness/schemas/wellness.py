from typing import Literal

from pydantic import BaseModel


class HealthRecommendation(BaseModel):
    type: Literal["success", "info", "warning"]
    message: str
    action: str


class EmergencyContact(BaseModel):
    name: str
    number: str
    description: str
    type: str
    urgent: bool
