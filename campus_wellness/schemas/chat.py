from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class BiometricReadings(BaseModel):
    """Wearable readings as sent by the client; any of them may be missing."""

    model_config = ConfigDict(populate_by_name=True)

    heart_rate: float | None = Field(default=None, alias="heartRate")
    oxygen_level: float | None = Field(default=None, alias="oxygenLevel")
    stress_level: float | None = Field(default=None, alias="stressLevel")
    sleep_quality: float | None = Field(default=None, alias="sleepQuality")
    step_count: int | None = Field(default=None, alias="steps")
    temperature: float | None = None
    timestamp: datetime | None = None


class BiometricSnapshot(BiometricReadings):
    heart_rate: float = Field(alias="heartRate")
    oxygen_level: float = Field(alias="oxygenLevel")
    stress_level: float = Field(alias="stressLevel")
    sleep_quality: float = Field(alias="sleepQuality")
    step_count: int = Field(alias="steps")
    temperature: float


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(default="", max_length=4000)
    conversation_history: list[ChatTurn] = Field(default_factory=list, alias="conversationHistory")
    biometric_data: BiometricReadings | None = Field(default=None, alias="biometricData")


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    conversation_id: str = Field(alias="conversationId")
    timestamp: datetime
