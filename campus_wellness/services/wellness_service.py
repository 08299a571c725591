import random
from datetime import datetime

from campus_wellness.core.clock import utcnow
from campus_wellness.schemas.chat import BiometricSnapshot
from campus_wellness.schemas.wellness import EmergencyContact, HealthRecommendation

EMERGENCY_CONTACTS: tuple[EmergencyContact, ...] = (
    EmergencyContact(
        name="National Suicide Prevention Lifeline",
        number="988",
        description="24/7 crisis counseling and suicide prevention",
        type="Crisis",
        urgent=True,
    ),
    EmergencyContact(
        name="Crisis Text Line",
        number="Text HOME to 741741",
        description="Free, 24/7 support via text message",
        type="Text",
        urgent=True,
    ),
    EmergencyContact(
        name="Emergency Services",
        number="911",
        description="For immediate medical or psychiatric emergencies",
        type="Emergency",
        urgent=True,
    ),
)

HIGH_STRESS_LEVEL = 70
ELEVATED_HEART_RATE = 100
LOW_OXYGEN_LEVEL = 96


def simulate_snapshot(rng: random.Random | None = None, now: datetime | None = None) -> BiometricSnapshot:
    """Bounded-random wearable readings for the dashboard demo."""
    source = rng or random.Random()
    return BiometricSnapshot(
        heart_rate=round(60 + source.random() * 40, 1),
        oxygen_level=round(95 + source.random() * 5, 1),
        stress_level=round(source.random() * 100, 1),
        sleep_quality=round(60 + source.random() * 40, 1),
        step_count=int(2000 + source.random() * 8000),
        temperature=round(98.6 + (source.random() - 0.5) * 2, 1),
        timestamp=now or utcnow(),
    )


def health_recommendation(snapshot: BiometricSnapshot) -> HealthRecommendation:
    if snapshot.stress_level > HIGH_STRESS_LEVEL:
        return HealthRecommendation(
            type="warning",
            message="High stress detected. Consider taking a 5-minute breathing break.",
            action="Start breathing exercise",
        )
    if snapshot.heart_rate > ELEVATED_HEART_RATE:
        return HealthRecommendation(
            type="info",
            message="Elevated heart rate. Take a moment to relax and hydrate.",
            action="View relaxation techniques",
        )
    if snapshot.oxygen_level < LOW_OXYGEN_LEVEL:
        return HealthRecommendation(
            type="warning",
            message="Lower oxygen levels detected. Consider some gentle movement or fresh air.",
            action="View wellness tips",
        )
    return HealthRecommendation(
        type="success",
        message="Your vitals look good! Keep up the great self-care.",
        action="Continue monitoring",
    )
