from fastapi import APIRouter, Depends, status

from campus_wellness.api.deps import get_current_user
from campus_wellness.db.models.user import User
from campus_wellness.schemas.chat import BiometricSnapshot
from campus_wellness.schemas.wellness import EmergencyContact, HealthRecommendation
from campus_wellness.services.wellness_service import EMERGENCY_CONTACTS, health_recommendation, simulate_snapshot

router = APIRouter(prefix="/wellness", tags=["wellness"])


@router.get("/biometrics", response_model=BiometricSnapshot, status_code=status.HTTP_200_OK)
def read_simulated_biometrics(_: User = Depends(get_current_user)) -> BiometricSnapshot:
    return simulate_snapshot()


@router.post("/recommendation", response_model=HealthRecommendation, status_code=status.HTTP_200_OK)
def recommend_for_snapshot(
    snapshot: BiometricSnapshot,
    _: User = Depends(get_current_user),
) -> HealthRecommendation:
    return health_recommendation(snapshot)


@router.get("/emergency-contacts", response_model=list[EmergencyContact], status_code=status.HTTP_200_OK)
def list_emergency_contacts() -> list[EmergencyContact]:
    return list(EMERGENCY_CONTACTS)
