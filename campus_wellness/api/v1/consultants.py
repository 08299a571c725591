from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_wellness.api.deps import get_current_user
from campus_wellness.db.session import get_db
from campus_wellness.schemas.consultant import (
    AvailabilityRuleResponse,
    ConsultantResponse,
    DaySlotsResponse,
    SelectableDatesResponse,
    TimeSlotResponse,
)
from campus_wellness.services.availability_service import (
    get_consultant_or_404,
    get_selectable_dates,
    get_slots_for_date,
    load_rules,
)
from campus_wellness.services.consultant_service import list_available_consultants

router = APIRouter(
    prefix="/consultants",
    tags=["consultants"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=list[ConsultantResponse], status_code=status.HTTP_200_OK)
def list_consultants(
    search: str | None = Query(default=None, max_length=100),
    specialization: str | None = Query(default=None, max_length=100),
    language: str | None = Query(default=None, max_length=50),
    db: Session = Depends(get_db),
) -> list[ConsultantResponse]:
    return list_available_consultants(db=db, search=search, specialization=specialization, language=language)


@router.get(
    "/{consultant_id}/availability",
    response_model=list[AvailabilityRuleResponse],
    status_code=status.HTTP_200_OK,
)
def get_consultant_availability(
    consultant_id: int,
    db: Session = Depends(get_db),
) -> list[AvailabilityRuleResponse]:
    get_consultant_or_404(db, consultant_id)
    return [AvailabilityRuleResponse.model_validate(rule) for rule in load_rules(db, consultant_id)]


@router.get("/{consultant_id}/dates", response_model=SelectableDatesResponse, status_code=status.HTTP_200_OK)
def list_selectable_dates(
    consultant_id: int,
    db: Session = Depends(get_db),
) -> SelectableDatesResponse:
    return SelectableDatesResponse(
        consultant_id=consultant_id,
        dates=get_selectable_dates(db=db, consultant_id=consultant_id),
    )


@router.get("/{consultant_id}/slots", response_model=DaySlotsResponse, status_code=status.HTTP_200_OK)
def list_slots_for_date(
    consultant_id: int,
    date_filter: date = Query(alias="date"),
    db: Session = Depends(get_db),
) -> DaySlotsResponse:
    selectable, slots = get_slots_for_date(db=db, consultant_id=consultant_id, target_date=date_filter)
    return DaySlotsResponse(
        date=date_filter,
        selectable=selectable,
        slots=[
            TimeSlotResponse(time=slot.time, scheduled_at=slot.scheduled_at, available=slot.available)
            for slot in slots
        ],
    )
