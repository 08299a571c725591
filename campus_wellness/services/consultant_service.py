from sqlalchemy import select
from sqlalchemy.orm import Session

from campus_wellness.db.models import Consultant
from campus_wellness.schemas.consultant import ConsultantResponse

ANONYMOUS_BIO = "Experienced mental health professional dedicated to helping clients achieve their wellness goals."


def anonymous_name(position: int) -> str:
    """Therapist A, B, ... Z, then AA, AB, ... for longer listings."""
    letters = ""
    index = position
    while True:
        index, remainder = divmod(index, 26)
        letters = chr(ord("A") + remainder) + letters
        if index == 0:
            break
        index -= 1
    return f"Therapist {letters}"


def anonymize(consultant: Consultant, position: int) -> ConsultantResponse:
    return ConsultantResponse(
        id=consultant.id,
        anonymous_id=consultant.id,
        name=anonymous_name(position),
        title=consultant.title,
        specializations=list(consultant.specializations or []),
        languages=list(consultant.languages or []),
        qualifications=list(consultant.qualifications or []),
        bio=ANONYMOUS_BIO if consultant.bio else "",
        avatar_url=None,
        hourly_rate=consultant.hourly_rate,
        experience_years=consultant.experience_years,
    )


def list_available_consultants(
    db: Session,
    search: str | None = None,
    specialization: str | None = None,
    language: str | None = None,
) -> list[ConsultantResponse]:
    consultants = db.scalars(
        select(Consultant)
        .where(Consultant.is_available.is_(True))
        .order_by(Consultant.experience_years.desc(), Consultant.id)
    ).all()
    listing = [anonymize(consultant, position) for position, consultant in enumerate(consultants)]

    if search:
        needle = search.strip().lower()
        listing = [
            item
            for item in listing
            if needle in item.name.lower()
            or needle in item.title.lower()
            or any(needle in spec.lower() for spec in item.specializations)
        ]
    if specialization:
        listing = [item for item in listing if specialization in item.specializations]
    if language:
        listing = [item for item in listing if language in item.languages]
    return listing
