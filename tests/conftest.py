import os
import sys
from datetime import time
from decimal import Decimal
from pathlib import Path

os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("NOTIFICATION_BACKEND", "inline")
os.environ["OPENAI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(str(Path(__file__).resolve().parents[1]))

from campus_wellness.core.rate_limiter import rate_limiter
from campus_wellness.db.base import Base
from campus_wellness.db.models import AvailabilityRule, Consultant
from campus_wellness.db.session import get_db
from campus_wellness.main import app

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def reset_database() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()


@pytest.fixture()
def db_session() -> Session:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client() -> TestClient:
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def add_consultant(
    db: Session,
    name: str = "Dr. Maya Chen",
    rules: list[tuple[int, time, time]] | None = None,
    is_available: bool = True,
    experience_years: int = 8,
    specializations: list[str] | None = None,
    languages: list[str] | None = None,
) -> Consultant:
    consultant = Consultant(
        name=name,
        title="Licensed Clinical Psychologist",
        specializations=specializations if specializations is not None else ["Anxiety", "Academic Stress"],
        languages=languages if languages is not None else ["English"],
        qualifications=["PhD Clinical Psychology"],
        bio="Works with students on exam anxiety.",
        hourly_rate=Decimal("80.00"),
        experience_years=experience_years,
        is_available=is_available,
    )
    db.add(consultant)
    db.flush()
    for day, start, end in rules or []:
        db.add(AvailabilityRule(consultant_id=consultant.id, day_of_week=day, start_time=start, end_time=end))
    db.commit()
    db.refresh(consultant)
    return consultant


def register_and_login(client: TestClient, email: str, role: str = "client") -> str:
    payload = {"email": email, "password": "StrongPass123", "role": role}
    register_response = client.post("/auth/register", json=payload)
    assert register_response.status_code == 201

    login_response = client.post(
        "/auth/login",
        json={"email": payload["email"], "password": payload["password"]},
    )
    assert login_response.status_code == 200
    return login_response.json()["access_token"]
