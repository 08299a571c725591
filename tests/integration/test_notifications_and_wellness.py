from conftest import register_and_login

CONFIRMATION = {
    "booking_id": 41,
    "user_email": "student@example.com",
    "consultant_name": "Therapist A",
    "scheduled_at": "2026-10-26T09:00:00Z",
    "duration_minutes": 60,
}


def test_admin_can_trigger_booking_confirmation(client):
    token = register_and_login(client, "admin@example.com", role="admin")

    response = client.post(
        "/notifications/booking-confirmation",
        headers={"Authorization": f"Bearer {token}"},
        json=CONFIRMATION,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["calendar_link"].startswith("https://calendar.google.com/calendar/render?action=TEMPLATE")
    assert body["appointment_details"] == {
        "consultant_name": "Therapist A",
        "date": "Monday, October 26, 2026",
        "time": "9:00 AM",
        "duration": "60 minutes",
    }


def test_client_cannot_trigger_booking_confirmation(client):
    token = register_and_login(client, "not-admin@example.com")

    response = client.post(
        "/notifications/booking-confirmation",
        headers={"Authorization": f"Bearer {token}"},
        json=CONFIRMATION,
    )

    assert response.status_code == 403


def test_confirmation_rejects_invalid_email(client):
    token = register_and_login(client, "admin2@example.com", role="admin")

    response = client.post(
        "/notifications/booking-confirmation",
        headers={"Authorization": f"Bearer {token}"},
        json={**CONFIRMATION, "user_email": "not-an-email"},
    )

    assert response.status_code == 422


def test_emergency_contacts_are_public(client):
    response = client.get("/wellness/emergency-contacts")

    assert response.status_code == 200
    assert [contact["number"] for contact in response.json()] == ["988", "Text HOME to 741741", "911"]


def test_simulated_biometrics_use_wire_names(client):
    token = register_and_login(client, "vitals@example.com")

    response = client.get("/wellness/biometrics", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    body = response.json()
    assert 60 <= body["heartRate"] <= 100
    assert 0 <= body["stressLevel"] <= 100
    assert 2000 <= body["steps"] <= 10000


def test_recommendation_for_high_stress(client):
    token = register_and_login(client, "reco@example.com")

    response = client.post(
        "/wellness/recommendation",
        headers={"Authorization": f"Bearer {token}"},
        json={
            "heartRate": 80,
            "oxygenLevel": 98,
            "stressLevel": 88,
            "sleepQuality": 75,
            "steps": 5000,
            "temperature": 98.6,
        },
    )

    assert response.status_code == 200
    assert response.json()["type"] == "warning"


def test_recommendation_requires_every_reading(client):
    token = register_and_login(client, "partial-reco@example.com")

    response = client.post(
        "/wellness/recommendation",
        headers={"Authorization": f"Bearer {token}"},
        json={"stressLevel": 88},
    )

    assert response.status_code == 422
