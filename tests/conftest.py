from __future__ import annotations

import pytest

from clinic_console import create_app
from clinic_console.calendar import Appointment

WEDNESDAY = "2024-06-12"


def appointment(
    appt_id: str = "a-1",
    start: str | None = f"{WEDNESDAY}T09:00:00",
    end: str | None = f"{WEDNESDAY}T09:30:00",
    **fields,
) -> Appointment:
    defaults = dict(
        patient_id="p-001",
        doctor_id="d-001",
        title="Annual Check-up",
        status="scheduled",
        type="routine",
        notes="",
    )
    defaults.update(fields)
    return Appointment(id=appt_id, start_time=start, end_time=end, **defaults)


@pytest.fixture
def make_appointment():
    return appointment


@pytest.fixture
def fixture_rows():
    return [
        {
            "id": "app-1",
            "patientId": "p-001",
            "doctorId": "d-001",
            "title": "Annual Check-up",
            "startTime": f"{WEDNESDAY}T09:00:00",
            "endTime": f"{WEDNESDAY}T09:15:00",
            "status": "scheduled",
            "type": "routine",
            "notes": "Bring previous lab results",
        },
        {
            "id": "app-2",
            "patientId": "p-002",
            "doctorId": "d-002",
            "title": "Blood Test",
            "startTime": f"{WEDNESDAY}T09:10:00",
            "endTime": f"{WEDNESDAY}T10:00:00",
            "status": "completed",
            "type": "follow-up",
            "notes": "",
        },
        {
            "id": "app-3",
            "patientId": "p-003",
            "doctorId": "d-001",
            "title": "Vaccination",
            "startTime": "2024-06-20T14:00:00",
            "endTime": "2024-06-20T14:30:00",
            "status": "canceled",
            "type": "emergency",
            "notes": "Flu shot",
        },
    ]


@pytest.fixture
def app_config(fixture_rows):
    return {
        "TESTING": True,
        "LOGIN_DISABLED": True,
        "WTF_CSRF_ENABLED": False,
        "RATELIMIT_ENABLED": False,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "CALENDAR_SOURCE": "fixture",
        "CALENDAR_FIXTURE_APPOINTMENTS": fixture_rows,
        "CALENDAR_FIXTURE_DOCTORS": [
            {"id": "d-001", "firstName": "Sarah", "lastName": "Johnson"},
            {"id": "d-002", "firstName": "Michael", "lastName": "Chen"},
        ],
    }


@pytest.fixture
def app(app_config):
    return create_app(app_config)


@pytest.fixture
def client(app):
    return app.test_client()
