import datetime as dt

from clinic_console.calendar import Appointment, AppointmentStatus, AppointmentType
from clinic_console.calendar.styles import STATUS_LEGEND, STATUS_STYLES, TYPE_STYLES, status_style, type_style
from clinic_console.calendar.types import parse_timestamp


def test_parse_timestamp_handles_supported_inputs():
    assert parse_timestamp("2024-06-12T09:30:00") == dt.datetime(2024, 6, 12, 9, 30)
    assert parse_timestamp(dt.date(2024, 6, 12)) == dt.datetime(2024, 6, 12)
    assert parse_timestamp(dt.datetime(2024, 6, 12, 9, 30)) == dt.datetime(2024, 6, 12, 9, 30)
    for bad in (None, "", "  ", "12/06/2024", 1718180000, object()):
        assert parse_timestamp(bad) is None


def test_offset_timestamps_become_naive_local_time():
    utc = dt.datetime(2024, 6, 12, 9, 30, tzinfo=dt.timezone.utc)
    expected = utc.astimezone().replace(tzinfo=None)
    assert parse_timestamp("2024-06-12T09:30:00Z") == expected
    assert parse_timestamp(utc).tzinfo is None


def test_from_payload_reads_api_json():
    appt = Appointment.from_payload(
        {
            "id": 17,
            "patientId": "p-001",
            "doctorId": "d-002",
            "title": "Consultation",
            "startTime": "2024-06-12T10:00:00",
            "endTime": "2024-06-12T10:45:00",
            "status": "no-show",
            "type": "new-patient",
            "notes": "First visit",
            "createdAt": "2024-06-01T08:00:00",
        }
    )
    assert appt.id == "17"
    assert appt.doctor_id == "d-002"
    assert appt.status is AppointmentStatus.NO_SHOW
    assert appt.type is AppointmentType.NEW_PATIENT
    assert appt.starts_at == dt.datetime(2024, 6, 12, 10, 0)
    assert appt.is_well_formed
    assert appt.to_payload()["status"] == "no-show"


def test_from_payload_accepts_snake_case_and_missing_fields():
    appt = Appointment.from_payload({"id": "x", "doctor_id": "d-1", "start_time": "garbage"})
    assert appt.doctor_id == "d-1"
    assert appt.title is None
    assert appt.status is None
    assert not appt.is_well_formed
    assert appt.to_payload()["startTime"] == "garbage"


def test_every_status_and_type_has_a_style():
    assert set(STATUS_STYLES) == set(AppointmentStatus)
    assert set(TYPE_STYLES) == set(AppointmentType)
    assert status_style("canceled").color == "#f44336"
    assert type_style(AppointmentType.ROUTINE).label == "Routine"
    assert [status for status, _ in STATUS_LEGEND] == list(AppointmentStatus)
