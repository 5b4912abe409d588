"""Appointment sources feeding the calendar.

Each source implements ``fetch(start, end)`` and raises ``SourceUnavailable``
when its backing store cannot be read. None of them invent data on failure.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_console.calendar.types import Appointment, SourceUnavailable
from clinic_console.models import Appointment as AppointmentModel
from clinic_console.models import Doctor as DoctorModel
from clinic_console.services.clinic_api import ClinicApiClient, ClinicApiError

logger = logging.getLogger(__name__)


def _parse_rows(rows: Any) -> list[Appointment]:
    if isinstance(rows, Mapping):
        # Some API deployments wrap lists in {"data": [...]}
        rows = rows.get("data", rows.get("items"))
    if not isinstance(rows, list):
        raise SourceUnavailable("Unexpected appointments payload from clinic API")
    appointments = []
    for row in rows:
        if not isinstance(row, Mapping):
            logger.warning("Ignoring non-object appointment entry: %r", row)
            continue
        appointments.append(Appointment.from_payload(row))
    return appointments


def _doctor_choice(row: Mapping[str, Any]) -> dict[str, str]:
    first = row.get("firstName") or row.get("first_name") or ""
    last = row.get("lastName") or row.get("last_name") or ""
    name = f"Dr. {first} {last}".strip() if (first or last) else str(row.get("name") or row.get("id"))
    return {"id": str(row.get("id")), "name": name}


class ApiAppointmentSource:
    """Reads appointments from ``GET /appointments?startDate=&endDate=``."""

    def __init__(self, client: ClinicApiClient, token: str | None = None) -> None:
        self.client = client
        self.token = token

    def fetch(self, start: dt.date, end: dt.date) -> list[Appointment]:
        params = {"startDate": start.isoformat(), "endDate": end.isoformat()}
        try:
            rows = self.client.get_json("/appointments", params=params, token=self.token)
        except ClinicApiError as exc:
            raise SourceUnavailable(str(exc)) from exc
        return _parse_rows(rows)

    def doctors(self) -> list[dict[str, str]]:
        try:
            rows = self.client.get_json("/staff", params={"role": "doctor"}, token=self.token)
        except ClinicApiError as exc:
            raise SourceUnavailable(str(exc)) from exc
        if not isinstance(rows, list):
            raise SourceUnavailable("Unexpected staff payload from clinic API")
        return [_doctor_choice(row) for row in rows if isinstance(row, Mapping)]


class DatabaseAppointmentSource:
    """Read-only view of the local appointments table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def fetch(self, start: dt.date, end: dt.date) -> list[Appointment]:
        window_start = dt.datetime.combine(start, dt.time())
        window_end = dt.datetime.combine(end + dt.timedelta(days=1), dt.time())
        stmt = (
            select(AppointmentModel)
            .where(AppointmentModel.start_time >= window_start)
            .where(AppointmentModel.start_time < window_end)
            .order_by(AppointmentModel.start_time.asc())
        )
        try:
            rows = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            raise SourceUnavailable(f"Could not read appointments: {exc}") from exc
        return [row.to_calendar() for row in rows]

    def doctors(self) -> list[dict[str, str]]:
        stmt = select(DoctorModel).order_by(DoctorModel.last_name.asc(), DoctorModel.first_name.asc())
        try:
            rows = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            raise SourceUnavailable(f"Could not read doctors: {exc}") from exc
        return [{"id": doc.id, "name": doc.display_name} for doc in rows]


class FixtureAppointmentSource:
    """Fixed in-memory appointments for tests and demos.

    ``unavailable=True`` makes every call fail like an unreachable API.
    """

    def __init__(
        self,
        appointments: Iterable[Appointment | Mapping[str, Any]] = (),
        *,
        doctors: Iterable[Mapping[str, Any]] | None = None,
        unavailable: bool = False,
    ) -> None:
        self.appointments = [
            appt if isinstance(appt, Appointment) else Appointment.from_payload(appt)
            for appt in appointments
        ]
        self._doctors = [_doctor_choice(row) for row in doctors] if doctors is not None else None
        self.unavailable = unavailable
        self.requested: list[tuple[dt.date, dt.date]] = []

    def fetch(self, start: dt.date, end: dt.date) -> list[Appointment]:
        self.requested.append((start, end))
        if self.unavailable:
            raise SourceUnavailable("Fixture source configured as unavailable")
        selected = []
        for appt in self.appointments:
            starts_at = appt.starts_at
            # Malformed rows pass through so the calendar can report them
            if starts_at is None or start <= starts_at.date() <= end:
                selected.append(appt)
        return selected

    def doctors(self) -> list[dict[str, str]]:
        if self.unavailable:
            raise SourceUnavailable("Fixture source configured as unavailable")
        if self._doctors is not None:
            return list(self._doctors)
        ids = sorted({appt.doctor_id for appt in self.appointments if appt.doctor_id})
        return [{"id": doctor_id, "name": doctor_id} for doctor_id in ids]


__all__ = ["ApiAppointmentSource", "DatabaseAppointmentSource", "FixtureAppointmentSource"]
