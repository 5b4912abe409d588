"""Assign appointments to the grid cell matching their start date."""

from __future__ import annotations

import datetime as dt
import logging
from collections import defaultdict
from dataclasses import replace
from typing import Iterable

from .types import Appointment, GridCell

logger = logging.getLogger(__name__)


def sort_key(appointment: Appointment) -> tuple[dt.datetime, str]:
    return appointment.starts_at, appointment.id or ""


def bucket(appointments: Iterable[Appointment], cells: list[GridCell]) -> list[GridCell]:
    """Return new cells with their appointments filled in.

    Appointments falling outside the grid are dropped. Appointments whose
    timestamps cannot be parsed are skipped and logged.
    """
    by_day: dict[dt.date, list[Appointment]] = defaultdict(list)
    for appt in appointments:
        if not appt.is_well_formed:
            logger.warning(
                "Skipping appointment %s with malformed timestamps (start=%r, end=%r)",
                appt.id,
                appt.start_time,
                appt.end_time,
            )
            continue
        by_day[appt.starts_at.date()].append(appt)

    filled: list[GridCell] = []
    seen: set[dt.date] = set()
    for cell in cells:
        if cell.date in seen:
            filled.append(replace(cell, appointments=()))
            continue
        seen.add(cell.date)
        day_appts = sorted(by_day.get(cell.date, ()), key=sort_key)
        filled.append(replace(cell, appointments=tuple(day_appts)))
    return filled


__all__ = ["bucket", "sort_key"]
