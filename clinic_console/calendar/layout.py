"""Vertical time-axis layout for Day and Week views.

Offsets and heights are expressed in minutes; the renderer applies its own
pixels-per-minute scale. Overlapping appointments are not split into
columns: they are stacked in start order with the later one on top, and a
focused (hovered) appointment is promoted above everything else.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, replace
from datetime import timedelta

from .bucketer import sort_key
from .types import Appointment, GridCell, LayoutBox, MalformedAppointment

logger = logging.getLogger(__name__)

MIN_VISIBLE_MINUTES = 20
DEFAULT_START_HOUR = 8
DEFAULT_END_HOUR = 19
DEFAULT_SLOT_MINUTES = 30


@dataclass(frozen=True)
class TimeAxis:
    start_hour: int = DEFAULT_START_HOUR
    end_hour: int = DEFAULT_END_HOUR
    min_visible_minutes: int = MIN_VISIBLE_MINUTES
    slot_minutes: int = DEFAULT_SLOT_MINUTES

    def __post_init__(self) -> None:
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(
                f"Visible hours must satisfy 0 <= start < end <= 24, got {self.start_hour}-{self.end_hour}"
            )
        if self.slot_minutes <= 0 or self.min_visible_minutes < 0:
            raise ValueError("slot_minutes must be positive and min_visible_minutes non-negative")


@dataclass(frozen=True)
class TimeLabel:
    hour: int
    top_offset: int

    @property
    def text(self) -> str:
        suffix = "AM" if self.hour < 12 else "PM"
        display = self.hour % 12 or 12
        return f"{display}:00 {suffix}"


@dataclass(frozen=True)
class TimeSlot:
    start: dt.datetime
    end: dt.datetime
    top_offset: int
    height: int


def minutes_of_day(moment: dt.datetime) -> int:
    return moment.hour * 60 + moment.minute


def duration_minutes(start: dt.datetime, end: dt.datetime) -> int:
    return int((end - start).total_seconds() // 60)


def visible_minutes(axis: TimeAxis) -> int:
    return (axis.end_hour - axis.start_hour) * 60


def layout(
    appointment: Appointment,
    visible_start_hour: int = DEFAULT_START_HOUR,
    visible_end_hour: int = DEFAULT_END_HOUR,
    min_visible_minutes: int = MIN_VISIBLE_MINUTES,
) -> LayoutBox:
    """Place ``appointment`` relative to the start of the visible window.

    The window does not clip: appointments outside it get negative offsets
    or extend past ``visible_end_hour``.
    """
    start = appointment.starts_at
    end = appointment.ends_at
    if start is None or end is None:
        raise MalformedAppointment(f"Appointment {appointment.id} has unparseable timestamps")
    top_offset = minutes_of_day(start) - visible_start_hour * 60
    height = max(duration_minutes(start, end), min_visible_minutes)
    return LayoutBox(appointment_id=appointment.id, top_offset=top_offset, height=height)


def promote(boxes: list[LayoutBox], appointment_id: str | None) -> list[LayoutBox]:
    """Bring ``appointment_id`` to the front of the draw order."""
    if appointment_id is None:
        return list(boxes)
    focused = [box for box in boxes if box.appointment_id == appointment_id]
    if not focused:
        return list(boxes)
    rest = [box for box in boxes if box.appointment_id != appointment_id]
    top = max((box.z_index for box in boxes), default=0) + 1
    return rest + [replace(box, z_index=top) for box in focused]


def layout_appointments(
    appointments: list[Appointment],
    axis: TimeAxis,
    focused_id: str | None = None,
) -> list[LayoutBox]:
    """Boxes in draw order: earliest first, so later starts render on top."""
    well_formed = []
    for appt in appointments:
        if appt.is_well_formed:
            well_formed.append(appt)
        else:
            logger.warning("Not laying out appointment %s: malformed timestamps", appt.id)

    boxes = []
    for z_index, appt in enumerate(sorted(well_formed, key=sort_key), start=1):
        box = layout(appt, axis.start_hour, axis.end_hour, axis.min_visible_minutes)
        boxes.append(replace(box, z_index=z_index))
    return promote(boxes, focused_id)


def layout_cell(cell: GridCell, axis: TimeAxis, focused_id: str | None = None) -> list[LayoutBox]:
    return layout_appointments(list(cell.appointments), axis, focused_id)


def time_labels(axis: TimeAxis) -> list[TimeLabel]:
    return [
        TimeLabel(hour=hour, top_offset=(hour - axis.start_hour) * 60)
        for hour in range(axis.start_hour, axis.end_hour)
    ]


def time_slots(day: dt.date, axis: TimeAxis) -> list[TimeSlot]:
    """Clickable slots covering the visible window of ``day``.

    Each slot's ``start``/``end`` is the default span of an appointment
    created by clicking it.
    """
    window_start = dt.datetime.combine(day, dt.time(hour=axis.start_hour))
    total = visible_minutes(axis)
    slots = []
    for offset in range(0, total, axis.slot_minutes):
        start = window_start + timedelta(minutes=offset)
        height = min(axis.slot_minutes, total - offset)
        slots.append(
            TimeSlot(
                start=start,
                end=start + timedelta(minutes=axis.slot_minutes),
                top_offset=offset,
                height=height,
            )
        )
    return slots


__all__ = [
    "MIN_VISIBLE_MINUTES",
    "TimeAxis",
    "TimeLabel",
    "TimeSlot",
    "duration_minutes",
    "layout",
    "layout_appointments",
    "layout_cell",
    "minutes_of_day",
    "promote",
    "time_labels",
    "time_slots",
    "visible_minutes",
]
