"""Appointment calendar engine: grid, filters, bucketing and time-axis layout."""

from __future__ import annotations

from .controller import CalendarController, CalendarView
from .layout import TimeAxis
from .types import (
    ALL,
    Appointment,
    AppointmentSource,
    AppointmentStatus,
    AppointmentType,
    CalendarError,
    CalendarFilters,
    Direction,
    GridCell,
    LayoutBox,
    MalformedAppointment,
    SourceUnavailable,
    ViewMode,
    ViewState,
)

__all__ = [
    "ALL",
    "Appointment",
    "AppointmentSource",
    "AppointmentStatus",
    "AppointmentType",
    "CalendarController",
    "CalendarError",
    "CalendarFilters",
    "CalendarView",
    "Direction",
    "GridCell",
    "LayoutBox",
    "MalformedAppointment",
    "SourceUnavailable",
    "TimeAxis",
    "ViewMode",
    "ViewState",
]
