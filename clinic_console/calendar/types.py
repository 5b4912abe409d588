"""Value types shared by the calendar engine."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Protocol

logger = logging.getLogger(__name__)

ALL = "all"


class CalendarError(Exception):
    """Base error for calendar operations."""


class MalformedAppointment(CalendarError):
    """Raised when an appointment's timestamps cannot be interpreted."""


class SourceUnavailable(CalendarError):
    """The appointment list could not be obtained from its source."""


class ViewMode(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Direction(str, Enum):
    PREVIOUS = "previous"
    NEXT = "next"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELED = "canceled"
    NO_SHOW = "no-show"


class AppointmentType(str, Enum):
    FOLLOW_UP = "follow-up"
    NEW_PATIENT = "new-patient"
    EMERGENCY = "emergency"
    ROUTINE = "routine"


def parse_timestamp(value: Any) -> dt.datetime | None:
    """Return a naive local datetime, or None when ``value`` is unusable.

    Offset-aware values are converted to host local time before the
    offset is dropped.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime.combine(value, dt.time())
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _enum_or_none(enum_cls, value):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        logger.warning("Unknown %s value %r", enum_cls.__name__, value)
        return None


def _text_or_none(value) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class Appointment:
    """A read-only appointment record as supplied by the data layer.

    Timestamps are kept as given; ``starts_at``/``ends_at`` expose the
    parsed naive local datetimes and are None when the raw value is
    malformed.
    """

    id: str | None
    patient_id: str | None = None
    doctor_id: str | None = None
    title: str | None = None
    start_time: Any = None
    end_time: Any = None
    status: AppointmentStatus | None = None
    type: AppointmentType | None = None
    notes: str | None = None
    created_at: Any = None
    updated_at: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", _enum_or_none(AppointmentStatus, self.status))
        object.__setattr__(self, "type", _enum_or_none(AppointmentType, self.type))

    @property
    def starts_at(self) -> dt.datetime | None:
        return parse_timestamp(self.start_time)

    @property
    def ends_at(self) -> dt.datetime | None:
        return parse_timestamp(self.end_time)

    @property
    def is_well_formed(self) -> bool:
        return self.starts_at is not None and self.ends_at is not None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Appointment":
        """Build from API JSON. Accepts camelCase or snake_case keys."""

        def pick(camel: str, snake: str):
            if camel in payload:
                return payload[camel]
            return payload.get(snake)

        return cls(
            id=_text_or_none(payload.get("id")),
            patient_id=_text_or_none(pick("patientId", "patient_id")),
            doctor_id=_text_or_none(pick("doctorId", "doctor_id")),
            title=_text_or_none(payload.get("title")),
            start_time=pick("startTime", "start_time"),
            end_time=pick("endTime", "end_time"),
            status=payload.get("status"),
            type=payload.get("type"),
            notes=_text_or_none(payload.get("notes")),
            created_at=pick("createdAt", "created_at"),
            updated_at=pick("updatedAt", "updated_at"),
        )

    def to_payload(self) -> dict[str, Any]:
        starts_at = self.starts_at
        ends_at = self.ends_at
        return {
            "id": self.id,
            "patientId": self.patient_id,
            "doctorId": self.doctor_id,
            "title": self.title,
            "startTime": starts_at.isoformat() if starts_at else self.start_time,
            "endTime": ends_at.isoformat() if ends_at else self.end_time,
            "status": self.status.value if self.status else None,
            "type": self.type.value if self.type else None,
            "notes": self.notes,
        }


FILTER_CRITERIA = ("doctor_id", "status", "type", "query")


@dataclass(frozen=True)
class CalendarFilters:
    doctor_id: str = ALL
    status: str = ALL
    type: str = ALL
    query: str = ""

    def with_criterion(self, criterion: str, value: Any) -> "CalendarFilters":
        if criterion not in FILTER_CRITERIA:
            raise ValueError(f"Unknown filter criterion: {criterion!r}")
        if criterion == "query":
            value = "" if value is None else str(value)
        else:
            value = getattr(value, "value", value)
            value = ALL if value is None else str(value).strip()
            if not value:
                value = ALL
            elif criterion in ("status", "type"):
                value = value.lower()
        return replace(self, **{criterion: value})

    @property
    def is_active(self) -> bool:
        return (
            self.doctor_id != ALL
            or self.status != ALL
            or self.type != ALL
            or bool(self.query.strip())
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "doctor_id": self.doctor_id,
            "status": self.status,
            "type": self.type,
            "query": self.query,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "CalendarFilters":
        filters = cls()
        for criterion in FILTER_CRITERIA:
            if data and criterion in data:
                filters = filters.with_criterion(criterion, data[criterion])
        return filters


@dataclass(frozen=True)
class ViewState:
    anchor_date: dt.date
    view_mode: ViewMode = ViewMode.WEEK
    filters: CalendarFilters = field(default_factory=CalendarFilters)

    def to_dict(self) -> dict[str, Any]:
        return {
            "anchor_date": self.anchor_date.isoformat(),
            "view_mode": self.view_mode.value,
            "filters": self.filters.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ViewState":
        """Rebuild a state stored with ``to_dict``; raises ValueError on bad input."""
        return cls(
            anchor_date=dt.date.fromisoformat(data["anchor_date"]),
            view_mode=ViewMode(data.get("view_mode", ViewMode.WEEK.value)),
            filters=CalendarFilters.from_dict(data.get("filters")),
        )


@dataclass(frozen=True)
class GridCell:
    date: dt.date
    appointments: tuple[Appointment, ...] = ()
    is_in_focused_period: bool = True

    @property
    def is_today(self) -> bool:
        return self.date == dt.date.today()


@dataclass(frozen=True)
class LayoutBox:
    """Position of one appointment on the time axis, in minutes."""

    appointment_id: str | None
    top_offset: int
    height: int
    z_index: int = 0

    def scaled(self, px_per_minute: float) -> dict[str, float]:
        return {
            "top": self.top_offset * px_per_minute,
            "height": self.height * px_per_minute,
        }


class AppointmentSource(Protocol):
    """Anything able to list appointments starting within a date range."""

    def fetch(self, start: dt.date, end: dt.date) -> list[Appointment]:
        """Return appointments for ``start``..``end`` inclusive.

        Raises SourceUnavailable when the backing store cannot be reached.
        """
        ...


__all__ = [
    "ALL",
    "Appointment",
    "AppointmentSource",
    "AppointmentStatus",
    "AppointmentType",
    "CalendarError",
    "CalendarFilters",
    "Direction",
    "FILTER_CRITERIA",
    "GridCell",
    "LayoutBox",
    "MalformedAppointment",
    "SourceUnavailable",
    "ViewMode",
    "ViewState",
    "parse_timestamp",
]
