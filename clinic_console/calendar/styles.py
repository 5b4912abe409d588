"""Display styles for appointment statuses and types."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from .types import AppointmentStatus, AppointmentType


@dataclass(frozen=True)
class StyleDescriptor:
    color: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"color": self.color, "label": self.label}


STATUS_STYLES = MappingProxyType(
    {
        AppointmentStatus.SCHEDULED: StyleDescriptor("#3f51b5", "Scheduled"),
        AppointmentStatus.COMPLETED: StyleDescriptor("#4caf50", "Completed"),
        AppointmentStatus.CANCELED: StyleDescriptor("#f44336", "Canceled"),
        AppointmentStatus.NO_SHOW: StyleDescriptor("#ff9800", "No Show"),
    }
)

TYPE_STYLES = MappingProxyType(
    {
        AppointmentType.FOLLOW_UP: StyleDescriptor("#2196f3", "Follow-up"),
        AppointmentType.NEW_PATIENT: StyleDescriptor("#3f51b5", "New Patient"),
        AppointmentType.EMERGENCY: StyleDescriptor("#f44336", "Emergency"),
        AppointmentType.ROUTINE: StyleDescriptor("#9e9e9e", "Routine"),
    }
)


def _check_exhaustive(table, enum_cls) -> None:
    missing = set(enum_cls) - set(table)
    if missing:
        names = ", ".join(sorted(member.value for member in missing))
        raise RuntimeError(f"No style defined for {enum_cls.__name__}: {names}")


_check_exhaustive(STATUS_STYLES, AppointmentStatus)
_check_exhaustive(TYPE_STYLES, AppointmentType)

STATUS_LEGEND = tuple((status, STATUS_STYLES[status]) for status in AppointmentStatus)
TYPE_LEGEND = tuple((kind, TYPE_STYLES[kind]) for kind in AppointmentType)


def status_style(status: AppointmentStatus) -> StyleDescriptor:
    return STATUS_STYLES[AppointmentStatus(status)]


def type_style(kind: AppointmentType) -> StyleDescriptor:
    return TYPE_STYLES[AppointmentType(kind)]


__all__ = [
    "STATUS_LEGEND",
    "STATUS_STYLES",
    "StyleDescriptor",
    "TYPE_LEGEND",
    "TYPE_STYLES",
    "status_style",
    "type_style",
]
