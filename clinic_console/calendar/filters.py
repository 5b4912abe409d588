"""Conjunctive appointment filters (doctor, status, type, free text)."""

from __future__ import annotations

from typing import Callable, Iterable

from .types import ALL, Appointment, CalendarFilters

Predicate = Callable[[Appointment], bool]


def _value(field) -> str | None:
    if field is None:
        return None
    return str(getattr(field, "value", field))


def _exact(attribute: str, expected: str) -> Predicate:
    def predicate(appointment: Appointment) -> bool:
        actual = _value(getattr(appointment, attribute, None))
        return actual is not None and actual == expected

    return predicate


def _text_contains(query: str) -> Predicate:
    needle = query.lower()

    def predicate(appointment: Appointment) -> bool:
        title = getattr(appointment, "title", None)
        notes = getattr(appointment, "notes", None)
        if title is None and notes is None:
            return False
        haystack = f"{title or ''}{notes or ''}".lower()
        return needle in haystack

    return predicate


def predicates(filters: CalendarFilters) -> list[Predicate]:
    """Predicates for the active criteria only."""
    active: list[Predicate] = []
    if filters.doctor_id != ALL:
        active.append(_exact("doctor_id", filters.doctor_id))
    if filters.status != ALL:
        active.append(_exact("status", filters.status))
    if filters.type != ALL:
        active.append(_exact("type", filters.type))
    query = filters.query or ""
    if query.strip():
        active.append(_text_contains(query))
    return active


def matches(appointment: Appointment, filters: CalendarFilters) -> bool:
    return all(predicate(appointment) for predicate in predicates(filters))


def apply(appointments: Iterable[Appointment], filters: CalendarFilters) -> list[Appointment]:
    """Keep the appointments satisfying every active criterion, in input order."""
    active = predicates(filters)
    return [appt for appt in appointments if all(predicate(appt) for predicate in active)]


__all__ = ["apply", "matches", "predicates"]
