from __future__ import annotations

import datetime
from typing import Any

from flask import Blueprint, current_app, jsonify, request, session

from clinic_console.auth import bearer_token, current_user_has
from clinic_console.calendar import (
    Appointment,
    CalendarController,
    CalendarView,
    Direction,
    SourceUnavailable,
    TimeAxis,
    ViewMode,
    ViewState,
)
from clinic_console.calendar.layout import time_labels, time_slots, visible_minutes
from clinic_console.calendar.styles import STATUS_LEGEND, TYPE_LEGEND, status_style, type_style
from clinic_console.extensions import csrf, db
from clinic_console.services.csrf import ensure_csrf_token
from clinic_console.services.errors import record_exception
from clinic_console.services.security import require_permission
from clinic_console.services.sources import (
    ApiAppointmentSource,
    DatabaseAppointmentSource,
    FixtureAppointmentSource,
)

bp = Blueprint("calendar", __name__)
csrf.exempt(bp)

SESSION_KEY = "calendar_state"
VIEW_PERMISSION = "view:appointments"


def _axis() -> TimeAxis:
    return TimeAxis(
        start_hour=current_app.config["CALENDAR_START_HOUR"],
        end_hour=current_app.config["CALENDAR_END_HOUR"],
        min_visible_minutes=current_app.config["CALENDAR_MIN_VISIBLE_MINUTES"],
        slot_minutes=current_app.config["CALENDAR_SLOT_MINUTES"],
    )


def _controller() -> CalendarController:
    return CalendarController(axis=_axis(), month_max_visible=current_app.config["CALENDAR_MONTH_MAX_VISIBLE"])


def _load_state(controller: CalendarController) -> ViewState:
    stored = session.get(SESSION_KEY)
    if stored:
        try:
            return ViewState.from_dict(stored)
        except (KeyError, TypeError, ValueError) as exc:
            current_app.logger.warning("Discarding unreadable calendar state %r: %s", stored, exc)
    return controller.initial_state()


def _store_state(state: ViewState) -> None:
    session[SESSION_KEY] = state.to_dict()


def _appointment_source():
    kind = current_app.config["CALENDAR_SOURCE"]
    if kind == "database":
        return DatabaseAppointmentSource(db.session())
    if kind == "fixture":
        return FixtureAppointmentSource(
            current_app.config.get("CALENDAR_FIXTURE_APPOINTMENTS", ()),
            doctors=current_app.config.get("CALENDAR_FIXTURE_DOCTORS"),
            unavailable=current_app.config.get("CALENDAR_FIXTURE_UNAVAILABLE", False),
        )
    return ApiAppointmentSource(current_app.extensions["clinic_api"], token=bearer_token())


def _bad_request(*errors: str):
    return jsonify({"success": False, "errors": list(errors)}), 400


def _json_payload() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    ensure_csrf_token(payload)
    return payload


def _serialize_appointment(appt: Appointment) -> dict[str, Any]:
    data = appt.to_payload()
    data["status_style"] = status_style(appt.status).to_dict() if appt.status else None
    data["type_style"] = type_style(appt.type).to_dict() if appt.type else None
    return data


def _serialize_view(view: CalendarView, axis: TimeAxis) -> dict[str, Any]:
    mode = view.state.view_mode
    cells = []
    for cell in view.cells:
        entry: dict[str, Any] = {
            "date": cell.date.isoformat(),
            "is_in_focused_period": cell.is_in_focused_period,
            "is_today": cell.is_today,
            "appointments": [_serialize_appointment(appt) for appt in cell.appointments],
        }
        if mode is ViewMode.MONTH:
            entry["overflow"] = view.overflow(cell)
        else:
            entry["boxes"] = [
                {
                    "appointment_id": box.appointment_id,
                    "top_offset": box.top_offset,
                    "height": box.height,
                    "z_index": box.z_index,
                }
                for box in view.boxes.get(cell.date, [])
            ]
        cells.append(entry)

    payload: dict[str, Any] = {
        "success": view.error is None,
        "error": view.error,
        "state": view.state.to_dict(),
        "title": view.title,
        "range": {"start": view.range[0].isoformat(), "end": view.range[1].isoformat()},
        "cells": cells,
        "can_create": current_user_has("create:appointments"),
    }
    if mode is ViewMode.MONTH:
        payload["max_visible"] = view.max_visible
        payload["rows"] = len(view.rows())
    else:
        payload["axis"] = {
            "start_hour": axis.start_hour,
            "end_hour": axis.end_hour,
            "total_minutes": visible_minutes(axis),
            "labels": [
                {"hour": label.hour, "text": label.text, "top_offset": label.top_offset}
                for label in time_labels(axis)
            ],
        }
    if mode is ViewMode.DAY:
        payload["slots"] = [
            {
                "start": slot.start.isoformat(),
                "end": slot.end.isoformat(),
                "top_offset": slot.top_offset,
                "height": slot.height,
            }
            for slot in time_slots(view.cells[0].date, axis)
        ]
    return payload


def _render(controller: CalendarController, state: ViewState, focused_id: str | None = None):
    view = controller.load(state, _appointment_source(), focused_id=focused_id)
    return jsonify(_serialize_view(view, controller.axis))


@bp.route("/calendar", methods=["GET"], endpoint="index")
@require_permission(VIEW_PERMISSION)
def calendar_index():
    """Grid for the session's current view state."""
    try:
        controller = _controller()
        state = _load_state(controller)
        _store_state(state)
        return _render(controller, state, focused_id=request.args.get("focus") or None)
    except Exception as exc:
        record_exception("calendar.index", exc)
        raise


@bp.route("/calendar/navigate", methods=["POST"], endpoint="navigate")
@require_permission(VIEW_PERMISSION)
def calendar_navigate():
    payload = _json_payload()
    try:
        direction = Direction(payload.get("direction"))
    except ValueError:
        return _bad_request("direction must be 'previous' or 'next'.")
    try:
        controller = _controller()
        state = controller.navigate(_load_state(controller), direction)
        _store_state(state)
        return _render(controller, state)
    except Exception as exc:
        record_exception("calendar.navigate", exc)
        raise


@bp.route("/calendar/today", methods=["POST"], endpoint="today")
@require_permission(VIEW_PERMISSION)
def calendar_today():
    _json_payload()
    try:
        controller = _controller()
        state = controller.today(_load_state(controller))
        _store_state(state)
        return _render(controller, state)
    except Exception as exc:
        record_exception("calendar.today", exc)
        raise


@bp.route("/calendar/date", methods=["POST"], endpoint="date")
@require_permission(VIEW_PERMISSION)
def calendar_set_date():
    payload = _json_payload()
    try:
        anchor = datetime.date.fromisoformat(str(payload.get("date") or ""))
    except ValueError:
        return _bad_request("date must be an ISO date (YYYY-MM-DD).")
    try:
        controller = _controller()
        state = controller.set_anchor_date(_load_state(controller), anchor)
        _store_state(state)
        return _render(controller, state)
    except Exception as exc:
        record_exception("calendar.date", exc)
        raise


@bp.route("/calendar/view-mode", methods=["POST"], endpoint="view_mode")
@require_permission(VIEW_PERMISSION)
def calendar_set_view_mode():
    payload = _json_payload()
    try:
        mode = ViewMode(payload.get("mode"))
    except ValueError:
        return _bad_request("mode must be one of: day, week, month.")
    try:
        controller = _controller()
        state = controller.set_view_mode(_load_state(controller), mode)
        _store_state(state)
        return _render(controller, state)
    except Exception as exc:
        record_exception("calendar.view_mode", exc)
        raise


@bp.route("/calendar/filters", methods=["POST"], endpoint="filters")
@require_permission(VIEW_PERMISSION)
def calendar_set_filter():
    payload = _json_payload()
    controller = _controller()
    state = _load_state(controller)
    if payload.get("reset"):
        state = controller.reset_filters(state)
    else:
        try:
            state = controller.set_filter(state, str(payload.get("criterion")), payload.get("value"))
        except ValueError as exc:
            return _bad_request(str(exc))
    try:
        _store_state(state)
        return _render(controller, state)
    except Exception as exc:
        record_exception("calendar.filters", exc)
        raise


@bp.route("/calendar/doctors", methods=["GET"], endpoint="doctors")
@require_permission(VIEW_PERMISSION)
def calendar_doctors():
    """Doctor choices for the filter bar."""
    choices = [{"id": "all", "name": "All Doctors"}]
    try:
        choices.extend(_appointment_source().doctors())
    except SourceUnavailable as exc:
        current_app.logger.error("Error fetching doctors: %s", exc)
        return jsonify({"success": False, "doctors": choices, "error": "Failed to load doctors."})
    return jsonify({"success": True, "doctors": choices})


@bp.route("/calendar/legend", methods=["GET"], endpoint="legend")
@require_permission(VIEW_PERMISSION, no_store=False)
def calendar_legend():
    return jsonify(
        {
            "status": [{"value": status.value, **style.to_dict()} for status, style in STATUS_LEGEND],
            "type": [{"value": kind.value, **style.to_dict()} for kind, style in TYPE_LEGEND],
        }
    )
