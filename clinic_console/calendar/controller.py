"""Calendar controller: view-state transitions and grid recomputation.

The controller keeps no view state of its own. Every transition takes the
current ``ViewState`` and returns a new one; the host (a Flask session in
this project) decides where the state lives. ``compute`` rebuilds the whole
grid from scratch each time.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable

from . import filters as appointment_filter
from . import time_grid
from .bucketer import bucket
from .layout import TimeAxis, layout_cell
from .types import (
    Appointment,
    AppointmentSource,
    CalendarFilters,
    Direction,
    GridCell,
    LayoutBox,
    SourceUnavailable,
    ViewMode,
    ViewState,
)

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Failed to load appointments. Please try again."
MONTH_MAX_VISIBLE = 3


@dataclass(frozen=True)
class CalendarView:
    """Everything the renderer needs for one state of the calendar."""

    state: ViewState
    cells: list[GridCell]
    boxes: dict[dt.date, list[LayoutBox]] = field(default_factory=dict)
    title: str = ""
    range: tuple[dt.date, dt.date] | None = None
    error: str | None = None
    max_visible: int | None = None

    @property
    def appointment_count(self) -> int:
        return sum(len(cell.appointments) for cell in self.cells)

    def overflow(self, cell: GridCell) -> int:
        """Appointments hidden behind a "+N more" link in Month view."""
        if self.max_visible is None:
            return 0
        return max(0, len(cell.appointments) - self.max_visible)

    def rows(self) -> list[list[GridCell]]:
        return time_grid.weeks(self.cells)


class CalendarController:
    def __init__(self, axis: TimeAxis | None = None, month_max_visible: int = MONTH_MAX_VISIBLE) -> None:
        self.axis = axis or TimeAxis()
        self.month_max_visible = month_max_visible

    def initial_state(self, anchor_date: dt.date | None = None) -> ViewState:
        return ViewState(anchor_date=anchor_date or time_grid.today())

    def today(self, state: ViewState) -> ViewState:
        return replace(state, anchor_date=time_grid.today())

    def navigate(self, state: ViewState, direction: Direction | str) -> ViewState:
        anchor = time_grid.advance(state.anchor_date, state.view_mode, direction)
        return replace(state, anchor_date=anchor)

    def set_anchor_date(self, state: ViewState, anchor_date: dt.date | dt.datetime) -> ViewState:
        if isinstance(anchor_date, dt.datetime):
            anchor_date = anchor_date.date()
        return replace(state, anchor_date=anchor_date)

    def set_view_mode(self, state: ViewState, mode: ViewMode | str) -> ViewState:
        return replace(state, view_mode=ViewMode(mode))

    def set_filter(self, state: ViewState, criterion: str, value: Any) -> ViewState:
        return replace(state, filters=state.filters.with_criterion(criterion, value))

    def reset_filters(self, state: ViewState) -> ViewState:
        return replace(state, filters=CalendarFilters())

    def compute(
        self,
        state: ViewState,
        appointments: Iterable[Appointment] | None,
        focused_id: str | None = None,
        error: str | None = None,
    ) -> CalendarView:
        """Build the grid for ``state``.

        ``appointments=None`` means the list is unavailable: the grid is
        returned empty and ``error`` is set.
        """
        cells = time_grid.compute_cells(state.anchor_date, state.view_mode)
        if appointments is None:
            error = error or UNAVAILABLE_MESSAGE
            appointments = ()

        visible = appointment_filter.apply(appointments, state.filters)
        cells = bucket(visible, cells)

        boxes: dict[dt.date, list[LayoutBox]] = {}
        if state.view_mode is not ViewMode.MONTH:
            boxes = {cell.date: layout_cell(cell, self.axis, focused_id) for cell in cells}

        return CalendarView(
            state=state,
            cells=cells,
            boxes=boxes,
            title=time_grid.period_title(state.anchor_date, state.view_mode),
            range=time_grid.grid_range(cells),
            error=error,
            max_visible=self.month_max_visible if state.view_mode is ViewMode.MONTH else None,
        )

    def load(
        self,
        state: ViewState,
        source: AppointmentSource,
        focused_id: str | None = None,
    ) -> CalendarView:
        """Fetch the visible range from ``source`` and compute the grid."""
        start, end = time_grid.visible_range(state.anchor_date, state.view_mode)
        try:
            appointments = source.fetch(start, end)
        except SourceUnavailable as exc:
            logger.error("Appointment source unavailable for %s..%s: %s", start, end, exc)
            return self.compute(state, None, focused_id)
        return self.compute(state, appointments, focused_id)


__all__ = ["CalendarController", "CalendarView", "MONTH_MAX_VISIBLE", "UNAVAILABLE_MESSAGE"]
