"""Date arithmetic for the Day/Week/Month calendar grids."""

from __future__ import annotations

import calendar
import datetime as dt
from datetime import timedelta

from .types import Direction, GridCell, ViewMode

DAYS_PER_WEEK = 7
MONTH_GRID_CELLS = 42


def today() -> dt.date:
    return dt.date.today()


def _as_date(value: dt.date | dt.datetime) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def start_of_week(day: dt.date) -> dt.date:
    """Sunday on or before ``day``."""
    # date.weekday(): Monday == 0 ... Sunday == 6
    return day - timedelta(days=(day.weekday() + 1) % DAYS_PER_WEEK)


def end_of_week(day: dt.date) -> dt.date:
    return start_of_week(day) + timedelta(days=DAYS_PER_WEEK - 1)


def first_of_month(day: dt.date) -> dt.date:
    return day.replace(day=1)


def compute_cells(anchor_date: dt.date | dt.datetime, view_mode: ViewMode) -> list[GridCell]:
    """Return the empty grid cells shown for ``anchor_date`` in ``view_mode``."""
    anchor = _as_date(anchor_date)
    mode = ViewMode(view_mode)

    if mode is ViewMode.DAY:
        return [GridCell(date=anchor)]

    if mode is ViewMode.WEEK:
        start = start_of_week(anchor)
        return [GridCell(date=start + timedelta(days=i)) for i in range(DAYS_PER_WEEK)]

    start = start_of_week(first_of_month(anchor))
    cells = []
    for i in range(MONTH_GRID_CELLS):
        day = start + timedelta(days=i)
        cells.append(
            GridCell(
                date=day,
                is_in_focused_period=(day.year, day.month) == (anchor.year, anchor.month),
            )
        )
    return cells


def visible_range(anchor_date: dt.date | dt.datetime, view_mode: ViewMode) -> tuple[dt.date, dt.date]:
    """Inclusive date range to request from the data source.

    Month view covers all 42 cells, trailing padding rows included.
    """
    anchor = _as_date(anchor_date)
    mode = ViewMode(view_mode)
    if mode is ViewMode.DAY:
        return anchor, anchor
    if mode is ViewMode.WEEK:
        return start_of_week(anchor), end_of_week(anchor)
    start = start_of_week(first_of_month(anchor))
    return start, start + timedelta(days=MONTH_GRID_CELLS - 1)


def grid_range(cells: list[GridCell]) -> tuple[dt.date, dt.date]:
    return cells[0].date, cells[-1].date


def _shift_month(day: dt.date, months: int) -> dt.date:
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return dt.date(year, month, min(day.day, last_day))


def advance(
    anchor_date: dt.date | dt.datetime,
    view_mode: ViewMode,
    direction: Direction | str,
) -> dt.date:
    """Move the anchor one period forwards or backwards.

    Month steps keep the day of month, clamped to the target month's length,
    so Jan 31 -> Feb 28/29 -> Mar 28.
    """
    anchor = _as_date(anchor_date)
    try:
        step = Direction(direction)
    except ValueError:
        assert False, f"invalid navigation direction: {direction!r}"
        return anchor
    sign = 1 if step is Direction.NEXT else -1

    mode = ViewMode(view_mode)
    if mode is ViewMode.DAY:
        return anchor + timedelta(days=sign)
    if mode is ViewMode.WEEK:
        return anchor + timedelta(weeks=sign)
    return _shift_month(anchor, sign)


def period_title(anchor_date: dt.date | dt.datetime, view_mode: ViewMode) -> str:
    anchor = _as_date(anchor_date)
    mode = ViewMode(view_mode)
    long_date = f"{anchor:%B} {anchor.day}, {anchor.year}"
    if mode is ViewMode.DAY:
        return long_date
    if mode is ViewMode.WEEK:
        return f"Week of {long_date}"
    return f"{anchor:%B} {anchor.year}"


def weeks(cells: list[GridCell]) -> list[list[GridCell]]:
    """Split a grid into rows of seven cells."""
    return [cells[i : i + DAYS_PER_WEEK] for i in range(0, len(cells), DAYS_PER_WEEK)]


__all__ = [
    "DAYS_PER_WEEK",
    "MONTH_GRID_CELLS",
    "advance",
    "compute_cells",
    "end_of_week",
    "first_of_month",
    "grid_range",
    "period_title",
    "start_of_week",
    "today",
    "visible_range",
    "weeks",
]
