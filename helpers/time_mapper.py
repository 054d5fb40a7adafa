"""Pixel ⇄ time conversion for the day-view grid.

Every path that turns a pointer position into a time (click-to-create, drag
preview, drop, selection drag) goes through :func:`pixel_to_time`, and every
path that turns a time back into a position goes through
:func:`time_to_pixel`. Nothing else in the application carries its own copy of
this arithmetic.

All intermediate values are float pixels. Snapping to the minute grid happens
once, as the last step of :func:`pixel_to_time`.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Hashable, Tuple

from core.settings import UI
from helpers.datetime_utils import snap_minutes as _snap

SNAP_MINUTES = UI.calendar.snap_minutes
MIDNIGHT_HOUR = 0


@dataclass(frozen=True)
class GridSnapshot:
    """Geometry of the rendered grid, read in one synchronous pass."""

    column_id: Hashable
    grid_top: float
    grid_scroll_top: float
    hour_height_px: float
    visible_hour_start: int

    def __post_init__(self) -> None:
        if not self.hour_height_px > 0:
            raise ValueError(f"hour_height_px must be positive, got {self.hour_height_px!r}")


@dataclass(frozen=True, order=True)
class CalendarTime:
    """Time of day on the grid.

    ``hour`` is not clamped to 0..23: spans that run past midnight (or above
    the first rendered hour) keep counting.
    """

    hour: int
    minute: int = 0

    @property
    def total_minutes(self) -> int:
        return self.hour * 60 + self.minute

    @classmethod
    def from_minutes(cls, total: int) -> "CalendarTime":
        hour, minute = divmod(int(total), 60)
        return cls(hour, minute)

    def plus_minutes(self, minutes: int) -> "CalendarTime":
        return CalendarTime.from_minutes(self.total_minutes + minutes)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def relative_y(client_y: float, snapshot: GridSnapshot, offset: float = 0.0) -> float:
    return (client_y - snapshot.grid_top) + snapshot.grid_scroll_top + offset


def pixel_to_time(
    client_y: float,
    snapshot: GridSnapshot,
    offset: float,
    snap_minutes: int = SNAP_MINUTES,
) -> CalendarTime:
    rel = relative_y(client_y, snapshot, offset)
    height = snapshot.hour_height_px

    hour_index = math.floor(rel / height)
    minute_in_hour = ((rel % height) / height) * 60.0

    minute = _snap(minute_in_hour, step=snap_minutes, direction="nearest")
    hour = snapshot.visible_hour_start + hour_index
    # rounding up to 60 carries into the next hour
    carry, minute = divmod(minute, 60)
    return CalendarTime(hour + carry, minute)


def time_to_pixel(t: CalendarTime, snapshot: GridSnapshot) -> float:
    """Position of ``t`` relative to the grid content top, without any offset."""

    height = snapshot.hour_height_px
    return (t.hour - snapshot.visible_hour_start) * height + (t.minute / 60.0) * height


def preview_top(t: CalendarTime, snapshot: GridSnapshot, offset: float) -> float:
    """Content-space y where a preview for ``t`` must be drawn.

    This is the point that :func:`pixel_to_time` would read back as ``t``
    under the same ``offset``.
    """

    return time_to_pixel(t, snapshot) - offset


def drop_time(
    client_y: float,
    grab_offset_px: float,
    snapshot: GridSnapshot,
    offset: float,
    snap_minutes: int = SNAP_MINUTES,
) -> CalendarTime:
    """Start time for an event whose top edge is ``grab_offset_px`` above the pointer."""

    return pixel_to_time(client_y - grab_offset_px, snapshot, offset, snap_minutes)


def selection_range(
    y_a: float,
    y_b: float,
    snapshot: GridSnapshot,
    offset: float,
    snap_minutes: int = SNAP_MINUTES,
) -> Tuple[CalendarTime, CalendarTime]:
    first = pixel_to_time(min(y_a, y_b), snapshot, offset, snap_minutes)
    second = pixel_to_time(max(y_a, y_b), snapshot, offset, snap_minutes)
    if second <= first:
        second = first.plus_minutes(snap_minutes)
    return first, second


def to_datetime(day: date, t: CalendarTime) -> datetime:
    """Combine ``day`` with ``t``; hours outside 0..23 roll into adjacent days."""

    return datetime(day.year, day.month, day.day) + timedelta(minutes=t.total_minutes)


def midnight_expected_y(snapshot: GridSnapshot) -> float:
    return time_to_pixel(CalendarTime(MIDNIGHT_HOUR, 0), snapshot)


def time_of(day: date, dt: datetime) -> CalendarTime:
    """Position of ``dt`` on the grid of ``day``; earlier days give negative hours."""

    midnight = datetime(day.year, day.month, day.day)
    return CalendarTime.from_minutes(int((dt - midnight).total_seconds() // 60))


__all__ = [
    "CalendarTime",
    "GridSnapshot",
    "SNAP_MINUTES",
    "drop_time",
    "midnight_expected_y",
    "pixel_to_time",
    "preview_top",
    "relative_y",
    "selection_range",
    "time_of",
    "time_to_pixel",
    "to_datetime",
]
