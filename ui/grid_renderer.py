"""Flet-side implementation of :class:`ui.grid_metrics.GridRenderer`.

Flet does not expose layout rectangles directly, so the renderer learns them
from the controls' own events: the grid origin from pointer events
(``global - local``), the scroll offset from ``on_scroll`` and the hour height
from a canvas that spans the rendered hours and reports its size.
"""
from __future__ import annotations

from typing import Hashable, Optional, Sequence

from core.settings import UI

CAL_UI = UI.calendar


class FletGridRenderer:
    def __init__(
        self,
        columns: Sequence[Hashable],
        *,
        visible_hour_start: int = CAL_UI.visible_hour_start,
        visible_hour_end: int = CAL_UI.visible_hour_end,
        gutter_width: float = CAL_UI.hours_column_width,
        column_width: float = CAL_UI.column_width,
    ):
        self.columns = list(columns)
        self._visible_hour_start = visible_hour_start
        self.hour_count = max(1, visible_hour_end - visible_hour_start)
        self.gutter_width = float(gutter_width)
        self.column_width = float(column_width)

        self._grid_left: Optional[float] = None
        self._grid_top: Optional[float] = None
        self._viewport_height: Optional[float] = None
        self._scroll_top = 0.0
        self._measured_height: Optional[float] = None

    # ----- fed by flet events -----
    def note_pointer(self, local_x: float, local_y: float, global_x: float, global_y: float) -> None:
        self._grid_left = global_x - local_x
        self._grid_top = global_y - local_y

    def on_scroll(self, e) -> None:
        pixels = getattr(e, "pixels", None)
        if pixels is not None:
            self._scroll_top = float(pixels)
        viewport = getattr(e, "viewport_dimension", None)
        if viewport:
            self._viewport_height = float(viewport)

    def on_canvas_resize(self, e) -> None:
        height = getattr(e, "height", None)
        if height and height > 0:
            self._measured_height = float(height) / self.hour_count

    # ----- GridRenderer -----
    def column_at(self, client_x: float, client_y: float) -> Optional[Hashable]:
        if self._grid_left is None or self._grid_top is None:
            return None
        local_y = client_y - self._grid_top
        if local_y < 0 or (self._viewport_height is not None and local_y > self._viewport_height):
            return None
        local_x = client_x - self._grid_left - self.gutter_width
        if local_x < 0:
            return None
        idx = int(local_x // self.column_width)
        if idx >= len(self.columns):
            return None
        return self.columns[idx]

    def grid_top(self) -> float:
        return self._grid_top or 0.0

    def scroll_top(self) -> float:
        return self._scroll_top

    def hour_height(self) -> Optional[float]:
        return self._measured_height

    def visible_hour_start(self) -> int:
        return self._visible_hour_start

    # ----- layout helpers for the page -----
    def column_left(self, column: Hashable) -> float:
        return self.gutter_width + self.columns.index(column) * self.column_width


__all__ = ["FletGridRenderer"]
