"""Live geometry reads of the rendered time grid."""
from __future__ import annotations

from typing import Hashable, Optional, Protocol

from core.errors import GridNotMeasured, NoTargetColumn
from helpers.time_mapper import GridSnapshot


class GridRenderer(Protocol):
    """What the grid view has to expose for coordinate conversion."""

    def column_at(self, client_x: float, client_y: float) -> Optional[Hashable]:
        ...

    def grid_top(self) -> float:
        ...

    def scroll_top(self) -> float:
        ...

    def hour_height(self) -> Optional[float]:
        """Height of one rendered hour cell as laid out, or ``None`` before layout."""
        ...

    def visible_hour_start(self) -> int:
        ...


class GridMetrics:
    """Produces a :class:`GridSnapshot` for one pointer position.

    Holds no state of its own; take a fresh snapshot for every event instead of
    reusing one across a scroll or resize.
    """

    def __init__(self, renderer: GridRenderer):
        self.renderer = renderer

    def snapshot(self, client_x: float, client_y: float) -> GridSnapshot:
        column = self.renderer.column_at(client_x, client_y)
        if column is None:
            raise NoTargetColumn(client_x, client_y)
        return self._read(column)

    def column_snapshot(self, column: Hashable) -> GridSnapshot:
        """Same read for a known column, used when laying out events without a pointer."""

        return self._read(column)

    def _read(self, column: Hashable) -> GridSnapshot:
        height = self.renderer.hour_height()
        if not height or height <= 0:
            raise GridNotMeasured("hour cell has no rendered height yet")

        return GridSnapshot(
            column_id=column,
            grid_top=float(self.renderer.grid_top()),
            grid_scroll_top=float(self.renderer.scroll_top()),
            hour_height_px=float(height),
            visible_hour_start=int(self.renderer.visible_hour_start()),
        )


__all__ = ["GridMetrics", "GridRenderer"]
