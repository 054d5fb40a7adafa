"""Pixel calibration: the persisted offset and the click-to-calibrate session."""
from __future__ import annotations

import enum
import math
from typing import Callable, Optional

from core.errors import GridError, InvalidOffset
from core.logs import get_logger
from core.settings import CALIBRATION
from helpers.time_mapper import midnight_expected_y, relative_y
from storage.kv_store import KeyValueStore
from ui.grid_metrics import GridMetrics


class CalibrationStore:
    """Owns the calibration offset (pixels).

    Read by every coordinate conversion; written only by
    :class:`CalibrationSession` and :meth:`reset`.
    """

    def __init__(self, kv: Optional[KeyValueStore] = None, key: str = CALIBRATION.storage_key):
        self.kv = kv or KeyValueStore(CALIBRATION.kv_path)
        self.key = key
        self.logger = get_logger("calibration")
        self._offset = 0.0
        self._listeners: set[Callable[[float], None]] = set()

    @property
    def offset(self) -> float:
        return self._offset

    def subscribe(self, callback: Callable[[float], None]) -> None:
        self._listeners.add(callback)

    def unsubscribe(self, callback: Callable[[float], None]) -> None:
        self._listeners.discard(callback)

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._offset)
            except Exception:
                self.logger.exception("Calibration listener failed")

    def load(self) -> float:
        """Refresh from durable storage. Missing or garbage values mean 0."""

        try:
            raw = self.kv.get(self.key)
        except OSError as exc:
            self.logger.warning("Could not read calibration offset: %s", exc)
            raw = None

        value = 0.0
        if raw is not None:
            try:
                value = float(raw)
            except (TypeError, ValueError):
                self.logger.warning("Ignoring unparseable calibration offset %r", raw)
                value = 0.0
            if not math.isfinite(value):
                self.logger.warning("Ignoring non-finite calibration offset %r", raw)
                value = 0.0

        self._offset = value
        self._emit()
        return value

    reload = load

    def set(self, offset: float) -> float:
        try:
            value = float(offset)
        except (TypeError, ValueError) as exc:
            raise InvalidOffset(offset) from exc
        if not math.isfinite(value):
            raise InvalidOffset(offset)

        try:
            self.kv.set(self.key, repr(value))
        except OSError as exc:
            # the in-memory value still applies for this run
            self.logger.error("Could not persist calibration offset %s: %s", value, exc)

        self._offset = value
        self.logger.info("Calibration offset set to %.3f px", value)
        self._emit()
        return value

    def reset(self) -> float:
        return self.set(0.0)


class SessionState(enum.Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


class CalibrationSession:
    """Turns the next grid click into a new calibration offset.

    The user is asked to click exactly on the midnight line. The offset is
    computed from the raw click position (no previous offset applied) so it is
    the full correction, not a delta on top of the old one.
    """

    def __init__(self, store: CalibrationStore, metrics: GridMetrics):
        self.store = store
        self.metrics = metrics
        self.state = SessionState.INACTIVE
        self.logger = get_logger("calibration")
        # offset committed by the last run; None after a cancel
        self.last_offset: Optional[float] = None
        self._committing = False
        self._listeners: set[Callable[[SessionState], None]] = set()

    @property
    def active(self) -> bool:
        return self.state is SessionState.ACTIVE

    def subscribe(self, callback: Callable[[SessionState], None]) -> None:
        self._listeners.add(callback)

    def unsubscribe(self, callback: Callable[[SessionState], None]) -> None:
        self._listeners.discard(callback)

    def _transition(self, state: SessionState) -> None:
        if state is self.state:
            return
        self.state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                self.logger.exception("Calibration session listener failed")

    def begin(self) -> None:
        self.logger.info("Calibration started")
        self.last_offset = None
        self._transition(SessionState.ACTIVE)

    def cancel(self) -> None:
        if self.active:
            self.logger.info("Calibration cancelled")
            self.last_offset = None
        self._transition(SessionState.INACTIVE)

    def compute_offset(self, client_x: float, client_y: float) -> float:
        snapshot = self.metrics.snapshot(client_x, client_y)
        raw = relative_y(client_y, snapshot)
        return midnight_expected_y(snapshot) - raw

    def handle_click(self, client_x: float, client_y: float) -> bool:
        """Returns ``True`` when the click was consumed by calibration."""

        if not self.active:
            return False
        if self._committing:
            return True

        try:
            new_offset = self.compute_offset(client_x, client_y)
        except GridError as exc:
            self.logger.debug("Calibration click ignored: %s", exc)
            return True

        self._committing = True
        try:
            self.store.set(new_offset)
            self.last_offset = self.store.offset
        except InvalidOffset as exc:
            self.logger.warning("Calibration rejected: %s", exc)
            return True
        finally:
            self._committing = False

        self._transition(SessionState.INACTIVE)
        return True


__all__ = ["CalibrationSession", "CalibrationStore", "SessionState"]
