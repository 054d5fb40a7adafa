"""Exception types shared across the application."""
from __future__ import annotations

from typing import Any, Optional


class DayGridError(Exception):
    """Base class for application errors."""


# ----- geometry: recovered by the immediate caller, never shown to the user -----
class GridError(DayGridError):
    pass


class NoTargetColumn(GridError):
    def __init__(self, client_x: float, client_y: float):
        super().__init__(f"no calendar column under ({client_x}, {client_y})")
        self.client_x = client_x
        self.client_y = client_y


class GridNotMeasured(GridError):
    """The hour cell has not been laid out yet, so its height is unknown."""


# ----- calibration -----
class InvalidOffset(DayGridError):
    def __init__(self, value: Any):
        super().__init__(f"calibration offset must be a finite number, got {value!r}")
        self.value = value


# ----- cross-calendar move: always surfaced to the user -----
class MoveError(DayGridError):
    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class CreateFailed(MoveError):
    """Target calendar rejected the copy; the source event was not touched."""


class DeleteFailedAfterCreate(MoveError):
    """The copy exists in the target but the original could not be removed.

    The event is now present in both calendars. The duplicate must be removed
    by the user; the delete is never retried automatically.
    """

    def __init__(
        self,
        message: str,
        *,
        created_event: Optional[dict] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, cause=cause)
        self.created_event = created_event or {}


class MoveInProgress(MoveError):
    pass


__all__ = [
    "DayGridError",
    "GridError",
    "NoTargetColumn",
    "GridNotMeasured",
    "InvalidOffset",
    "MoveError",
    "CreateFailed",
    "DeleteFailedAfterCreate",
    "MoveInProgress",
]
