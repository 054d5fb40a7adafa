"""Shared utilities for snapping minutes and encoding local wall-clock times."""
from __future__ import annotations

import math
import os
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

WALL_CLOCK_FORMAT = "%Y-%m-%dT%H:%M:%S"
FALLBACK_TZ = "UTC"
UTC = timezone.utc


def utc_now() -> datetime:
    return datetime.now(UTC)


def snap_minutes(value: float, *, step: int, direction: str = "forward") -> int:
    """Snap ``value`` to ``step`` minutes using the provided ``direction``.

    ``direction`` can be ``forward`` (ceil), ``nearest`` (half rounds up) or
    ``backward``.
    """

    if step <= 0:
        return int(value)
    if direction == "nearest":
        return int(math.floor(value / step + 0.5) * step)
    if direction == "backward":
        return int(math.floor(value / step) * step)
    return int(math.ceil(value / step) * step)


def parse_time_input(value: str | None) -> Optional[time]:
    """Parse ``HH:MM`` / ``HH.MM`` / ``930`` strings into a ``time``."""

    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    for fmt in ("%H:%M", "%H.%M"):
        try:
            dt = datetime.strptime(text, fmt)
            return time(dt.hour, dt.minute)
        except ValueError:
            continue

    if len(text) in {3, 4} and text.isdigit():
        hours, minutes = int(text[:-2]), int(text[-2:])
        if 0 <= hours < 24 and 0 <= minutes < 60:
            return time(hours, minutes)
    return None


def _zone_from_localtime_link(path: Path) -> Optional[str]:
    try:
        target = os.path.realpath(path)
    except OSError:
        return None
    marker = "zoneinfo" + os.sep
    if marker not in target:
        return None
    return target.split(marker, 1)[1]


def _is_valid_zone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def resolve_local_timezone(
    *,
    env: Optional[Mapping[str, str]] = None,
    localtime: Path = Path("/etc/localtime"),
) -> str:
    """Return the IANA zone name of the running environment.

    Tries ``TZ`` first, then the ``/etc/localtime`` symlink target, and falls
    back to ``UTC``.
    """

    environ = dict(os.environ if env is None else env)
    candidate = (environ.get("TZ") or "").strip().lstrip(":")
    if candidate and _is_valid_zone(candidate):
        return candidate

    linked = _zone_from_localtime_link(localtime)
    if linked and _is_valid_zone(linked):
        return linked
    return FALLBACK_TZ


def to_wall_clock(dt: datetime) -> str:
    """Format ``dt`` as naive local wall-clock time, dropping any tzinfo as-is.

    No conversion to UTC (or to any other zone) happens here.
    """

    return dt.replace(tzinfo=None, microsecond=0).strftime(WALL_CLOCK_FORMAT)


def parse_event_datetime(payload: Optional[Dict[str, Any]], tz_name: str) -> Optional[datetime]:
    """Read an event ``start``/``end`` block as a naive datetime in ``tz_name``."""

    if not payload:
        return None
    raw = payload.get("dateTime")
    if raw:
        value = raw.strip()
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(value)
        except ValueError:
            return None
        if dt.tzinfo is not None:
            dt = dt.astimezone(ZoneInfo(tz_name))
        return dt.replace(tzinfo=None)
    all_day = payload.get("date")
    if all_day:
        try:
            return datetime.combine(date.fromisoformat(all_day), time.min)
        except ValueError:
            return None
    return None


__all__ = [
    "FALLBACK_TZ",
    "WALL_CLOCK_FORMAT",
    "parse_event_datetime",
    "parse_time_input",
    "resolve_local_timezone",
    "snap_minutes",
    "to_wall_clock",
    "utc_now",
]
