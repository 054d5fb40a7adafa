"""Event bodies written to the calendar backend.

Start and end are always sent as local wall-clock strings plus an explicit
IANA ``timeZone``; the backend interprets them. Nothing in this module shifts
times to UTC.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from core.settings import UI
from helpers.datetime_utils import parse_event_datetime, resolve_local_timezone, to_wall_clock


# fields the server assigns; a copy carrying them would be rejected or would
# alias the original event
SERVER_FIELDS = (
    "id",
    "etag",
    "iCalUID",
    "htmlLink",
    "created",
    "updated",
    "creator",
    "organizer",
    "sequence",
    "kind",
    "hangoutLink",
    "recurringEventId",
    "originalStartTime",
)


def time_block(dt: datetime, tz_name: str) -> Dict[str, str]:
    return {"dateTime": to_wall_clock(dt), "timeZone": tz_name}


def build_event_payload(
    summary: str,
    start: datetime,
    end: Optional[datetime] = None,
    *,
    description: Optional[str] = None,
    tz_name: Optional[str] = None,
) -> Dict[str, Any]:
    zone = tz_name or resolve_local_timezone()
    if end is None:
        end = start + timedelta(minutes=UI.calendar.default_duration_minutes)
    if end <= start:
        raise ValueError("event end must be after its start")
    body: Dict[str, Any] = {
        "summary": summary or "(no title)",
        "start": time_block(start, zone),
        "end": time_block(end, zone),
    }
    if description:
        body["description"] = description
    return body


def event_times(event: Dict[str, Any], tz_name: str) -> tuple[Optional[datetime], Optional[datetime]]:
    return (
        parse_event_datetime(event.get("start"), tz_name),
        parse_event_datetime(event.get("end"), tz_name),
    )


def copy_payload(
    event: Dict[str, Any],
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    tz_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Body for re-creating ``event`` elsewhere, optionally at a new time.

    When only ``start`` is given the original duration is kept. Timed events
    are re-encoded as wall-clock + zone; all-day events keep their ``date``
    blocks unless a new start is requested.
    """

    zone = tz_name or resolve_local_timezone()
    body = copy.deepcopy(event)
    for field in SERVER_FIELDS:
        body.pop(field, None)

    old_start, old_end = event_times(event, zone)
    is_timed = bool((event.get("start") or {}).get("dateTime"))

    if start is not None:
        if end is None:
            duration = (old_end - old_start) if old_start and old_end else None
            end = start + (duration or timedelta(minutes=UI.calendar.default_duration_minutes))
        body["start"] = time_block(start, zone)
        body["end"] = time_block(end, zone)
    elif is_timed and old_start and old_end:
        original_zone = (event.get("start") or {}).get("timeZone") or zone
        body["start"] = time_block(parse_event_datetime(event["start"], original_zone), original_zone)
        body["end"] = time_block(parse_event_datetime(event["end"], original_zone), original_zone)
    return body


__all__ = [
    "SERVER_FIELDS",
    "build_event_payload",
    "copy_payload",
    "event_times",
    "time_block",
]
