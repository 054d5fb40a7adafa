"""SQLModel table for moves that left the event in two calendars."""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from helpers.datetime_utils import utc_now


class UnresolvedDuplicate(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    source_calendar: str = Field(index=True)
    source_event_id: str = Field(index=True)
    target_calendar: str
    created_event_id: Optional[str] = None
    summary: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


__all__ = ["UnresolvedDuplicate"]
