"""Bookkeeping for events left in two calendars by a half-finished move."""
from __future__ import annotations

from typing import Callable, List

from sqlmodel import Session, select

from core.logs import get_logger
from models.unresolved_duplicate import UnresolvedDuplicate
from services.event_mover import MoveResult
from storage.db import get_session


class DuplicateRegistry:
    """Lists duplicates for the user to clean up.

    Entries are informational. Nothing here deletes remote events; resolving an
    entry only removes the reminder.
    """

    def __init__(self, session_factory: Callable[[], Session] = get_session):
        self._session_factory = session_factory
        self.logger = get_logger("move")

    def record(self, result: MoveResult) -> UnresolvedDuplicate:
        request = result.request
        created = result.created_event or {}
        row = UnresolvedDuplicate(
            source_calendar=request.source_ref,
            source_event_id=request.event_id or "",
            target_calendar=request.target_ref,
            created_event_id=created.get("id"),
            summary=request.payload.get("summary"),
            error=str(result.error)[:1000] if result.error else None,
        )
        with self._session_factory() as session:
            session.add(row)
            session.commit()
            session.refresh(row)
        self.logger.info(
            "Recorded duplicate #%s (%s in %s and %s)",
            row.id,
            row.source_event_id,
            row.source_calendar,
            row.target_calendar,
        )
        return row

    def list_open(self) -> List[UnresolvedDuplicate]:
        with self._session_factory() as session:
            stmt = select(UnresolvedDuplicate).order_by(UnresolvedDuplicate.created_at.desc())
            return list(session.exec(stmt))

    def resolve(self, record_id: int) -> bool:
        with self._session_factory() as session:
            row = session.get(UnresolvedDuplicate, record_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        self.logger.info("Duplicate #%s marked as resolved", record_id)
        return True


__all__ = ["DuplicateRegistry"]
