"""Moving an event between two calendars that share no transaction.

The copy is created in the target first and the original is deleted only
after the create is confirmed. A failure between the two steps therefore
leaves the event in both calendars, never in neither. This is not an
exactly-once transfer: a ``DeleteFailedAfterCreate`` result means there is a
duplicate the user has to remove by hand.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from core.errors import CreateFailed, DeleteFailedAfterCreate, MoveError, MoveInProgress
from core.logs import get_logger
from services.event_payload import SERVER_FIELDS
from services.google_calendar import RemoteEventStore


@dataclass(frozen=True)
class MoveRequest:
    source_ref: str
    target_ref: str
    # event resource as read from the source; must carry the original ``id``
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def event_id(self) -> Optional[str]:
        value = self.payload.get("id")
        return str(value) if value else None


@dataclass
class MoveResult:
    request: MoveRequest
    created_event: Optional[Dict[str, Any]] = None
    error: Optional[MoveError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def duplicated(self) -> bool:
        return isinstance(self.error, DeleteFailedAfterCreate)


def _create_body(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if k not in SERVER_FIELDS}


class MoveCoordinator:
    """Create-then-delete relocation between two :class:`RemoteEventStore` refs.

    ``target_store`` defaults to ``source_store`` for backends where both
    calendars are reachable through the same client.
    """

    def __init__(
        self,
        source_store: RemoteEventStore,
        target_store: Optional[RemoteEventStore] = None,
        *,
        on_duplicate: Optional[Callable[[MoveResult], None]] = None,
    ):
        self.source_store = source_store
        self.target_store = target_store or source_store
        self.on_duplicate = on_duplicate
        self.logger = get_logger("move")
        self._lock = threading.Lock()
        self._in_flight: set[str] = set()

    def move(self, source_ref: str, target_ref: str, payload: Dict[str, Any]) -> MoveResult:
        return self.execute(MoveRequest(source_ref, target_ref, payload))

    def execute(self, request: MoveRequest) -> MoveResult:
        event_id = request.event_id
        if not event_id:
            return MoveResult(request, error=CreateFailed("event has no id; nothing to move"))

        with self._lock:
            if event_id in self._in_flight:
                return MoveResult(
                    request, error=MoveInProgress(f"event {event_id} is already being moved")
                )
            self._in_flight.add(event_id)
        try:
            return self._run(request, event_id)
        finally:
            with self._lock:
                self._in_flight.discard(event_id)

    def _run(self, request: MoveRequest, event_id: str) -> MoveResult:
        self.logger.info(
            "Moving event %s from %s to %s", event_id, request.source_ref, request.target_ref
        )

        # phase 1: copy into the target; the source stays untouched on failure
        try:
            created = self.target_store.create_event(request.target_ref, _create_body(request.payload))
        except Exception as exc:
            self.logger.warning("Create in %s failed for %s: %s", request.target_ref, event_id, exc)
            return MoveResult(
                request,
                error=CreateFailed(f"could not create the event in {request.target_ref}: {exc}", cause=exc),
            )
        if not created or not created.get("id"):
            self.logger.warning("Create in %s returned no event id for %s", request.target_ref, event_id)
            return MoveResult(
                request,
                error=CreateFailed(f"{request.target_ref} did not confirm the new event"),
            )

        # phase 2: only now remove the original
        try:
            self.source_store.delete_event(request.source_ref, event_id)
        except Exception as exc:
            self.logger.error(
                "Delete of %s in %s failed after creating %s in %s: %s",
                event_id,
                request.source_ref,
                created.get("id"),
                request.target_ref,
                exc,
            )
            result = MoveResult(
                request,
                created_event=created,
                error=DeleteFailedAfterCreate(
                    f"the event now exists in both {request.source_ref} and {request.target_ref}; "
                    "remove the duplicate manually",
                    created_event=created,
                    cause=exc,
                ),
            )
            if self.on_duplicate:
                try:
                    self.on_duplicate(result)
                except Exception:
                    self.logger.exception("Recording duplicate for %s failed", event_id)
            return result

        self.logger.info("Moved event %s -> %s", event_id, created.get("id"))
        return MoveResult(request, created_event=created)


__all__ = ["MoveCoordinator", "MoveRequest", "MoveResult"]
