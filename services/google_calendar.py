from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Protocol
from zoneinfo import ZoneInfo

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from core.logs import get_logger
from core.settings import GOOGLE_SYNC
from helpers.datetime_utils import resolve_local_timezone

# 410 means the event was deleted; 404 can also mean a wrong or inaccessible
# calendar, so it stays an error
GONE_STATUS = {410}


class RemoteEventStore(Protocol):
    """Create/delete capability of a calendar backend.

    Both calls raise on failure (transport error or non-success response).
    """

    def create_event(self, calendar_ref: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def delete_event(self, calendar_ref: str, event_id: str) -> None:
        ...


def _http_status(exc: HttpError) -> Optional[int]:
    resp = getattr(exc, "resp", None)
    status = getattr(resp, "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


# ---------- service lookup ----------
def _build_service_from_creds(creds) -> Any:
    if creds is None:
        return None
    return build("calendar", "v3", credentials=creds, cache_discovery=False)


def _find_service_in_auth(auth) -> Any:
    for attr in ("calendar_service", "service"):
        svc = getattr(auth, attr, None)
        if svc and hasattr(svc, "events"):
            return svc
    return None


class GoogleCalendar:
    """Google Calendar v3 adapter. Each configured calendar id is one store ref."""

    def __init__(self, auth, service: Any = None):
        self.auth = auth
        self.service = service
        self.logger = get_logger("google")

    def connect(self) -> bool:
        if hasattr(self.auth, "ensure_credentials") and callable(getattr(self.auth, "ensure_credentials")):
            self.auth.ensure_credentials()
        self._maybe_build_service(strict=True)
        return True

    def reconnect(self) -> bool:
        """Drop the cached token and service, then authorize from scratch."""

        reset = getattr(self.auth, "reset_credentials", None)
        if callable(reset):
            reset()
        self.service = None
        self.logger.info("Reconnecting to Google Calendar")
        return self.connect()

    def _maybe_build_service(self, strict: bool = False) -> None:
        if self.service and hasattr(self.service, "events"):
            return
        svc = _find_service_in_auth(self.auth)
        if svc:
            self.service = svc
            return
        getter = getattr(self.auth, "get_credentials", None)
        creds = getter() if callable(getter) else None
        if creds:
            self.service = _build_service_from_creds(creds)
            return
        if strict:
            raise RuntimeError(
                "GoogleCalendar: no credentials available. Call GoogleAuth.ensure_credentials() first."
            )

    # ----- reads -----
    def list_day(self, calendar_ref: str, day: date, tz_name: Optional[str] = None) -> List[Dict[str, Any]]:
        self._maybe_build_service(strict=True)
        zone_name = tz_name or resolve_local_timezone()
        zone = ZoneInfo(zone_name)
        start = datetime.combine(day, time.min, tzinfo=zone)
        end = start + timedelta(days=1)
        res = self.service.events().list(
            calendarId=calendar_ref,
            timeMin=start.isoformat(),
            timeMax=end.isoformat(),
            timeZone=zone_name,
            singleEvents=True,
            orderBy="startTime",
            maxResults=GOOGLE_SYNC.max_results,
        ).execute()
        return res.get("items", [])

    # ----- writes -----
    def create_event(self, calendar_ref: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._maybe_build_service(strict=True)
        created = self.service.events().insert(calendarId=calendar_ref, body=payload).execute()
        self.logger.info("Created event %s in %s", created.get("id"), calendar_ref)
        return created

    def update_event(self, calendar_ref: str, event_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._maybe_build_service(strict=True)
        return self.service.events().patch(
            calendarId=calendar_ref, eventId=event_id, body=payload
        ).execute()

    def delete_event(self, calendar_ref: str, event_id: str) -> None:
        self._maybe_build_service(strict=True)
        try:
            self.service.events().delete(calendarId=calendar_ref, eventId=event_id).execute()
        except HttpError as e:
            if _http_status(e) in GONE_STATUS:
                self.logger.info("Event %s already gone from %s", event_id, calendar_ref)
                return
            raise
        self.logger.info("Deleted event %s from %s", event_id, calendar_ref)


__all__ = ["GoogleCalendar", "RemoteEventStore"]
