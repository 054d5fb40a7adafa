from datetime import date

import httplib2
import pytest
from googleapiclient.errors import HttpError

from services.google_calendar import GoogleCalendar


class _Call:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def execute(self):
        if self.error:
            raise self.error
        return self.result


class FakeEvents:
    def __init__(self):
        self.calls = []
        self.delete_error = None

    def list(self, **kwargs):
        self.calls.append(("list", kwargs))
        return _Call({"items": [{"id": "a"}]})

    def insert(self, calendarId, body):
        self.calls.append(("insert", calendarId, body))
        return _Call({**body, "id": "created-1"})

    def patch(self, calendarId, eventId, body):
        self.calls.append(("patch", calendarId, eventId, body))
        return _Call({**body, "id": eventId})

    def delete(self, calendarId, eventId):
        self.calls.append(("delete", calendarId, eventId))
        return _Call(error=self.delete_error)


class FakeService:
    def __init__(self):
        self._events = FakeEvents()

    def events(self):
        return self._events


def _http_error(status):
    return HttpError(httplib2.Response({"status": status}), b"")


@pytest.fixture()
def gcal():
    return GoogleCalendar(auth=None, service=FakeService())


def test_list_day_uses_local_day_bounds(gcal):
    items = gcal.list_day("work", date(2024, 7, 1), "Europe/Berlin")
    assert items == [{"id": "a"}]
    _, kwargs = gcal.service.events().calls[0]
    assert kwargs["calendarId"] == "work"
    assert kwargs["timeMin"] == "2024-07-01T00:00:00+02:00"
    assert kwargs["timeMax"] == "2024-07-02T00:00:00+02:00"
    assert kwargs["timeZone"] == "Europe/Berlin"
    assert kwargs["singleEvents"] is True


def test_create_and_update(gcal):
    created = gcal.create_event("home", {"summary": "x"})
    assert created["id"] == "created-1"
    updated = gcal.update_event("home", "created-1", {"summary": "y"})
    assert updated["summary"] == "y"
    kinds = [c[0] for c in gcal.service.events().calls]
    assert kinds == ["insert", "patch"]


def test_delete_treats_missing_event_as_done(gcal):
    gcal.service.events().delete_error = _http_error(410)
    gcal.delete_event("work", "gone")


def test_delete_propagates_other_errors(gcal):
    gcal.service.events().delete_error = _http_error(403)
    with pytest.raises(HttpError):
        gcal.delete_event("work", "locked")


def test_no_credentials_is_an_error():
    with pytest.raises(RuntimeError):
        GoogleCalendar(auth=None).create_event("work", {})


def test_delete_404_is_an_error(gcal):
    # wrong or inaccessible calendar ids also answer 404
    gcal.service.events().delete_error = _http_error(404)
    with pytest.raises(HttpError):
        gcal.delete_event("not-my-calendar", "ev-1")


class FakeAuth:
    def __init__(self):
        self.calendar_service = FakeService()
        self.resets = 0
        self.ensured = 0

    def reset_credentials(self):
        self.resets += 1

    def ensure_credentials(self):
        self.ensured += 1
        return True


def test_reconnect_resets_credentials_and_service():
    auth = FakeAuth()
    stale = FakeService()
    gcal = GoogleCalendar(auth, service=stale)

    assert gcal.reconnect() is True
    assert auth.resets == 1
    assert auth.ensured == 1
    assert gcal.service is auth.calendar_service
