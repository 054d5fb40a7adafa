import json

import pytest

from services import google_auth, google_calendar
from services.google_auth import SCOPES, GoogleAuth
from services.google_calendar import GoogleCalendar


class FakeCreds:
    def __init__(self, *, valid=True, expired=False, refresh_token="r", scopes=SCOPES):
        self.valid = valid
        self.expired = expired
        self.refresh_token = refresh_token
        self.scopes = list(scopes)
        self.refreshed = False

    def refresh(self, _request):
        self.refreshed = True
        self.valid = True
        self.expired = False

    def to_json(self):
        return json.dumps({"token": "t", "scopes": self.scopes})


@pytest.fixture()
def auth(tmp_path):
    return GoogleAuth(secrets_path=tmp_path / "client_secret.json", token_path=tmp_path / "token.json")


def _serve_cached(monkeypatch, creds):
    monkeypatch.setattr(
        google_auth.Credentials,
        "from_authorized_user_file",
        classmethod(lambda cls, path, scopes: creds),
    )


def test_cached_token_is_used(monkeypatch, auth):
    auth.token_path.write_text("{}", encoding="utf-8")
    _serve_cached(monkeypatch, FakeCreds())
    assert auth.ensure_credentials() is True
    assert auth.connected
    assert json.loads(auth.token_path.read_text(encoding="utf-8"))["token"] == "t"


def test_expired_token_is_refreshed(monkeypatch, auth):
    auth.token_path.write_text("{}", encoding="utf-8")
    creds = FakeCreds(valid=False, expired=True)
    _serve_cached(monkeypatch, creds)
    auth.ensure_credentials()
    assert creds.refreshed
    assert auth.get_credentials() is creds


def test_missing_client_secret_is_reported(auth):
    with pytest.raises(FileNotFoundError):
        auth.ensure_credentials()


def test_token_without_calendar_scope_needs_consent(monkeypatch, auth):
    auth.token_path.write_text("{}", encoding="utf-8")
    _serve_cached(monkeypatch, FakeCreds(scopes=["https://www.googleapis.com/auth/tasks"]))
    with pytest.raises(FileNotFoundError):
        auth.ensure_credentials()


def test_reset_removes_cached_token(auth):
    auth.token_path.write_text("{}", encoding="utf-8")
    auth.reset_credentials()
    assert not auth.token_path.exists()
    auth.reset_credentials()
    assert auth.get_credentials() is None


def test_reconnect_runs_consent_even_with_valid_token(monkeypatch, auth):
    auth.creds = FakeCreds()
    auth.token_path.write_text("{}", encoding="utf-8")
    flows = []

    def consent():
        flows.append(1)
        return FakeCreds()

    monkeypatch.setattr(auth, "_run_consent_flow", consent)
    monkeypatch.setattr(google_calendar, "_build_service_from_creds", lambda creds: "service")

    gcal = GoogleCalendar(auth, service="stale")
    gcal.reconnect()
    assert flows == [1]
    assert gcal.service == "service"
    assert auth.connected
