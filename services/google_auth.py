# daygrid/services/google_auth.py
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Iterable, Optional, Sequence

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from core.logs import get_logger
from core.settings import CLIENT_SECRET_PATH, GOOGLE_SYNC, TOKEN_PATH


SCOPES = list(GOOGLE_SYNC.scopes)


class GoogleAuth:
    """OAuth credentials for the calendar API, cached in ``token.json``.

    The consent flow only runs when there is no usable cached token: missing,
    unreadable, lacking a calendar scope, or expired without a refresh token.
    """

    def __init__(
        self,
        secrets_path: str | Path = CLIENT_SECRET_PATH,
        token_path: str | Path = TOKEN_PATH,
        scopes: Sequence[str] = SCOPES,
    ):
        self.secrets_path = Path(secrets_path)
        self.token_path = Path(token_path)
        self.scopes = list(scopes)
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        self.creds: Optional[Credentials] = None
        self.logger = get_logger("google")

    @property
    def connected(self) -> bool:
        return bool(self.creds and self.creds.valid and self._covers_scopes(self.creds))

    def ensure_credentials(self) -> bool:
        if self.connected:
            return True

        creds = self.creds or self._load_cached()
        if creds is not None and not self._covers_scopes(creds):
            self.logger.info("Cached token lacks calendar scopes; asking for consent again")
            creds = None
        if creds is not None and not creds.valid:
            creds = self._refresh(creds)
        if creds is None:
            creds = self._run_consent_flow()

        if not self._covers_scopes(creds):
            raise RuntimeError("Google authorization is missing required calendar scopes")

        self.creds = creds
        self._persist(creds)
        self._log_scopes(creds.scopes)
        return True

    def get_credentials(self) -> Optional[Credentials]:
        return self.creds

    def reset_credentials(self) -> None:
        """Forget the cached token so the next ``ensure_credentials`` asks again."""

        self.creds = None
        try:
            self.token_path.unlink()
            self.logger.info("Removed cached Google token")
        except FileNotFoundError:
            pass
        except OSError as exc:
            self.logger.warning("Could not remove cached token: %s", exc)

    # ----- steps -----
    def _load_cached(self) -> Optional[Credentials]:
        if not self.token_path.exists():
            return None
        try:
            return Credentials.from_authorized_user_file(str(self.token_path), self.scopes)
        except (ValueError, json.JSONDecodeError) as exc:
            self.logger.warning("Unreadable %s (%s); re-authorizing", self.token_path.name, exc)
            return None

    def _refresh(self, creds: Credentials) -> Optional[Credentials]:
        if not (creds.expired and creds.refresh_token):
            return None
        try:
            creds.refresh(Request())
        except RefreshError as exc:
            self.logger.warning("Token refresh failed: %s; re-authorizing", exc)
            return None
        return creds

    def _run_consent_flow(self) -> Credentials:
        if not self.secrets_path.exists():
            raise FileNotFoundError(
                f"{self.secrets_path} not found. Create a Desktop OAuth client "
                "in Google Cloud and save its JSON there."
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(self.secrets_path), self.scopes)
        self.logger.info("Running OAuth consent flow (local server)")
        return flow.run_local_server(
            port=0,
            access_type="offline",
            prompt="consent",
            include_granted_scopes=True,
        )

    def _persist(self, creds: Credentials) -> None:
        tmp_path = self.token_path.with_suffix(".tmp")
        try:
            tmp_path.write_text(creds.to_json(), encoding="utf-8")
            os.replace(tmp_path, self.token_path)
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

    def _covers_scopes(self, creds: Credentials) -> bool:
        granted = set(creds.scopes or [])
        return all(scope in granted for scope in self.scopes)

    def _log_scopes(self, scopes: Iterable[str] | None) -> None:
        names = sorted(set(scopes or []))
        self.logger.info("Active scopes: %s", ", ".join(names) if names else "-")


__all__ = ["GoogleAuth", "SCOPES"]
