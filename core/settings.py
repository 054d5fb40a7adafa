"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``."""

    platform_id = (platform or sys.platform).lower()
    environ = dict(os.environ if env is None else env)
    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = Path(environ.get("APPDATA") or home_dir / "Library" / "Application Support")
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return (base.expanduser() / sanitized)


APP_NAME = "DayGrid"


DATA_DIR = get_default_data_dir(APP_NAME)
STORAGE_DIR = DATA_DIR / "storage"
SECRETS_DIR = DATA_DIR / "secrets"
LOG_DIR = DATA_DIR / "logs"

for _dir in (DATA_DIR, STORAGE_DIR, SECRETS_DIR, LOG_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


DB_PATH = DATA_DIR / "app.db"
KV_PATH = STORAGE_DIR / "settings.json"
TOKEN_PATH = DATA_DIR / "token.json"
CLIENT_SECRET_PATH = SECRETS_DIR / "client_secret.json"
LOG_PATH = LOG_DIR / "daygrid.log"


@dataclass(frozen=True)
class ThemeColors:
    safe_surface_bg: str = "#F1F5F9"
    outline: str = "#E5E7EB"
    text_subtle: str = "#6B7280"
    now_line: str = "#EF4444"
    chip: str = "#E0E7FF"
    chip_text: str = "#1F2937"
    preview: str = "#A5B4FC"
    banner_bg: str = "#FEF3C7"


@dataclass(frozen=True)
class CalendarUISettings:
    # first hour rendered at the top of the grid
    visible_hour_start: int = 0
    visible_hour_end: int = 24
    hour_row_height: int = 64
    column_width: int = 220
    hours_column_width: int = 76
    header_height: int = 54
    snap_minutes: int = 15
    default_duration_minutes: int = 60
    dialog_width: int = 460


@dataclass(frozen=True)
class AutoRefreshSettings:
    enabled: bool = True
    interval_sec: int = 60


@dataclass(frozen=True)
class UISettings:
    app_title: str = APP_NAME
    theme_mode: str = "system"
    color_scheme_seed: str = "#4F46E5"
    window_min_width: int = 900
    window_min_height: int = 600
    theme: ThemeColors = ThemeColors()
    calendar: CalendarUISettings = CalendarUISettings()
    auto_refresh: AutoRefreshSettings = AutoRefreshSettings()


UI = UISettings()


@dataclass(frozen=True)
class CalibrationSettings:
    storage_key: str = "calibration.offset_px"
    kv_path: Path = KV_PATH


CALIBRATION = CalibrationSettings()


@dataclass(frozen=True)
class GoogleSyncSettings:
    enabled: bool = True
    scopes: tuple[str, ...] = (
        "https://www.googleapis.com/auth/calendar",
        "https://www.googleapis.com/auth/calendar.events",
    )
    # calendars rendered side by side in the day view, one column each
    calendars: tuple[str, ...] = ("primary",)
    max_results: int = 250


GOOGLE_SYNC = GoogleSyncSettings()


@dataclass(frozen=True)
class LoggingSettings:
    path: Path = LOG_PATH
    max_bytes: int = 1_000_000
    backup_count: int = 3
    level: str = "INFO"


LOGGING = LoggingSettings()


__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "STORAGE_DIR",
    "SECRETS_DIR",
    "LOG_DIR",
    "DB_PATH",
    "KV_PATH",
    "TOKEN_PATH",
    "CLIENT_SECRET_PATH",
    "LOG_PATH",
    "UI",
    "CALIBRATION",
    "GOOGLE_SYNC",
    "LOGGING",
    "get_default_data_dir",
]
