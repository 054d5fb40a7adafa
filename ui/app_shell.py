# ui/app_shell.py
from __future__ import annotations

import asyncio
import flet as ft

from core.logs import get_logger
from core.settings import GOOGLE_SYNC, UI

# pages
from .pages.day_view import DayViewPage
from .pages.settings import SettingsPage
from .grid_metrics import GridMetrics
from .grid_renderer import FletGridRenderer

# services
from services.calibration import CalibrationSession, CalibrationStore
from services.duplicates import DuplicateRegistry
from services.event_mover import MoveCoordinator
from services.google_auth import GoogleAuth
from services.google_calendar import GoogleCalendar


class AppShell:
    def __init__(self, page: ft.Page):
        self.page = page
        self.logger = get_logger("app")

        self.page.title = UI.app_title
        self.page.horizontal_alignment = ft.CrossAxisAlignment.STRETCH
        self.page.vertical_alignment = ft.MainAxisAlignment.START
        self.page.on_keyboard_event = self._on_keyboard

        # --- Google (before the pages) ---
        self.auth = GoogleAuth()
        self.gcal = GoogleCalendar(self.auth)

        # --- calibration: one store per process, loaded once ---
        self.calibration_store = CalibrationStore()
        self.calibration_store.load()
        self.grid_renderer = FletGridRenderer(GOOGLE_SYNC.calendars)
        self.grid_metrics = GridMetrics(self.grid_renderer)
        self.calibration_session = CalibrationSession(self.calibration_store, self.grid_metrics)

        # --- moves ---
        self.duplicates = DuplicateRegistry()
        self.mover = MoveCoordinator(self.gcal, on_duplicate=self.duplicates.record)

        # --- pages ---
        self._day = DayViewPage(self)
        self._settings = SettingsPage(self)
        self._views = {"day": 0, "settings": 1}

        self.content = ft.Container(expand=True)

        self.nav = ft.NavigationRail(
            selected_index=0,
            label_type=ft.NavigationRailLabelType.ALL,
            min_width=90,
            min_extended_width=200,
            group_alignment=-0.9,
            on_change=self.on_nav_change,
            destinations=[
                ft.NavigationRailDestination(
                    icon=ft.Icons.VIEW_DAY_OUTLINED,
                    selected_icon=ft.Icons.VIEW_DAY,
                    label="Day",
                ),
                ft.NavigationRailDestination(
                    icon=ft.Icons.SETTINGS_OUTLINED,
                    selected_icon=ft.Icons.SETTINGS,
                    label="Settings",
                ),
            ],
        )

        self.root = ft.Row(
            controls=[
                ft.Container(self.nav, width=88, bgcolor=UI.theme.safe_surface_bg),
                ft.VerticalDivider(width=1),
                self.content,
            ],
            expand=True,
            spacing=0,
        )

        self._auto_task: asyncio.Task | None = None
        self._active_view: str | None = None

    # ---------- utilities ----------
    def _has_open_overlay(self) -> bool:
        return any(getattr(c, "open", False) for c in (self.page.overlay or []))

    def _on_keyboard(self, e: ft.KeyboardEvent):
        if e.key == "Escape" and self.calibration_session.active:
            self.calibration_session.cancel()

    def connect_google(self) -> bool:
        self.auth.ensure_credentials()
        self.gcal.connect()
        return True

    def reconnect_google(self) -> bool:
        return self.gcal.reconnect()

    def _start_auto_refresh(self, view_name: str, refresh_fn):
        """Reload the active view periodically while it stays active."""
        self._stop_auto_refresh()
        self._active_view = view_name
        if not UI.auto_refresh.enabled:
            return

        async def _loop():
            while self._active_view == view_name:
                await asyncio.sleep(UI.auto_refresh.interval_sec)
                if self._active_view != view_name:
                    break
                # never re-render under an open dialog, a drag or a calibration
                if self._has_open_overlay() or self.calibration_session.active or self._day._drag:
                    continue
                try:
                    refresh_fn()
                except Exception as e:
                    self.logger.warning("auto refresh failed: %s", e)

        self._auto_task = self.page.run_task(_loop)

    def _stop_auto_refresh(self):
        if self._auto_task:
            self._auto_task.cancel()
        self._auto_task = None
        self._active_view = None

    # ---------- mounting ----------
    def mount(self):
        self.page.controls.clear()
        self.page.add(self.root)
        self.content.content = self._day.view
        self.page.update()

        if GOOGLE_SYNC.enabled:
            try:
                self.connect_google()
            except Exception as e:
                self.logger.warning("Google connect failed: %s", e)
        self._day.load()
        self._start_auto_refresh("day", self._day.load)

    # ---------- navigation ----------
    def show_view(self, name: str):
        self.nav.selected_index = self._views[name]
        self._activate(name)

    def on_nav_change(self, e: ft.ControlEvent):
        idx = int(e.control.selected_index)
        self._activate("day" if idx == 0 else "settings")

    def _activate(self, name: str):
        if name == "day":
            self.content.content = self._day.view
            self._day.load()
            self._start_auto_refresh("day", self._day.load)
        else:
            # leaving the grid ends any pending calibration
            self.calibration_session.cancel()
            self.content.content = self._settings.view
            self._stop_auto_refresh()
            self._settings.refresh_status()
        self.page.update()
