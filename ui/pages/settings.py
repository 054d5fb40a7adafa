# ui/pages/settings.py
import flet as ft

from core.logs import read_log_tail
from services.calibration import SessionState
from ui.dialogs import toast


class SettingsPage:
    def __init__(self, app):
        self.app = app
        self.store = app.calibration_store
        self.session = app.calibration_session
        self.duplicates = app.duplicates

        self.offset_text = ft.Text()
        self.session_text = ft.Text()
        self.store.subscribe(lambda _offset: self._refresh_calibration())
        self.session.subscribe(lambda _state: self._refresh_calibration())

        self.calibrate_btn = ft.ElevatedButton(
            "Calibrate",
            icon=ft.Icons.STRAIGHTEN,
            on_click=self.start_calibration,
        )
        self.reset_btn = ft.OutlinedButton(
            "Reset calibration",
            icon=ft.Icons.RESTART_ALT,
            on_click=self.reset_calibration,
        )
        self.connect_btn = ft.OutlinedButton(
            "Reconnect Google",
            icon=ft.Icons.LINK,
            on_click=self.connect_google,
        )
        self.refresh_log_btn = ft.TextButton(
            "Refresh log",
            icon=ft.Icons.ARTICLE,
            on_click=self.refresh_log,
        )

        self.duplicates_list = ft.Column(spacing=6)
        self.log_view = ft.Text("", selectable=True, size=12)

        content = ft.Column(
            controls=[
                ft.Text("Settings", size=24, weight=ft.FontWeight.BOLD),
                ft.Text("Click calibration", size=18, weight=ft.FontWeight.W_600),
                self.offset_text,
                self.session_text,
                ft.Row([self.calibrate_btn, self.reset_btn, self.connect_btn], spacing=12),
                ft.Text("Duplicates to clean up", size=18, weight=ft.FontWeight.W_600),
                self.duplicates_list,
                ft.Column([
                    ft.Text("Log", size=18, weight=ft.FontWeight.W_600),
                    ft.Container(self.log_view, height=200, padding=10, bgcolor=ft.Colors.SURFACE_CONTAINER_HIGHEST),
                    self.refresh_log_btn,
                ], spacing=8),
            ],
            expand=True,
            spacing=16,
            scroll=ft.ScrollMode.ADAPTIVE,
        )

        self.view = ft.Container(content=content, expand=True, padding=20)
        self.refresh_status()

    def _refresh_calibration(self):
        self.offset_text.value = f"Current offset: {self.store.offset:+.2f} px"
        active = self.session.state is SessionState.ACTIVE
        self.session_text.value = (
            "Waiting for a click on the 00:00 line in the day view…" if active else ""
        )
        self.calibrate_btn.disabled = active

    def _refresh_duplicates(self):
        rows = []
        for dup in self.duplicates.list_open():
            rows.append(
                ft.Row(
                    [
                        ft.Icon(ft.Icons.CONTENT_COPY, size=16),
                        ft.Text(
                            f"{dup.summary or '(no title)'}: in {dup.source_calendar} and {dup.target_calendar} "
                            f"({dup.created_at:%Y-%m-%d %H:%M} UTC)",
                            expand=True,
                        ),
                        ft.TextButton(
                            "Mark resolved",
                            on_click=lambda e, rid=dup.id: self.resolve_duplicate(rid),
                        ),
                    ]
                )
            )
        if not rows:
            rows.append(ft.Text("None", color=ft.Colors.ON_SURFACE_VARIANT))
        self.duplicates_list.controls = rows

    def refresh_status(self):
        self._refresh_calibration()
        self._refresh_duplicates()
        self.log_view.value = read_log_tail()

    def start_calibration(self, _):
        self.app.show_view("day")
        self.session.begin()

    def reset_calibration(self, _):
        self.session.cancel()
        self.store.reset()
        toast(self.app.page, "Calibration reset")

    def resolve_duplicate(self, record_id: int):
        self.duplicates.resolve(record_id)
        self._refresh_duplicates()
        self.app.page.update()

    def connect_google(self, _):
        try:
            self.app.reconnect_google()
            toast(self.app.page, "Google connected")
        except Exception as e:
            self.app.logger.warning("Google connect failed: %s", e)
            toast(self.app.page, f"Error: {e}")

    def refresh_log(self, _):
        self.log_view.value = read_log_tail()
        self.app.page.update()
