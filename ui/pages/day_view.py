# ui/pages/day_view.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

import flet as ft
import flet.canvas as cv

from core.errors import GridError
from core.logs import get_logger
from core.settings import UI
from helpers.datetime_utils import parse_time_input, resolve_local_timezone
from helpers.time_mapper import (
    CalendarTime,
    GridSnapshot,
    drop_time,
    pixel_to_time,
    preview_top,
    relative_y,
    selection_range,
    time_of,
    to_datetime,
)
from services.calibration import SessionState
from services.event_payload import build_event_payload, copy_payload, event_times, time_block
from services.event_mover import MoveResult
from ui.dialogs import close_alert_dialog, open_alert_dialog, toast

# ===== settings =====
CAL_UI = UI.calendar
THEME = UI.theme

ROW_H = CAL_UI.hour_row_height
COL_W = CAL_UI.column_width
GUTTER_W = CAL_UI.hours_column_width
HEADER_H = CAL_UI.header_height
DEFAULT_DURATION = CAL_UI.default_duration_minutes


@dataclass
class _Drag:
    mode: str  # "move" | "select"
    column: str
    anchor_y: float
    item: Optional[dict] = None
    grab_offset: float = 0.0
    last_x: float = 0.0
    last_y: float = 0.0
    target: Optional[str] = None
    start: Optional[CalendarTime] = None
    end: Optional[CalendarTime] = None


class DayViewPage:
    """
    One column per calendar, hours stacked vertically.
    - click on empty space: quick-add at the clicked time;
    - drag on empty space: select a range, then quick-add;
    - drag an event: reschedule in the same calendar or move to another one;
    - while calibrating, the next click sets the offset instead.
    """

    def __init__(self, app):
        self.app = app
        self.renderer = app.grid_renderer
        self.metrics = app.grid_metrics
        self.session = app.calibration_session
        self.store = app.calibration_store
        self.logger = get_logger("ui")
        self.tz_name = resolve_local_timezone()

        self.day: date = date.today()
        # column -> [{"event": ..., "start": datetime, "end": datetime}]
        self.items: Dict[str, List[dict]] = {}
        self._drag: Optional[_Drag] = None
        self._busy_events: set[str] = set()

        self.session.subscribe(self._on_session_state)
        self.store.subscribe(self._on_offset_changed)

        # ---------- header ----------
        self.title_text = ft.Text("", size=24, weight=ft.FontWeight.BOLD)
        nav = ft.Row(
            [
                ft.IconButton(icon=ft.Icons.CHEVRON_LEFT, tooltip="Previous day", on_click=lambda e: self.shift_day(-1)),
                ft.IconButton(icon=ft.Icons.TODAY, tooltip="Today", on_click=lambda e: self.go_today()),
                ft.IconButton(icon=ft.Icons.CHEVRON_RIGHT, tooltip="Next day", on_click=lambda e: self.shift_day(1)),
            ],
            spacing=6,
        )
        calibrate_btn = ft.OutlinedButton("Calibrate", icon=ft.Icons.STRAIGHTEN, on_click=lambda e: self.session.begin())
        header = ft.Row([nav, self.title_text, calibrate_btn], alignment=ft.MainAxisAlignment.SPACE_BETWEEN)

        self.banner = ft.Container(
            visible=False,
            bgcolor=THEME.banner_bg,
            padding=12,
            border_radius=8,
            content=ft.Row(
                [
                    ft.Icon(ft.Icons.STRAIGHTEN),
                    ft.Text("Calibration: click exactly on the 00:00 line of any calendar column.", expand=True),
                    ft.TextButton("Cancel", on_click=lambda e: self.session.cancel()),
                ]
            ),
        )

        # ---------- grid ----------
        columns = self.renderer.columns
        self.total_w = GUTTER_W + COL_W * len(columns)
        self.total_h = ROW_H * self.renderer.hour_count

        column_header = ft.Row(
            [ft.Container(width=GUTTER_W)]
            + [
                ft.Container(
                    width=COL_W,
                    height=HEADER_H,
                    alignment=ft.alignment.center,
                    content=ft.Text(str(c), weight=ft.FontWeight.W_600, no_wrap=True),
                )
                for c in columns
            ],
            spacing=0,
        )

        self._hour_rows = [self._hour_row(i) for i in range(self.renderer.hour_count)]
        self._measure = cv.Canvas(
            left=0,
            top=0,
            width=self.total_w,
            height=self.total_h,
            on_resize=self._on_canvas_resize,
            resize_interval=100,
        )
        self._chips: List[ft.Control] = []
        self._preview = ft.Container(
            visible=False,
            left=0,
            top=0,
            width=COL_W - 8,
            height=ROW_H / 4,
            bgcolor=ft.Colors.with_opacity(0.55, THEME.preview),
            border_radius=6,
            padding=4,
            content=ft.Text("", size=12),
        )
        self.stack = ft.Stack(width=self.total_w, height=self.total_h)

        self.vscroll = ft.Column(
            [self.stack],
            spacing=0,
            expand=True,
            scroll=ft.ScrollMode.ALWAYS,
            on_scroll=self.renderer.on_scroll,
        )
        self.grid = ft.GestureDetector(
            content=self.vscroll,
            expand=True,
            drag_interval=16,
            on_tap_up=self._on_tap_up,
            on_pan_start=self._on_pan_start,
            on_pan_update=self._on_pan_update,
            on_pan_end=self._on_pan_end,
        )

        self.view = ft.Container(
            content=ft.Column(
                [header, self.banner, ft.Divider(height=1), column_header, self.grid],
                spacing=12,
                expand=True,
            ),
            expand=True,
            padding=20,
        )

        self._render_layers()

    # ===== navigation =====
    def go_today(self):
        self.day = date.today()
        self.load()

    def shift_day(self, delta: int):
        self.day = self.day + timedelta(days=delta)
        self.load()

    def _update(self):
        page = getattr(self.app, "page", None)
        if page is not None:
            page.update()

    # ===== data =====
    def load(self):
        self.title_text.value = self.day.strftime("%A, %d %B %Y")
        self.items = {}
        failed = None
        for column in self.renderer.columns:
            try:
                events = self.app.gcal.list_day(column, self.day, self.tz_name)
            except Exception as ex:
                self.logger.warning("Loading %s failed: %s", column, ex)
                failed = ex
                events = []
            rows = []
            for ev in events:
                if not (ev.get("start") or {}).get("dateTime"):
                    continue  # all-day events have no place on the hour grid
                start, end = event_times(ev, self.tz_name)
                if start and end:
                    rows.append({"event": ev, "start": start, "end": end})
            self.items[column] = rows
        self._render_layers()
        self._update()
        if failed is not None:
            toast(self.app.page, f"Google Calendar unavailable: {failed}")

    # ===== rendering =====
    def _hour_row(self, index: int) -> ft.Control:
        hour = self.renderer.visible_hour_start() + index
        return ft.Container(
            left=0,
            top=index * ROW_H,
            width=self.total_w,
            height=ROW_H,
            border=ft.border.only(top=ft.BorderSide(0.5, THEME.outline)),
            content=ft.Container(
                width=GUTTER_W,
                padding=ft.padding.only(left=8, top=2),
                content=ft.Text(f"{hour % 24:02d}:00", size=12, color=THEME.text_subtle),
            ),
        )

    def _layout(self, column: str) -> Optional[GridSnapshot]:
        try:
            return self.metrics.column_snapshot(column)
        except GridError:
            return None

    def _item_box(self, snapshot: GridSnapshot, item: dict) -> tuple[float, float]:
        offset = self.store.offset
        top = preview_top(time_of(self.day, item["start"]), snapshot, offset)
        bottom = preview_top(time_of(self.day, item["end"]), snapshot, offset)
        return top, max(bottom - top, 18.0)

    def _render_layers(self):
        self._chips = []
        for column, rows in self.items.items():
            snapshot = self._layout(column)
            if snapshot is None:
                continue
            left = self.renderer.column_left(column) + 4
            for item in rows:
                top, height = self._item_box(snapshot, item)
                ev = item["event"]
                self._chips.append(
                    ft.Container(
                        left=left,
                        top=top,
                        width=COL_W - 8,
                        height=height,
                        bgcolor=THEME.chip,
                        border_radius=6,
                        padding=4,
                        opacity=0.5 if ev.get("id") in self._busy_events else 1.0,
                        content=ft.Text(
                            f"{item['start']:%H:%M} {ev.get('summary') or '(no title)'}",
                            size=12,
                            color=THEME.chip_text,
                        ),
                    )
                )
        self.stack.controls = [*self._hour_rows, self._measure, *self._chips, self._preview]

    def _on_canvas_resize(self, e):
        self.renderer.on_canvas_resize(e)
        self._render_layers()
        self._update()

    def _on_offset_changed(self, _offset: float):
        self._render_layers()
        self._update()

    def _on_session_state(self, state: SessionState):
        self.banner.visible = state is SessionState.ACTIVE
        self._update()
        if state is SessionState.INACTIVE and self.session.last_offset is not None:
            toast(self.app.page, f"Calibration offset: {self.session.last_offset:+.1f} px")

    # ===== hit testing =====
    def _item_at(self, snapshot: GridSnapshot, content_y: float) -> Optional[dict]:
        for item in self.items.get(snapshot.column_id, []):
            top, height = self._item_box(snapshot, item)
            if top <= content_y < top + height:
                return item
        return None

    # ===== pointer handlers =====
    def _on_tap_up(self, e: ft.TapEvent):
        self.renderer.note_pointer(e.local_x, e.local_y, e.global_x, e.global_y)
        if self.session.handle_click(e.global_x, e.global_y):
            return
        try:
            snapshot = self.metrics.snapshot(e.global_x, e.global_y)
        except GridError:
            return
        if self._item_at(snapshot, relative_y(e.global_y, snapshot)) is not None:
            return
        start = pixel_to_time(e.global_y, snapshot, self.store.offset)
        self._open_quick_add(snapshot.column_id, start, start.plus_minutes(DEFAULT_DURATION))

    def _on_pan_start(self, e: ft.DragStartEvent):
        self.renderer.note_pointer(e.local_x, e.local_y, e.global_x, e.global_y)
        self._drag = None
        if self.session.active:
            return
        try:
            snapshot = self.metrics.snapshot(e.global_x, e.global_y)
        except GridError:
            return

        # boxes are drawn in content space, so hit-test with the raw position
        content_y = relative_y(e.global_y, snapshot)
        item = self._item_at(snapshot, content_y)
        if item is not None and item["event"].get("id") not in self._busy_events:
            top, _height = self._item_box(snapshot, item)
            self._drag = _Drag("move", snapshot.column_id, e.global_y, item=item, grab_offset=content_y - top)
        elif item is None:
            self._drag = _Drag("select", snapshot.column_id, e.global_y)
        else:
            return
        self._drag.last_x, self._drag.last_y = e.global_x, e.global_y
        self._update_preview()

    def _on_pan_update(self, e: ft.DragUpdateEvent):
        if self._drag is None:
            return
        self._drag.last_x, self._drag.last_y = e.global_x, e.global_y
        self._update_preview()

    def _update_preview(self):
        drag = self._drag
        try:
            snapshot = self.metrics.snapshot(drag.last_x, drag.last_y)
        except GridError:
            self._preview.visible = False
            drag.start = drag.end = drag.target = None
            self._update()
            return

        offset = self.store.offset
        if drag.mode == "move":
            item = drag.item
            duration = int((item["end"] - item["start"]).total_seconds() // 60)
            start = drop_time(drag.last_y, drag.grab_offset, snapshot, offset)
            end = start.plus_minutes(max(duration, CAL_UI.snap_minutes))
            target = snapshot.column_id
        else:
            start, end = selection_range(drag.anchor_y, drag.last_y, snapshot, offset)
            target = drag.column

        drag.start, drag.end, drag.target = start, end, target
        top = preview_top(start, snapshot, offset)
        self._preview.left = self.renderer.column_left(target) + 4
        self._preview.top = top
        self._preview.height = max(preview_top(end, snapshot, offset) - top, 12.0)
        self._preview.content.value = f"{start} - {end}"
        self._preview.visible = True
        self._update()

    def _on_pan_end(self, e: ft.DragEndEvent):
        drag, self._drag = self._drag, None
        self._preview.visible = False
        self._update()
        if drag is None or drag.start is None or drag.target is None:
            return

        start_dt = to_datetime(self.day, drag.start)
        end_dt = to_datetime(self.day, drag.end)
        if drag.mode == "select":
            self._open_quick_add(drag.target, drag.start, drag.end)
        elif drag.target == drag.column:
            self._reschedule(drag.column, drag.item["event"], start_dt, end_dt)
        else:
            self._move(drag.column, drag.target, drag.item["event"], start_dt, end_dt)

    # ===== writes =====
    def _reschedule(self, column: str, ev: dict, start_dt: datetime, end_dt: datetime):
        body = {"start": time_block(start_dt, self.tz_name), "end": time_block(end_dt, self.tz_name)}
        try:
            self.app.gcal.update_event(column, ev["id"], body)
        except Exception as ex:
            self.logger.warning("Reschedule of %s failed: %s", ev.get("id"), ex)
            toast(self.app.page, f"Could not reschedule: {ex}")
        self.load()

    def _move(self, source: str, target: str, ev: dict, start_dt: datetime, end_dt: datetime):
        event_id = ev.get("id")
        payload = copy_payload(ev, start=start_dt, end=end_dt, tz_name=self.tz_name)
        payload["id"] = event_id
        # no new drag on this event until the move resolves
        self._busy_events.add(event_id)
        self._render_layers()
        self._update()
        try:
            result = self.app.mover.move(source, target, payload)
        finally:
            self._busy_events.discard(event_id)
        self._report_move(result)
        self.load()

    def _report_move(self, result: MoveResult):
        if result.ok:
            toast(self.app.page, f"Moved to {result.request.target_ref}")
            return
        if result.duplicated:
            dlg = None

            def close(_):
                close_alert_dialog(self.app.page, dlg)

            dlg = open_alert_dialog(
                self.app.page,
                title="Event duplicated",
                content=ft.Text(
                    f"\"{result.request.payload.get('summary') or '(no title)'}\" was copied to "
                    f"{result.request.target_ref} but could not be removed from "
                    f"{result.request.source_ref}.\nPlease delete the duplicate manually. "
                    "It is listed under Settings until you mark it resolved."
                ),
                actions=[ft.TextButton("OK", on_click=close)],
            )
            return
        toast(self.app.page, f"Event not moved: {result.error}")

    # ===== quick add =====
    def _open_quick_add(self, column: str, start: CalendarTime, end: CalendarTime):
        start_dt = to_datetime(self.day, start)
        end_dt = to_datetime(self.day, end)
        title_tf = ft.TextField(label="Title", autofocus=True, width=CAL_UI.dialog_width - 40)
        start_tf = ft.TextField(label="Start", value=start_dt.strftime("%H:%M"), width=120)
        end_tf = ft.TextField(label="End", value=end_dt.strftime("%H:%M"), width=120)
        dlg = None

        def on_save(_):
            t_start = parse_time_input(start_tf.value)
            t_end = parse_time_input(end_tf.value)
            if t_start is None or t_end is None:
                return toast(self.app.page, "Use HH:MM for start and end")
            s = datetime.combine(start_dt.date(), t_start)
            f = datetime.combine(start_dt.date(), t_end)
            if f <= s:
                f += timedelta(days=1)
            try:
                body = build_event_payload((title_tf.value or "").strip(), s, f, tz_name=self.tz_name)
                self.app.gcal.create_event(column, body)
            except Exception as ex:
                self.logger.warning("Create in %s failed: %s", column, ex)
                return toast(self.app.page, f"Could not create event: {ex}")
            close_alert_dialog(self.app.page, dlg)
            self.load()

        def on_cancel(_):
            close_alert_dialog(self.app.page, dlg)

        dlg = open_alert_dialog(
            self.app.page,
            title=f"New event - {column}, {start_dt:%a %d.%m}",
            content=ft.Container(
                width=CAL_UI.dialog_width,
                content=ft.Column([title_tf, ft.Row([start_tf, end_tf], spacing=12)], tight=True, spacing=12),
            ),
            actions=[
                ft.TextButton("Cancel", on_click=on_cancel),
                ft.FilledButton("Save", icon=ft.Icons.SAVE, on_click=on_save),
            ],
            modal=False,
        )
