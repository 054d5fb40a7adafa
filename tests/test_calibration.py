import json

import pytest

from core.errors import InvalidOffset
from helpers.time_mapper import CalendarTime, pixel_to_time
from services.calibration import CalibrationSession, CalibrationStore, SessionState
from storage.kv_store import KeyValueStore
from ui.grid_metrics import GridMetrics

KEY = "calibration.offset_px"


class FakeRenderer:
    """Grid with fixed geometry; columns are 100px wide starting at x=0."""

    def __init__(self, *, top=100.0, scroll=0.0, hour=64.0, start=0, columns=("work", "home")):
        self.top = top
        self.scroll = scroll
        self.hour = hour
        self.start = start
        self.columns = list(columns)

    def column_at(self, client_x, client_y):
        idx = int(client_x // 100)
        if client_x < 0 or idx >= len(self.columns):
            return None
        return self.columns[idx]

    def grid_top(self):
        return self.top

    def scroll_top(self):
        return self.scroll

    def hour_height(self):
        return self.hour

    def visible_hour_start(self):
        return self.start


class BrokenKV:
    def get(self, key):
        raise OSError("disk gone")

    def set(self, key, value):
        raise OSError("disk gone")


@pytest.fixture()
def kv(tmp_path):
    return KeyValueStore(tmp_path / "settings.json")


@pytest.fixture()
def store(kv):
    s = CalibrationStore(kv, key=KEY)
    s.load()
    return s


def _session(store, **geometry):
    renderer = FakeRenderer(**geometry)
    return CalibrationSession(store, GridMetrics(renderer)), renderer


# ----- store -----
def test_load_defaults_to_zero_when_absent(store):
    assert store.offset == 0.0


@pytest.mark.parametrize("raw", ["abc", "", "nan", "inf", "-inf"])
def test_load_ignores_garbage(kv, raw):
    kv.set(KEY, raw)
    assert CalibrationStore(kv, key=KEY).load() == 0.0


def test_load_survives_corrupt_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert CalibrationStore(KeyValueStore(path), key=KEY).load() == 0.0


def test_load_survives_unreadable_storage():
    assert CalibrationStore(BrokenKV(), key=KEY).load() == 0.0


@pytest.mark.parametrize("value", [-384.0, 0.0, 12.75, -0.001, 1e6])
def test_set_persists_across_reload(kv, store, value):
    store.set(value)
    assert store.offset == value
    assert CalibrationStore(kv, key=KEY).load() == value
    assert store.reload() == value


def test_value_is_stored_as_string(tmp_path, store):
    store.set(-12.5)
    data = json.loads((tmp_path / "settings.json").read_text(encoding="utf-8"))
    assert data[KEY] == "-12.5"


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), "abc", None])
def test_set_rejects_non_finite_and_keeps_prior(kv, store, bad):
    store.set(7.0)
    with pytest.raises(InvalidOffset):
        store.set(bad)
    assert store.offset == 7.0
    assert CalibrationStore(kv, key=KEY).load() == 7.0


def test_reset_is_idempotent(kv, store):
    store.set(-99.0)
    store.reset()
    once = (store.offset, kv.get(KEY))
    store.reset()
    assert (store.offset, kv.get(KEY)) == once == (0.0, "0.0")


def test_write_failure_still_applies_in_memory():
    store = CalibrationStore(BrokenKV(), key=KEY)
    store.set(42.0)
    assert store.offset == 42.0


def test_listeners_see_new_offset(store):
    seen = []
    store.subscribe(seen.append)
    store.set(3.5)
    store.reset()
    store.unsubscribe(seen.append)
    store.set(1.0)
    assert seen == [3.5, 0.0]


# ----- session -----
def test_session_lifecycle_and_notifications(store):
    session, _ = _session(store)
    states = []
    session.subscribe(states.append)

    assert session.state is SessionState.INACTIVE
    session.begin()
    assert session.active
    session.cancel()
    assert session.state is SessionState.INACTIVE
    assert states == [SessionState.ACTIVE, SessionState.INACTIVE]


def test_click_ignored_when_inactive(store):
    session, _ = _session(store)
    assert session.handle_click(50, 300) is False
    assert store.offset == 0.0


def test_cancel_does_not_touch_store(store):
    store.set(11.0)
    session, _ = _session(store)
    session.begin()
    session.cancel()
    assert store.offset == 11.0


def test_last_offset_only_set_by_a_committed_click(store):
    session, _ = _session(store)
    seen = []
    session.subscribe(lambda state: seen.append((state, session.last_offset)))

    session.begin()
    session.handle_click(50, 110)
    assert session.last_offset == -10.0

    session.begin()
    session.cancel()
    assert session.last_offset is None
    assert store.offset == -10.0
    assert seen == [
        (SessionState.ACTIVE, None),
        (SessionState.INACTIVE, -10.0),
        (SessionState.ACTIVE, None),
        (SessionState.INACTIVE, None),
    ]


def test_click_outside_columns_keeps_session_active(store):
    session, _ = _session(store)
    session.begin()
    assert session.handle_click(-10, 300) is True
    assert session.handle_click(10_000, 300) is True
    assert session.active
    assert store.offset == 0.0


def test_unmeasured_grid_keeps_session_active(store):
    session, renderer = _session(store)
    renderer.hour = None
    session.begin()
    assert session.handle_click(50, 300) is True
    assert session.active
    assert store.offset == 0.0


def test_visible_hour_start_example(store):
    session, _ = _session(store, top=100.0, scroll=0.0, hour=64.0, start=6)
    session.begin()
    # click right at the grid top: raw relative y is 0
    assert session.handle_click(50, 100.0) is True
    assert store.offset == -384.0
    assert session.state is SessionState.INACTIVE


@pytest.mark.parametrize(
    "geometry, click_y",
    [
        (dict(top=100.0, scroll=0.0, hour=64.0, start=0), 107.3),
        (dict(top=55.5, scroll=812.25, hour=41.7, start=0), 20.0),
        (dict(top=80.0, scroll=150.0, hour=48.0, start=7), 233.9),
        (dict(top=0.0, scroll=0.0, hour=60.0, start=6), 612.0),
    ],
)
def test_calibration_is_exact_at_midnight(store, geometry, click_y):
    session, renderer = _session(store, **geometry)
    session.begin()
    session.handle_click(150, click_y)

    snapshot = GridMetrics(renderer).snapshot(150, click_y)
    assert pixel_to_time(click_y, snapshot, store.offset) == CalendarTime(0, 0)


def test_new_offset_ignores_previous_offset(store):
    session, _ = _session(store, start=6)
    store.set(250.0)
    session.begin()
    session.handle_click(50, 100.0)
    assert store.offset == -384.0


def test_offset_applies_to_later_conversions(store):
    session, renderer = _session(store, top=100.0, scroll=0.0, hour=64.0, start=0)
    session.begin()
    # the user sees midnight 10px below where the math puts it
    session.handle_click(50, 110.0)
    assert store.offset == -10.0

    snapshot = GridMetrics(renderer).snapshot(50, 110.0 + 9 * 64)
    assert pixel_to_time(110.0 + 9 * 64, snapshot, store.offset) == CalendarTime(9, 0)
