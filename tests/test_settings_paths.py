from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core import settings
from storage.kv_store import KeyValueStore


def test_linux_data_dir_with_xdg():
    env = {"XDG_DATA_HOME": "/tmp/xdg"}
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="linux",
        env=env,
        home=Path("/home/test"),
    )
    assert result == Path("/tmp/xdg") / settings.APP_NAME


def test_linux_data_dir_default_home():
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="linux",
        env={},
        home=Path("/home/test"),
    )
    assert result == Path("/home/test/.local/share") / settings.APP_NAME


def test_macos_data_dir():
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="darwin",
        env={},
        home=Path("/Users/test"),
    )
    expected = Path("/Users/test/Library/Application Support") / settings.APP_NAME
    assert result == expected


def test_windows_data_dir_appdata():
    env = {"APPDATA": "C:/Users/test/AppData/Roaming"}
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="win32",
        env=env,
        home=Path("C:/Users/test"),
    )
    expected = Path(env["APPDATA"]) / settings.APP_NAME
    assert result == expected


def test_runtime_paths_inside_data_dir():
    assert settings.DB_PATH.parent == settings.DATA_DIR
    assert settings.TOKEN_PATH.parent == settings.DATA_DIR
    assert settings.CLIENT_SECRET_PATH.parent == settings.SECRETS_DIR
    assert settings.KV_PATH.parent == settings.STORAGE_DIR
    assert settings.LOG_PATH.parent == settings.LOG_DIR
    assert settings.CALIBRATION.kv_path == settings.KV_PATH


def test_snap_granularity_is_quarter_hour():
    assert settings.UI.calendar.snap_minutes == 15


def test_kv_store_roundtrip_and_delete(tmp_path):
    store = KeyValueStore(tmp_path / "nested" / "kv.json")
    assert store.get("a") is None
    store.set("a", "1.5")
    store.set("b", "x")
    assert KeyValueStore(tmp_path / "nested" / "kv.json").get("a") == "1.5"
    store.delete("a")
    assert store.get("a") is None
    assert store.get("b") == "x"
    assert not (tmp_path / "nested" / "kv.tmp").exists()


def test_kv_store_ignores_non_object_json(tmp_path):
    path = tmp_path / "kv.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert KeyValueStore(path).get("a") is None
