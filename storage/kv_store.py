"""Durable string key-value slots backed by a single JSON file."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from core.settings import KV_PATH


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _load_raw(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


class KeyValueStore:
    """Every write rewrites the whole file through a temp file + replace."""

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path or KV_PATH)

    def get(self, key: str) -> Optional[str]:
        value = _load_raw(self.path).get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        data = _load_raw(self.path)
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = _load_raw(self.path)
        if data.pop(key, None) is not None:
            self._save(data)

    def _save(self, data: Dict[str, Any]) -> None:
        _ensure_parent(self.path)
        payload = json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True)
        tmp = self.path.with_suffix(".tmp")
        try:
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(self.path)
        finally:
            if tmp.exists():
                try:
                    tmp.unlink()
                except OSError:
                    pass


__all__ = ["KeyValueStore"]
