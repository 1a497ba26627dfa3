from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock

from app.application.ports.key_value_store_port import KeyValueStorePort
from app.infrastructure.db.engine import get_engine
from app.infrastructure.storage.sql_key_value_store import SqlKeyValueStore


logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(KeyValueStorePort):
    def __init__(self, initial: dict[str, str] | None = None):
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)


class JsonFileKeyValueStore(KeyValueStorePort):
    """Keeps string values in a JSON file so they survive restarts.

    No cross-process locking: concurrent writers are last-write-wins.
    """

    def __init__(self, path: Path | str):
        self._path = Path(path)
        self._lock = Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            values = self._read()
            values[key] = value
            self._write(values)

    def remove(self, key: str) -> None:
        with self._lock:
            values = self._read()
            if values.pop(key, None) is not None:
                self._write(values)

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except ValueError:
            logger.warning("key_value_store: unreadable_file path=%s, starting empty", self._path)
            return {}
        if not isinstance(payload, dict):
            return {}
        return {str(key): str(value) for key, value in payload.items()}

    def _write(self, values: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(values, indent=2, sort_keys=True), encoding="utf-8")


def build_key_value_store(settings, *, namespace: str) -> KeyValueStorePort:
    """Pick the retained-session backend from settings: SQL, then JSON file, then memory."""
    if settings.checkout_session_store_dsn:
        store = SqlKeyValueStore(get_engine(settings.checkout_session_store_dsn), namespace=namespace)
        store.ensure_schema()
        return store
    if settings.checkout_session_store_path:
        return JsonFileKeyValueStore(Path(settings.checkout_session_store_path) / f"{namespace}.json")
    return InMemoryKeyValueStore()
