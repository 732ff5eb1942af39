from __future__ import annotations

import copy
import json
import sqlite3
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Protocol

from .logging import log_error
from .utils import now_utc_iso

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
"""

# (changes, area_name); changes maps key -> {"oldValue": ..., "newValue": ...}
ChangeListener = Callable[[Dict[str, Dict[str, Any]], str], None]


class StorageError(RuntimeError):
    pass


class KeyValueStore(Protocol):
    area_name: str

    def get(self, keys: Iterable[str]) -> Dict[str, Any]: ...

    def set(self, items: Dict[str, Any]) -> None: ...

    def remove(self, keys: Iterable[str]) -> None: ...

    def add_listener(self, listener: ChangeListener) -> None: ...


def _as_keys(keys: Iterable[str] | str) -> List[str]:
    if isinstance(keys, str):
        return [keys]
    return [k for k in keys if k]


class _Listeners:
    def __init__(self) -> None:
        self._listeners: List[ChangeListener] = []

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _emit(self, changes: Dict[str, Dict[str, Any]], area_name: str) -> None:
        if not changes:
            return
        for listener in list(self._listeners):
            listener(changes, area_name)


class SqliteStore(_Listeners):
    """Persistent store: one JSON document per key in a SQLite table."""

    area_name = "local"

    def __init__(self, path: str) -> None:
        super().__init__()
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self.path = path
        try:
            self.conn = sqlite3.connect(path)
            self.conn.execute("PRAGMA journal_mode=DELETE;")
            self.conn.execute("PRAGMA synchronous=FULL;")
            self.conn.executescript(SCHEMA_SQL)
            self.conn.commit()
        except sqlite3.Error as ex:
            raise StorageError(f"Cannot open store {path}: {ex}") from ex

    def close(self) -> None:
        self.conn.close()

    def get(self, keys: Iterable[str] | str) -> Dict[str, Any]:
        ks = _as_keys(keys)
        if not ks:
            return {}
        placeholders = ",".join(["?"] * len(ks))
        try:
            cur = self.conn.execute(
                f"SELECT key, value FROM kv WHERE key IN ({placeholders})", ks
            )
            rows = cur.fetchall()
        except sqlite3.Error as ex:
            log_error("store_read_failed", path=self.path, keys=ks, error=str(ex))
            raise StorageError(f"Read failed for {ks}: {ex}") from ex
        try:
            return {k: json.loads(v) for k, v in rows}
        except ValueError as ex:
            log_error("store_value_corrupt", path=self.path, keys=ks, error=str(ex))
            raise StorageError(f"Corrupt value for {ks}: {ex}") from ex

    def set(self, items: Dict[str, Any]) -> None:
        if not items:
            return
        old = self.get(list(items))
        now = now_utc_iso()
        try:
            with self.conn:
                self.conn.executemany(
                    "INSERT OR REPLACE INTO kv(key, value, updated_at) VALUES (?, ?, ?)",
                    [(k, json.dumps(v, ensure_ascii=False), now) for k, v in items.items()],
                )
        except (sqlite3.Error, TypeError, ValueError) as ex:
            log_error("store_write_failed", path=self.path, keys=list(items), error=str(ex))
            raise StorageError(f"Write failed for {list(items)}: {ex}") from ex
        self._emit(
            {k: {"oldValue": old.get(k), "newValue": copy.deepcopy(v)} for k, v in items.items()},
            self.area_name,
        )

    def remove(self, keys: Iterable[str] | str) -> None:
        ks = _as_keys(keys)
        if not ks:
            return
        old = self.get(ks)
        placeholders = ",".join(["?"] * len(ks))
        try:
            with self.conn:
                self.conn.execute(f"DELETE FROM kv WHERE key IN ({placeholders})", ks)
        except sqlite3.Error as ex:
            log_error("store_remove_failed", path=self.path, keys=ks, error=str(ex))
            raise StorageError(f"Remove failed for {ks}: {ex}") from ex
        self._emit({k: {"oldValue": v, "newValue": None} for k, v in old.items()}, self.area_name)


class MemoryStore(_Listeners):
    """Session store: lives as long as the process."""

    area_name = "session"

    def __init__(self) -> None:
        super().__init__()
        self._data: Dict[str, Any] = {}

    def get(self, keys: Iterable[str] | str) -> Dict[str, Any]:
        return {k: copy.deepcopy(self._data[k]) for k in _as_keys(keys) if k in self._data}

    def set(self, items: Dict[str, Any]) -> None:
        changes = {}
        for k, v in items.items():
            changes[k] = {"oldValue": self._data.get(k), "newValue": copy.deepcopy(v)}
            self._data[k] = copy.deepcopy(v)
        self._emit(changes, self.area_name)

    def remove(self, keys: Iterable[str] | str) -> None:
        changes = {}
        for k in _as_keys(keys):
            if k in self._data:
                changes[k] = {"oldValue": self._data.pop(k), "newValue": None}
        self._emit(changes, self.area_name)
