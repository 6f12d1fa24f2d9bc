from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from xiboard.core.errors import PersistenceError, StorageFullError
from xiboard.persistence.migrations import MigrationRunner

logger = logging.getLogger(__name__)


def encode_record(key: str, value: Any) -> str:
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise PersistenceError(key, f"value is not JSON serializable: {exc}") from exc


def decode_record(key: str, text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        raise PersistenceError(key, f"stored value is not valid JSON: {exc}") from exc


def record_size(key: str, text: str) -> int:
    return len(key.encode("utf-8")) + len(text.encode("utf-8"))


class InMemoryGateway:
    """Key/value store with a byte quota, shaped like browser local storage."""

    def __init__(self, max_bytes: int | None = None) -> None:
        self.max_bytes = max_bytes
        self._records: dict[str, str] = {}

    def load(self, key: str) -> Any | None:
        text = self._records.get(key)
        if text is None:
            return None
        return decode_record(key, text)

    def save(self, key: str, value: Any) -> None:
        text = encode_record(key, value)
        if self.max_bytes is not None:
            used = sum(record_size(k, v) for k, v in self._records.items() if k != key)
            if used + record_size(key, text) > self.max_bytes:
                raise StorageFullError(key, f"quota {self.max_bytes} bytes")
        self._records[key] = text

    def remove(self, key: str) -> None:
        self._records.pop(key, None)

    def used_bytes(self) -> int:
        return sum(record_size(k, v) for k, v in self._records.items())


class SqliteGateway:
    def __init__(self, db_path: Path, max_bytes: int | None = None) -> None:
        self.db_path = db_path
        self.max_bytes = max_bytes
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.connect() as conn:
            MigrationRunner(conn).apply()

    def connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def load(self, key: str) -> Any | None:
        try:
            with self.connect() as conn:
                row = conn.execute("SELECT value_json FROM kv_records WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(key, str(exc)) from exc
        if row is None:
            return None
        return decode_record(key, row[0])

    def save(self, key: str, value: Any) -> None:
        text = encode_record(key, value)
        try:
            with self.connect() as conn:
                if self.max_bytes is not None:
                    used = conn.execute(
                        """
                        SELECT COALESCE(SUM(LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value_json AS BLOB))), 0)
                        FROM kv_records WHERE key != ?
                        """,
                        (key,),
                    ).fetchone()[0]
                    if int(used) + record_size(key, text) > self.max_bytes:
                        raise StorageFullError(key, f"quota {self.max_bytes} bytes")
                conn.execute(
                    """
                    INSERT INTO kv_records(key, value_json, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET value_json = excluded.value_json, updated_at = excluded.updated_at
                    """,
                    (key, text),
                )
        except sqlite3.OperationalError as exc:
            if "full" in str(exc).lower():
                raise StorageFullError(key, str(exc)) from exc
            raise PersistenceError(key, str(exc)) from exc
        except sqlite3.Error as exc:
            raise PersistenceError(key, str(exc)) from exc

    def remove(self, key: str) -> None:
        try:
            with self.connect() as conn:
                conn.execute("DELETE FROM kv_records WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise PersistenceError(key, str(exc)) from exc

    def keys(self) -> list[str]:
        with self.connect() as conn:
            return [row[0] for row in conn.execute("SELECT key FROM kv_records ORDER BY key").fetchall()]
