"""Upsert scored/canonical rows into a SQLite table."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Sequence

from ...errors import PersistenceError
from ...infra import SQLiteManager
from .base import BaseSink, BatchResult, RowFailure, Stage

_COLUMNS = (
    "name_key",
    "city_key",
    "record_key",
    "name",
    "city",
    "source",
    "enriched",
    "scored",
    "priority_score",
    "requires_priority_handling",
    "payload",
    "updated_at",
)


class SQLiteSink(BaseSink):
    """Rows stored as JSON payloads with key and stage columns alongside.

    Conflicts on (name_key, city_key) are resolved last-write-wins.
    """

    def __init__(self, path: Path, table: str = "businesses", manager: SQLiteManager | None = None) -> None:
        self.path = path
        self.table = table
        self.manager = manager or SQLiteManager()
        self.conn = self.manager.connect(path)
        self._lock = Lock()
        self._closed = False
        with self._lock:
            self.conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name_key TEXT NOT NULL,
                    city_key TEXT NOT NULL,
                    record_key TEXT NOT NULL,
                    name TEXT NOT NULL,
                    city TEXT,
                    source TEXT,
                    enriched INTEGER NOT NULL DEFAULT 0,
                    scored INTEGER NOT NULL DEFAULT 0,
                    priority_score INTEGER NOT NULL DEFAULT 0,
                    requires_priority_handling INTEGER NOT NULL DEFAULT 0,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE(name_key, city_key)
                )
                """
            )
            self.conn.execute(
                f"CREATE INDEX IF NOT EXISTS ix_{self.table}_stage "
                f"ON {self.table}(enriched, scored, record_key)"
            )
            self.conn.commit()
        columns = ", ".join(_COLUMNS)
        placeholders = ", ".join("?" for _ in _COLUMNS)
        updates = ", ".join(
            f"{col}=excluded.{col}" for col in _COLUMNS if col not in ("name_key", "city_key")
        )
        self._upsert_sql = (
            f"INSERT INTO {self.table}({columns}) VALUES ({placeholders}) "
            f"ON CONFLICT(name_key, city_key) DO UPDATE SET {updates}"
        )

    @staticmethod
    def _params(row: dict[str, Any]) -> tuple[Any, ...]:
        return (
            row["name_key"],
            row["city_key"],
            row["record_key"],
            row["name"],
            row.get("city"),
            row.get("source"),
            int(bool(row.get("enriched"))),
            int(bool(row.get("scored"))),
            int(row.get("priority_score") or 0),
            int(bool(row.get("requires_priority_handling"))),
            json.dumps(row, ensure_ascii=False, default=str),
            datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )

    def upsert_batch(self, rows: Sequence[dict[str, Any]]) -> BatchResult:
        if self._closed:
            raise PersistenceError(f"sink closed: {self.path}")
        result = BatchResult()
        prepared: list[tuple[str, tuple[Any, ...]]] = []
        for row in rows:
            key = str(row.get("record_key", "?"))
            try:
                prepared.append((key, self._params(row)))
            except (KeyError, TypeError, ValueError) as exc:
                result.failures.append(RowFailure(key, f"unserialisable row: {exc}"))
        if not prepared:
            return result
        with self._lock:
            try:
                with self.conn:
                    self.conn.executemany(self._upsert_sql, [params for _, params in prepared])
                result.written += len(prepared)
                return result
            except sqlite3.ProgrammingError as exc:
                raise PersistenceError(f"batch upsert failed: {exc}") from exc
            except sqlite3.Error:
                pass
            # Batch rejected as a whole: retry row by row to isolate the bad rows.
            for key, params in prepared:
                try:
                    with self.conn:
                        self.conn.execute(self._upsert_sql, params)
                    result.written += 1
                except sqlite3.Error as exc:
                    result.failures.append(RowFailure(key, str(exc)))
        if prepared and result.written == 0:
            raise PersistenceError(
                f"batch upsert failed for all {len(prepared)} rows: {result.failures[0].error}"
            )
        return result

    def fetch_pending(
        self, stage: Stage, limit: int, after_key: str | None = None
    ) -> list[dict[str, Any]]:
        if stage == "enrichment":
            condition = "enriched = 0"
        elif stage == "scoring":
            condition = "enriched = 1 AND scored = 0"
        else:
            raise ValueError(f"Unknown stage: {stage}")
        with self._lock:
            rows = self.conn.execute(
                f"SELECT payload FROM {self.table} WHERE {condition} AND record_key > ? "
                "ORDER BY record_key LIMIT ?",
                (after_key or "", limit),
            ).fetchall()
        return [json.loads(row["payload"]) for row in rows]

    def top(self, limit: int = 20) -> list[dict[str, Any]]:
        with self._lock:
            rows = self.conn.execute(
                f"SELECT payload FROM {self.table} "
                "ORDER BY priority_score DESC, record_key LIMIT ?",
                (limit,),
            ).fetchall()
        return [json.loads(row["payload"]) for row in rows]

    def count(self) -> int:
        with self._lock:
            return int(self.conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()[0])

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.manager.release(self.path)


__all__ = ["SQLiteSink"]
