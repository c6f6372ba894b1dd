"""SQLite connection management shared by sinks."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Dict


class SQLiteManager:
    """Cache one connection per database file; usable from worker threads."""

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            if path not in self._connections:
                conn = sqlite3.connect(path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA journal_mode=WAL")
                self._connections[path] = conn
            return self._connections[path]

    def release(self, path: Path) -> None:
        with self._lock:
            conn = self._connections.pop(path, None)
        if conn is not None:
            conn.close()

    def reset(self, path: Path) -> None:
        self.release(path)
        for suffix in ("", "-wal", "-shm"):
            candidate = path.with_name(path.name + suffix)
            if candidate.exists():
                candidate.unlink()

    def close_all(self) -> None:
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()


__all__ = ["SQLiteManager"]
