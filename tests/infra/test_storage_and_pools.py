from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from hunter_swarm.infra import SQLiteManager, UserAgentPool
from hunter_swarm.infra.ua_pool import DEFAULT_USER_AGENTS


def test_sqlite_manager_caches_and_releases(tmp_path: Path) -> None:
    manager = SQLiteManager()
    path = tmp_path / "nested" / "swarm.db"

    conn = manager.connect(path)
    assert manager.connect(path) is conn
    assert path.parent.is_dir()
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.commit()

    manager.release(path)
    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")
    assert manager.connect(path) is not conn
    manager.close_all()


def test_sqlite_manager_reset_removes_files(tmp_path: Path) -> None:
    manager = SQLiteManager()
    path = tmp_path / "swarm.db"
    manager.connect(path).execute("CREATE TABLE t (x INTEGER)")

    manager.reset(path)

    assert not path.exists()
    assert not path.with_name("swarm.db-wal").exists()


def test_user_agent_pool_sources(tmp_path: Path) -> None:
    assert UserAgentPool().get() in DEFAULT_USER_AGENTS

    agents_file = tmp_path / "agents.txt"
    agents_file.write_text("agent-one\n\n  agent-two  \n", encoding="utf-8")
    pool = UserAgentPool(file_path=agents_file)
    assert pool.get() in {"agent-one", "agent-two"}
    assert pool.get("custom-agent") == "custom-agent"

    pool.refresh(["only-agent", " "])
    assert pool.get() == "only-agent"
    pool.refresh([])
    assert pool.get() is None
