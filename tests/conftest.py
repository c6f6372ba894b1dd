"""Shared fixtures for hunter-swarm tests."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest
import structlog

from hunter_swarm.config import (
    ConcurrencyConfig,
    DatabaseConfig,
    FailurePolicy,
    SourceSettings,
    SwarmConfig,
    TargetsConfig,
)
from hunter_swarm.engine.sink import SQLiteSink
from hunter_swarm.records import CandidateRecord

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def swarm_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("HUNTER_SWARM_HOME", str(tmp_path))
    monkeypatch.delenv("HUNTER_SWARM_INSIGHT_API_KEY", raising=False)
    return tmp_path


@pytest.fixture
def quiet_logger() -> structlog.BoundLogger:
    return structlog.get_logger("tests")


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def make_candidate() -> Callable[..., CandidateRecord]:
    def _builder(**overrides: Any) -> CandidateRecord:
        base: dict[str, Any] = {
            "name": "Maple Solutions Inc.",
            "city": "Toronto",
            "province": "ON",
            "source": "directory",
        }
        base.update(overrides)
        return CandidateRecord(**base)

    return _builder


@pytest.fixture
def sqlite_sink(tmp_path: Path) -> Iterable[SQLiteSink]:
    sink = SQLiteSink(tmp_path / "swarm.db")
    yield sink
    sink.close()


@pytest.fixture
def swarm_config() -> SwarmConfig:
    """Small, fast campaign: no waiting on rate limits or retries."""

    def _source(**overrides: Any) -> SourceSettings:
        base: dict[str, Any] = {
            "retry_backoff": 0.0,
            "max_retries": 2,
            "failure_policy": FailurePolicy.SUBSTITUTE,
        }
        base.update(overrides)
        return SourceSettings(**base)

    return SwarmConfig(
        targets=TargetsConfig(priority=5, government=5, per_industry=5, general=10),
        concurrency=ConcurrencyConfig(workers=4, rate_limit=1000, persistence_workers=2),
        database=DatabaseConfig(batch_size=4, page_size=3),
        sources={
            "directory": _source(url="https://directory.example/listings", use_browser=False),
            "government": _source(),
            "yellowpages": _source(),
        },
        mandated_industries=["Construction", "Consulting"],
        general_chunk_size=4,
    )
