from __future__ import annotations

import logging
from pathlib import Path

import pytest

from hunter_swarm.logging_conf import (
    available_logs,
    configure_logging,
    hunter_logger,
    log_file,
    tail_log,
)


def test_hunter_events_reach_hunter_and_swarm_logs(swarm_home: Path) -> None:
    hunter_logger("government").info("hunt_started", limit=3)

    hunter_text = (swarm_home / "logs" / "hunters" / "government.log").read_text(encoding="utf-8")
    assert "hunt_started" in hunter_text
    assert "government" in hunter_text
    assert "hunt_started" in log_file().read_text(encoding="utf-8")
    assert log_file("government") in list(available_logs())


def test_logs_follow_a_moved_home(
    swarm_home: Path, tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    hunter_logger("yellowpages").info("first_home")
    first = log_file("yellowpages")

    moved = tmp_path_factory.mktemp("moved")
    monkeypatch.setenv("HUNTER_SWARM_HOME", str(moved))
    hunter_logger("yellowpages").info("second_home")

    assert log_file("yellowpages") == moved.resolve() / "logs" / "hunters" / "yellowpages.log"
    assert "second_home" in log_file("yellowpages").read_text(encoding="utf-8")
    assert "second_home" not in first.read_text(encoding="utf-8")


def test_verbosity_is_kept_unless_given() -> None:
    root = logging.getLogger("hunter_swarm")
    try:
        configure_logging(verbose=True)
        configure_logging()
        assert root.level == logging.DEBUG
    finally:
        configure_logging(verbose=False)
    assert root.level == logging.INFO


def test_error_log_and_tail(swarm_home: Path) -> None:
    configure_logging().error("batch_failed", rows=3)

    errors = log_file(errors=True)
    assert errors.name == "error.log"
    assert "batch_failed" in tail_log(errors, 1)[0]
    assert tail_log(swarm_home / "missing.log") == []
