"""Run statistics and the thread-safe accumulator that builds them."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Iterable

COUNTERS = (
    "total_collected",
    "duplicates_removed",
    "validation_dropped",
    "synthetic_records",
    "persisted",
    "enriched",
    "scored",
    "insight_failures",
    "cancelled",
    "errors",
)


@dataclass
class RunStatistics:
    """Caller-facing summary of one orchestration run."""

    total_collected: int = 0
    duplicates_removed: int = 0
    validation_dropped: int = 0
    synthetic_records: int = 0
    persisted: int = 0
    enriched: int = 0
    scored: int = 0
    insight_failures: int = 0
    cancelled: int = 0
    errors: int = 0
    category_counts: dict[str, int] = field(default_factory=dict)
    phase_counts: dict[str, int] = field(default_factory=dict)
    phases_completed: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("started_at", "finished_at"):
            value = data[key]
            data[key] = value.isoformat() if value else None
        return data


class StatisticsAccumulator:
    """Additive, lock-protected counters passed explicitly to every task.

    Counters only ever grow. Natural keys seen during the run are tracked so
    that a business collected by two tasks is counted once and the repeat is
    reported as a removed duplicate.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._stats = RunStatistics()
        self._seen_keys: set[str] = set()
        self._started: float | None = None

    def start(self) -> None:
        with self._lock:
            self._stats.started_at = datetime.now(timezone.utc)
            self._started = time.monotonic()

    def add(self, counter: str, amount: int = 1) -> None:
        if counter not in COUNTERS:
            raise KeyError(f"Unknown counter: {counter}")
        if amount < 0:
            raise ValueError("statistics counters are never decremented")
        if amount == 0:
            return
        with self._lock:
            setattr(self._stats, counter, getattr(self._stats, counter) + amount)

    def add_category(self, category: str, amount: int = 1) -> None:
        if amount <= 0:
            return
        with self._lock:
            counts = self._stats.category_counts
            counts[category] = counts.get(category, 0) + amount

    def add_phase(self, phase: str, amount: int) -> None:
        if amount <= 0:
            return
        with self._lock:
            counts = self._stats.phase_counts
            counts[phase] = counts.get(phase, 0) + amount

    def register_collected(self, record_keys: Iterable[str]) -> int:
        """Count newly seen records as collected; repeats count as duplicates.

        Returns the number of keys not seen before in this run.
        """

        keys = list(record_keys)
        with self._lock:
            fresh = {key for key in keys if key not in self._seen_keys}
            self._seen_keys.update(fresh)
            repeats = len(keys) - len(fresh)
            self._stats.total_collected += len(fresh)
            self._stats.duplicates_removed += repeats
        return len(fresh)

    def complete_phase(self, phase: str) -> None:
        with self._lock:
            self._stats.phases_completed.append(phase)

    def snapshot(self) -> RunStatistics:
        with self._lock:
            return RunStatistics(
                **{
                    **asdict(self._stats),
                    "category_counts": dict(self._stats.category_counts),
                    "phase_counts": dict(self._stats.phase_counts),
                    "phases_completed": list(self._stats.phases_completed),
                }
            )

    def finish(self) -> RunStatistics:
        with self._lock:
            self._stats.finished_at = datetime.now(timezone.utc)
            if self._started is not None:
                self._stats.duration_seconds = round(time.monotonic() - self._started, 3)
        return self.snapshot()


__all__ = ["COUNTERS", "RunStatistics", "StatisticsAccumulator"]
