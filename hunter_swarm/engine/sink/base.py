"""Persistence sink Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal, Sequence

Stage = Literal["enrichment", "scoring"]


@dataclass(slots=True)
class RowFailure:
    record_key: str
    error: str


@dataclass(slots=True)
class BatchResult:
    written: int = 0
    failures: list[RowFailure] = field(default_factory=list)


class BaseSink(ABC):
    """Batch upsert keyed on (name, city) plus paged reads of pending rows."""

    @abstractmethod
    def upsert_batch(self, rows: Sequence[dict[str, Any]]) -> BatchResult:
        """Write rows; per-row problems go in ``failures``.

        Raises ``PersistenceError`` if the batch could not be attempted at all.
        """

    @abstractmethod
    def fetch_pending(
        self, stage: Stage, limit: int, after_key: str | None = None
    ) -> list[dict[str, Any]]:
        """Rows still awaiting ``stage``, ordered by ``record_key``."""

    @abstractmethod
    def top(self, limit: int = 20) -> list[dict[str, Any]]:
        """Highest-priority rows first."""

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseSink", "BatchResult", "RowFailure", "Stage"]
