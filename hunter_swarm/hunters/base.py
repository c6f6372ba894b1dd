"""Collector agent contract shared by every hunter."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal

import structlog

from ..config import SourceSettings
from ..errors import SourceUnavailable
from ..logging_conf import hunter_logger
from ..normalize import clean_email, clean_phone
from . import samples

QueryKind = Literal["default", "industry", "geography", "general"]


@dataclass(slots=True, frozen=True)
class HuntQuery:
    """What to ask a hunter for.

    ``value`` is an industry name for ``industry`` queries and a province code
    for ``geography`` queries. ``offset`` shifts generated sequences so that
    chunked ``general`` queries do not repeat each other.
    """

    kind: QueryKind = "default"
    value: str | None = None
    limit: int | None = None
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 1:
            raise ValueError(f"hunt limit must be positive, got {self.limit}")


@dataclass(slots=True)
class HuntResult:
    """Typed outcome of one ``collect`` call.

    When the live source failed, ``error`` is set, ``synthetic`` is True and
    every record is a flagged placeholder.
    """

    source: str
    query: HuntQuery
    records: list[dict[str, Any]] = field(default_factory=list)
    error: SourceUnavailable | None = None
    synthetic: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class BaseHunter(ABC):
    name = "base"
    supported_kinds: tuple[str, ...] = ("default",)

    def __init__(
        self,
        settings: SourceSettings | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.settings = settings or SourceSettings()
        self.logger = logger or hunter_logger(self.name)

    def collect(self, query: HuntQuery | None = None) -> HuntResult:
        query = query or HuntQuery()
        if query.kind not in self.supported_kinds:
            raise ValueError(f"{self.name} hunter does not support '{query.kind}' queries")
        limit = self._limit(query)
        self.logger.info("hunt_started", kind=query.kind, value=query.value, limit=limit)
        try:
            raw = list(self.hunt(query, limit))
        except SourceUnavailable as exc:
            self.logger.warning("source_unavailable", error=str(exc))
            fallback = [self._prepare(item, synthetic=True) for item in self.fallback(query)]
            return HuntResult(
                source=self.name,
                query=query,
                records=fallback[:limit],
                error=exc,
                synthetic=True,
            )
        records = [self._prepare(item, synthetic=False) for item in raw[:limit]]
        self.logger.info("hunt_finished", kind=query.kind, records=len(records))
        return HuntResult(source=self.name, query=query, records=records)

    @abstractmethod
    def hunt(self, query: HuntQuery, limit: int) -> Iterable[dict[str, Any]]:
        """Produce raw candidate payloads; raise ``SourceUnavailable`` on fetch failure."""

    def fallback(self, query: HuntQuery) -> list[dict[str, Any]]:  # noqa: ARG002
        return samples.sample_businesses()

    def _limit(self, query: HuntQuery) -> int:
        cap = self.settings.max_records
        if query.limit is None:
            return cap
        return min(query.limit, cap)

    def _prepare(self, raw: dict[str, Any], *, synthetic: bool) -> dict[str, Any]:
        record = {key: value for key, value in raw.items() if value not in (None, "")}
        if "phone" in record:
            phone = clean_phone(str(record["phone"]))
            if phone:
                record["phone"] = phone
            else:
                record.pop("phone")
        if "email" in record:
            # Unparseable emails stay as-is so validation can reject the candidate.
            record["email"] = clean_email(str(record["email"])) or record["email"]
        record["source"] = self.name
        record["synthetic"] = synthetic
        return record


__all__ = ["BaseHunter", "HuntQuery", "HuntResult", "QueryKind"]
