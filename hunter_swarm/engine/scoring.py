"""Deterministic priority scoring over enriched records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from ..config import ScoringConfig
from ..records import ComplianceUrgency, EnrichedRecord, ScoredRecord

URGENT_LEVELS = frozenset({ComplianceUrgency.HIGH, ComplianceUrgency.CRITICAL})


def _clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


class PriorityScorer:
    """Map each record to one category and look its score up in a fixed table."""

    def __init__(
        self,
        config: ScoringConfig | None = None,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.config = config or ScoringConfig()
        self._clock = clock

    def categorize(self, record: EnrichedRecord) -> str:
        canonical = record.canonical
        employees = canonical.employee_count
        large = employees is not None and employees > self.config.large_threshold
        medium = (
            employees is not None and not large and employees > self.config.medium_threshold
        )
        regulated = canonical.mandatory_industry

        if canonical.government_contractor:
            return "government_contractor"
        if regulated and large:
            return "regulated_large"
        if canonical.indigenous_verified:
            return "verified_target"
        if regulated and medium:
            return "regulated_medium"
        if large:
            return "large_general"
        if canonical.indigenous_owned:
            return "potential_target"
        if regulated:
            return "small_regulated"
        if medium:
            return "medium_general"
        if employees:
            return "small_general"
        return "other"

    def score(self, record: EnrichedRecord) -> ScoredRecord:
        category = self.categorize(record)
        value = _clamp(int(self.config.weights.get(category, 0)))
        urgent = record.derived.compliance_urgency in URGENT_LEVELS
        return ScoredRecord(
            enriched=record,
            priority_score=value,
            priority_category=category,
            requires_priority_handling=value >= self.config.priority_threshold or urgent,
            scored_at=self._clock(),
        )


__all__ = ["PriorityScorer", "URGENT_LEVELS"]
