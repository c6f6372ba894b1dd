"""Derive classification, size, contact and compliance attributes."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from threading import Lock
from typing import Callable

import structlog

from ..config import ClassificationTables
from ..errors import EnrichmentServiceError
from ..normalize import extract_domain, extract_email_domain, format_phone, is_valid_email
from ..records import (
    CanonicalRecord,
    ComplianceUrgency,
    EnrichedRecord,
    EnrichmentBlock,
    SizeCategory,
)
from .insight import InsightProvider, InsightRequest, NullInsightProvider

ENRICHMENT_VERSION = "1.0"

COMPLETENESS_FIELDS = (
    "name",
    "description",
    "website",
    "email",
    "phone",
    "address",
    "city",
    "province",
    "industry",
    "employee_count",
)

# (upper bound exclusive, urgency) on current compliance percentage
URGENCY_LADDER = (
    (3.0, ComplianceUrgency.CRITICAL),
    (5.0, ComplianceUrgency.HIGH),
    (7.5, ComplianceUrgency.MEDIUM),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EnrichmentEngine:
    """Pure function of a canonical record plus static lookup tables.

    The optional insight call is the only side effect; its failure leaves
    ``insight`` empty and is counted in ``insight_failures``.
    """

    def __init__(
        self,
        tables: ClassificationTables | None = None,
        insight: InsightProvider | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.tables = tables or ClassificationTables()
        self.insight = insight or NullInsightProvider()
        self._clock = clock
        self.logger = logger or structlog.get_logger("hunter_swarm.enrichment")
        self._lock = Lock()
        self._insight_failures = 0

    @property
    def insight_failures(self) -> int:
        with self._lock:
            return self._insight_failures

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def classify_industry(self, industry: str | None) -> str:
        if industry:
            lowered = industry.lower()
            for needle, classification in self.tables.industries.items():
                if needle.lower() in lowered:
                    return classification
        return self.tables.default_classification

    def industry_code(self, classification: str) -> str:
        return self.tables.codes.get(classification, self.tables.default_code)

    @staticmethod
    def size_category(employee_count: int | None) -> SizeCategory:
        if employee_count is None:
            return SizeCategory.UNKNOWN
        if employee_count < 20:
            return SizeCategory.SMALL
        if employee_count < 100:
            return SizeCategory.MEDIUM
        if employee_count < 500:
            return SizeCategory.LARGE
        return SizeCategory.ENTERPRISE

    def estimate_revenue(self, record: CanonicalRecord, classification: str) -> float | None:
        if record.revenue_estimate:
            return record.revenue_estimate
        if not record.employee_count:
            return None
        multiplier = self.tables.revenue_multipliers.get(
            classification, self.tables.default_multiplier
        )
        return float(int(record.employee_count * multiplier * self.jitter(record)))

    @staticmethod
    def jitter(record: CanonicalRecord) -> float:
        """Stable factor in [0.8, 1.2) derived from the record's natural key."""

        digest = hashlib.sha256(record.record_key.encode("utf-8")).digest()
        fraction = int.from_bytes(digest[:8], "big") / 2**64
        return 0.8 + fraction * 0.4

    @staticmethod
    def completeness(record: CanonicalRecord) -> int:
        filled = sum(1 for name in COMPLETENESS_FIELDS if getattr(record, name))
        return round(filled / len(COMPLETENESS_FIELDS) * 100)

    @staticmethod
    def engagement(record: CanonicalRecord, completeness: int) -> int:
        score = 50.0
        if record.government_contractor:
            score += 30
        if record.mandatory_industry:
            score += 20
        employees = record.employee_count or 0
        if employees > 100:
            score += 15
        elif employees > 50:
            score += 10
        score += completeness * 0.2
        return min(100, round(score))

    @staticmethod
    def requires_compliance_tracking(record: CanonicalRecord) -> bool:
        return bool(
            record.government_contractor or record.mandatory_industry or record.contract_refs
        )

    def compliance_urgency(self, record: CanonicalRecord) -> ComplianceUrgency | None:
        if not self.requires_compliance_tracking(record):
            return None
        compliance = record.current_compliance or 0.0
        for upper, urgency in URGENCY_LADDER:
            if compliance < upper:
                return urgency
        return ComplianceUrgency.LOW

    # ------------------------------------------------------------------
    def enrich(self, record: CanonicalRecord) -> EnrichedRecord:
        canonical = record.model_copy(deep=True)
        return EnrichedRecord(canonical=canonical, derived=self._derive(canonical))

    def re_enrich(self, record: EnrichedRecord) -> EnrichedRecord:
        """Rebuild the derived block and swap it in as a whole."""

        return record.with_enrichment(self._derive(record.canonical))

    def _derive(self, record: CanonicalRecord) -> EnrichmentBlock:
        classification = self.classify_industry(record.industry)
        completeness = self.completeness(record)
        province = (record.province or "").upper()
        return EnrichmentBlock(
            industry_classification=classification,
            industry_code=self.industry_code(classification),
            size_category=self.size_category(record.employee_count),
            revenue_estimate=self.estimate_revenue(record, classification),
            email_domain=extract_email_domain(record.email) or extract_domain(record.website),
            email_valid=is_valid_email(record.email),
            phone_formatted=format_phone(record.phone),
            region=self.tables.regions.get(province, self.tables.default_region),
            timezone=self.tables.timezones.get(province, self.tables.default_timezone),
            data_completeness=completeness,
            engagement_potential=self.engagement(record, completeness),
            requires_compliance_tracking=self.requires_compliance_tracking(record),
            compliance_urgency=self.compliance_urgency(record),
            insight=self._insight(record),
            enriched_at=self._clock(),
            enrichment_version=ENRICHMENT_VERSION,
        )

    def _insight(self, record: CanonicalRecord) -> str | None:
        request = InsightRequest(
            name=record.name, industry=record.industry, size=record.employee_count
        )
        try:
            return self.insight.summarize(request)
        except EnrichmentServiceError as exc:
            self._count_insight_failure()
            self.logger.warning("insight_failed", record=record.record_key, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            # Insight is optional; no provider error may fail enrichment.
            self._count_insight_failure()
            self.logger.error(
                "insight_crashed", record=record.record_key, error=str(exc), exc_info=True
            )
        return None

    def _count_insight_failure(self) -> None:
        with self._lock:
            self._insight_failures += 1


__all__ = ["COMPLETENESS_FIELDS", "ENRICHMENT_VERSION", "EnrichmentEngine", "URGENCY_LADDER"]
