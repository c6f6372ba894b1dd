from __future__ import annotations

import pytest

from hunter_swarm.engine.enrichment import EnrichmentEngine
from hunter_swarm.errors import EnrichmentServiceError
from hunter_swarm.records import CanonicalRecord, ComplianceUrgency, SizeCategory


class ExplodingInsight:
    def __init__(self) -> None:
        self.calls = 0

    def summarize(self, request):
        self.calls += 1
        raise EnrichmentServiceError(f"timeout for {request.name}")

    def close(self) -> None:
        return


class CannedInsight:
    def summarize(self, request):
        return f"{request.name} looks promising"

    def close(self) -> None:
        return


@pytest.fixture
def canonical(make_candidate):
    def _build(**overrides) -> CanonicalRecord:
        return CanonicalRecord.from_candidate(make_candidate(**overrides))

    return _build


def test_completeness_counts_filled_fields(canonical) -> None:
    record = canonical(
        description="IT services",
        website="maple.ca",
        email="info@maple.ca",
    )
    # name, city, province + description, website, email
    assert EnrichmentEngine.completeness(record) == 60


def test_enrich_derives_lookup_attributes(canonical, fixed_clock) -> None:
    engine = EnrichmentEngine(clock=fixed_clock)
    record = canonical(
        industry="Software Development",
        employee_count=45,
        email="Info@Maple.ca",
        phone="4165550100",
        province="bc",
    )

    enriched = engine.enrich(record)
    derived = enriched.derived

    assert derived.industry_classification == "Technology"
    assert derived.industry_code == "54151"
    assert derived.size_category is SizeCategory.MEDIUM
    assert derived.email_domain == "maple.ca"
    assert derived.email_valid is True
    assert derived.phone_formatted == "(416) 555-0100"
    assert derived.region == "Western Canada"
    assert derived.timezone == "America/Vancouver"
    assert derived.enriched_at == fixed_clock()
    assert derived.requires_compliance_tracking is False
    assert derived.compliance_urgency is None
    assert derived.insight is None
    assert enriched.canonical == record
    assert enriched.canonical is not record


def test_unknown_industry_uses_defaults(canonical) -> None:
    engine = EnrichmentEngine()
    derived = engine.enrich(canonical(industry="Basket Weaving", province=None)).derived
    assert derived.industry_classification == "Other"
    assert derived.industry_code == "99"
    assert derived.region == "Canada"
    assert derived.size_category is SizeCategory.UNKNOWN
    assert derived.revenue_estimate is None


@pytest.mark.parametrize(
    ("count", "expected"),
    [(None, SizeCategory.UNKNOWN), (0, SizeCategory.SMALL), (5, SizeCategory.SMALL),
     (20, SizeCategory.MEDIUM), (100, SizeCategory.LARGE), (500, SizeCategory.ENTERPRISE)],
)
def test_size_category_bands(count, expected) -> None:
    assert EnrichmentEngine.size_category(count) is expected


def test_revenue_estimate_is_stable_per_record(canonical) -> None:
    engine = EnrichmentEngine()
    record = canonical(industry="Consulting", employee_count=10)

    first = engine.enrich(record).derived.revenue_estimate
    second = engine.enrich(record).derived.revenue_estimate

    assert first == second
    assert 0.8 * 2_000_000 <= first < 1.2 * 2_000_000
    assert engine.enrich(canonical(revenue_estimate=42.0)).derived.revenue_estimate == 42.0


@pytest.mark.parametrize(
    ("compliance", "expected"),
    [
        (None, ComplianceUrgency.CRITICAL),
        (2.9, ComplianceUrgency.CRITICAL),
        (3.0, ComplianceUrgency.HIGH),
        (4.99, ComplianceUrgency.HIGH),
        (5.0, ComplianceUrgency.MEDIUM),
        (7.4, ComplianceUrgency.MEDIUM),
        (7.5, ComplianceUrgency.LOW),
        (60, ComplianceUrgency.LOW),
    ],
)
def test_compliance_urgency_ladder(canonical, compliance, expected) -> None:
    record = canonical(government_contractor=True, current_compliance=compliance)
    assert EnrichmentEngine().compliance_urgency(record) is expected


def test_engagement_is_capped(canonical) -> None:
    record = canonical(government_contractor=True, mandatory_industry=True, employee_count=300)
    assert EnrichmentEngine.engagement(record, 100) == 100
    assert EnrichmentEngine.engagement(canonical(), 0) == 50


def test_insight_failure_is_counted_not_raised(canonical) -> None:
    insight = ExplodingInsight()
    engine = EnrichmentEngine(insight=insight)

    enriched = engine.enrich(canonical())
    engine.enrich(canonical(name="Other Co"))

    assert enriched.derived.insight is None
    assert insight.calls == 2
    assert engine.insight_failures == 2


def test_re_enrich_replaces_block_as_a_unit(canonical) -> None:
    enriched = EnrichmentEngine().enrich(canonical())
    refreshed = EnrichmentEngine(insight=CannedInsight()).re_enrich(enriched)

    assert refreshed.canonical == enriched.canonical
    assert refreshed.derived.insight == "Maple Solutions Inc. looks promising"
    assert enriched.derived.insight is None


class BrokenInsight:
    def summarize(self, request):
        raise ConnectionError("service reset")

    def close(self) -> None:
        return


def test_unexpected_insight_error_still_enriches(canonical) -> None:
    engine = EnrichmentEngine(insight=BrokenInsight())

    enriched = engine.enrich(canonical(employee_count=12))

    assert enriched.derived.insight is None
    assert enriched.derived.size_category is SizeCategory.SMALL
    assert engine.insight_failures == 1
