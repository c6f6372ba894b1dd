"""Record lifecycle models: candidate → canonical → enriched → scored."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .normalize import clean_email, clean_phone, clean_url, normalize_name
from .errors import CandidateValidationError


class SizeCategory(str, Enum):
    UNKNOWN = "Unknown"
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"
    ENTERPRISE = "Enterprise"


class ComplianceUrgency(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


_TEXT_FIELDS = (
    "name",
    "description",
    "address",
    "city",
    "province",
    "postal_code",
    "industry",
    "linkedin_url",
    "source",
)


class CandidateRecord(BaseModel):
    """One source's raw view of a business, pre-deduplication."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str
    description: str | None = None
    website: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    industry: str | None = None
    employee_count: int | None = Field(default=None, ge=0)
    revenue_estimate: float | None = Field(default=None, ge=0)
    year_established: int | None = None
    linkedin_url: str | None = None

    indigenous_owned: bool = False
    indigenous_verified: bool = False
    mandatory_industry: bool = False
    government_contractor: bool = False
    claimed: bool = False
    verified: bool = False

    certifications: set[str] = Field(default_factory=set)
    contract_refs: set[str] = Field(default_factory=set)
    current_compliance: float | None = Field(default=None, ge=0, le=100)
    ownership_percentage: float | None = Field(default=None, ge=0, le=100)

    source: str | None = None
    synthetic: bool = False
    priority_score: int = 0

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("name")
    @classmethod
    def _require_name(cls, value: str | None) -> str:
        if not value or not normalize_name(value):
            raise ValueError("name is required")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def _normalise_email(cls, value: Any) -> str | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        email = clean_email(str(value))
        if email is None:
            raise ValueError(f"malformed email: {value!r}")
        return email

    @field_validator("phone", mode="before")
    @classmethod
    def _normalise_phone(cls, value: Any) -> str | None:
        if value is None:
            return None
        return clean_phone(str(value))

    @field_validator("website", mode="before")
    @classmethod
    def _normalise_website(cls, value: Any) -> str | None:
        if value is None:
            return None
        return clean_url(str(value))

    @field_validator("certifications", "contract_refs", mode="before")
    @classmethod
    def _coerce_set(cls, value: Any) -> Any:
        if value is None:
            return set()
        if isinstance(value, str):
            return {value} if value.strip() else set()
        return value

    @classmethod
    def from_raw(cls, payload: Mapping[str, Any]) -> "CandidateRecord":
        """Validate a loosely-typed mapping, raising ``CandidateValidationError``."""

        try:
            return cls.model_validate(dict(payload))
        except ValidationError as exc:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise CandidateValidationError(payload, errors) from exc

    @property
    def name_key(self) -> str:
        return normalize_name(self.name)

    @property
    def city_key(self) -> str:
        return normalize_name(self.city)

    @property
    def record_key(self) -> str:
        """String form of the sink's natural key (name, city)."""

        return f"{self.name_key}|{self.city_key}"


class CanonicalRecord(CandidateRecord):
    """Merged, deduplicated representation of one real-world business."""

    sources: set[str] = Field(default_factory=set)
    merge_count: int = 1
    last_merged_at: datetime | None = None

    @classmethod
    def from_candidate(cls, candidate: CandidateRecord) -> "CanonicalRecord":
        if isinstance(candidate, CanonicalRecord):
            return candidate.model_copy(deep=True)
        data = candidate.model_dump()
        data["sources"] = {candidate.source} if candidate.source else set()
        return cls.model_validate(data)

    def to_row(self) -> dict[str, Any]:
        row = self.model_dump(mode="json")
        row["certifications"] = sorted(self.certifications)
        row["contract_refs"] = sorted(self.contract_refs)
        row["sources"] = sorted(self.sources)
        row.update(
            name_key=self.name_key,
            city_key=self.city_key,
            record_key=self.record_key,
            enriched=False,
            scored=False,
        )
        return row

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CanonicalRecord":
        return cls.model_validate(dict(row))


class EnrichmentBlock(BaseModel):
    """Derived attributes attached to a canonical record. Replaced as a unit."""

    model_config = ConfigDict(frozen=True)

    industry_classification: str
    industry_code: str
    size_category: SizeCategory
    revenue_estimate: float | None
    email_domain: str
    email_valid: bool
    phone_formatted: str
    region: str
    timezone: str
    data_completeness: int
    engagement_potential: int
    requires_compliance_tracking: bool
    compliance_urgency: ComplianceUrgency | None
    insight: str | None = None
    enriched_at: datetime
    enrichment_version: str = "1.0"


class EnrichedRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    canonical: CanonicalRecord
    derived: EnrichmentBlock

    @property
    def record_key(self) -> str:
        return self.canonical.record_key

    def with_enrichment(self, derived: EnrichmentBlock) -> "EnrichedRecord":
        return EnrichedRecord(canonical=self.canonical, derived=derived)

    def to_row(self) -> dict[str, Any]:
        row = self.canonical.to_row()
        row["enrichment"] = self.derived.model_dump(mode="json")
        row["enriched"] = True
        return row

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EnrichedRecord":
        return cls(
            canonical=CanonicalRecord.from_row(row),
            derived=EnrichmentBlock.model_validate(row["enrichment"]),
        )


class ScoredRecord(BaseModel):
    """Terminal artifact persisted to the sink."""

    model_config = ConfigDict(frozen=True)

    enriched: EnrichedRecord
    priority_score: int = Field(ge=0, le=100)
    priority_category: str
    requires_priority_handling: bool
    scored_at: datetime

    @property
    def record_key(self) -> str:
        return self.enriched.record_key

    def to_row(self) -> dict[str, Any]:
        row = self.enriched.to_row()
        row.update(
            priority_score=self.priority_score,
            priority_category=self.priority_category,
            requires_priority_handling=self.requires_priority_handling,
            scored_at=self.scored_at.isoformat(),
            scored=True,
        )
        return row


__all__ = [
    "CandidateRecord",
    "CanonicalRecord",
    "ComplianceUrgency",
    "EnrichedRecord",
    "EnrichmentBlock",
    "ScoredRecord",
    "SizeCategory",
]
