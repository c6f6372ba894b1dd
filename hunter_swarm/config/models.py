"""Pydantic models describing a hunter-swarm campaign."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class FailurePolicy(str, Enum):
    """What the orchestrator does with a hunter whose live source failed."""

    SUBSTITUTE = "substitute"
    SKIP = "skip"
    RETRY = "retry"


DEFAULT_MANDATED_INDUSTRIES = [
    "Information Technology",
    "Consulting",
    "Construction",
    "Engineering",
    "Professional Services",
    "Facilities Management",
    "Transportation",
    "Healthcare Services",
]

# Ordered from most to least urgent; order matters for validation.
PRIORITY_CATEGORIES = (
    "government_contractor",
    "regulated_large",
    "verified_target",
    "regulated_medium",
    "large_general",
    "potential_target",
    "small_regulated",
    "medium_general",
    "small_general",
    "other",
)

DEFAULT_PRIORITY_WEIGHTS = {
    "government_contractor": 100,
    "regulated_large": 90,
    "verified_target": 85,
    "regulated_medium": 75,
    "large_general": 65,
    "potential_target": 55,
    "small_regulated": 45,
    "medium_general": 35,
    "small_general": 20,
    "other": 10,
}


class TargetsConfig(BaseModel):
    """Upper bounds on how many candidates each sourcing phase asks for."""

    priority: int = Field(default=3000, ge=0)
    government: int = Field(default=1000, ge=0)
    per_industry: int = Field(default=100, ge=0)
    general: int = Field(default=1000, ge=0)


class ConcurrencyConfig(BaseModel):
    workers: int = Field(default=10, gt=0)
    rate_limit: int = Field(default=100, gt=0)
    rate_window_seconds: float = Field(default=60.0, gt=0)
    persistence_workers: int = Field(default=4, gt=0)


class DatabaseConfig(BaseModel):
    backend: Literal["sqlite", "mongodb"] = "sqlite"
    path: Path = Field(default=Path("data/swarm.db"))
    table: str = "businesses"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "hunter_swarm"
    batch_size: int = Field(default=500, gt=0)
    page_size: int = Field(default=1000, gt=0)

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("table")
    @classmethod
    def _check_table(cls, value: str) -> str:
        if not value.replace("_", "").isalnum():
            raise ValueError("table name must be alphanumeric/underscore")
        return value


class DirectorySelectors(BaseModel):
    """CSS selectors for listing pages; ``::attr:<name>`` reads an attribute."""

    item: str = ".business-listing, .member-item, .directory-item"
    name: str = ".business-name, .company-name, h3, h4"
    description: str = ".business-description, .description, p"
    website: str = 'a[href^="http"]::attr:href'
    phone: str = '.phone, .tel, [href^="tel:"]'
    email: str = '.email, [href^="mailto:"]'
    address: str = ".address, .location"
    industry: str = ".industry, .category, .sector"
    certification: str = ".certification, .level, .badge"
    next_page: str = '.pagination .next, a.next, [aria-label="Next page"]'


class SourceSettings(BaseModel):
    """Per-hunter behaviour, limits and failure handling."""

    enabled: bool = True
    url: str | None = None
    use_browser: bool = False
    headless: bool = True
    max_records: int = Field(default=1000, gt=0)
    max_pages: int = Field(default=10, gt=0)
    timeout: float = Field(default=30.0, gt=0)
    user_agent: str | None = None
    rate_limit: int | None = Field(default=None, gt=0)
    failure_policy: FailurePolicy = FailurePolicy.SUBSTITUTE
    max_retries: int = Field(default=2, ge=0)
    retry_backoff: float = Field(default=2.0, ge=0)
    seed: int = 0
    selectors: DirectorySelectors = Field(default_factory=DirectorySelectors)


def _default_sources() -> dict[str, SourceSettings]:
    return {
        "directory": SourceSettings(
            url="https://www.ccab.com/certified-aboriginal-businesses/",
            use_browser=True,
            max_records=3000,
        ),
        "government": SourceSettings(max_records=1000),
        "yellowpages": SourceSettings(max_records=1000),
    }


class InsightConfig(BaseModel):
    """Optional semantic-summary service (OpenAI-compatible chat endpoint)."""

    enabled: bool = False
    endpoint: str = "https://api.openai.com/v1/chat/completions"
    model: str = "gpt-3.5-turbo"
    api_key: str | None = None
    timeout: float = Field(default=10.0, gt=0)
    max_tokens: int = Field(default=100, gt=0)


class ScoringConfig(BaseModel):
    weights: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_PRIORITY_WEIGHTS))
    priority_threshold: int = Field(default=75, ge=0, le=100)
    large_threshold: int = Field(default=100, ge=0)
    medium_threshold: int = Field(default=20, ge=0)

    @model_validator(mode="after")
    def _validate_table(self) -> "ScoringConfig":
        merged = dict(DEFAULT_PRIORITY_WEIGHTS)
        unknown = set(self.weights) - set(PRIORITY_CATEGORIES)
        if unknown:
            raise ValueError(f"Unknown priority categories: {sorted(unknown)}")
        merged.update(self.weights)
        values = [merged[name] for name in PRIORITY_CATEGORIES]
        for higher, lower, value_high, value_low in zip(
            PRIORITY_CATEGORIES, PRIORITY_CATEGORIES[1:], values, values[1:]
        ):
            if value_low > value_high:
                raise ValueError(f"Priority weight for {lower} exceeds {higher}")
        if self.medium_threshold > self.large_threshold:
            raise ValueError("medium_threshold must be <= large_threshold")
        self.weights = merged
        return self


class ClassificationTables(BaseModel):
    """Data-driven lookup tables used by the enrichment engine."""

    industries: dict[str, str] = Field(
        default_factory=lambda: {
            "Information Technology": "Technology",
            "IT Services": "Technology",
            "Software": "Technology",
            "Consulting": "Professional Services",
            "Management Consulting": "Professional Services",
            "Professional Services": "Professional Services",
            "Construction": "Construction & Engineering",
            "Engineering": "Construction & Engineering",
            "Healthcare": "Healthcare & Social",
            "Medical": "Healthcare & Social",
            "Financial": "Financial Services",
            "Banking": "Financial Services",
            "Manufacturing": "Manufacturing",
            "Retail": "Retail & Consumer",
            "Restaurant": "Hospitality",
            "Hotel": "Hospitality",
        }
    )
    codes: dict[str, str] = Field(
        default_factory=lambda: {
            "Technology": "54151",
            "Construction & Engineering": "23",
            "Manufacturing": "31-33",
            "Retail & Consumer": "44-45",
            "Professional Services": "54",
            "Healthcare & Social": "62",
            "Financial Services": "52",
            "Hospitality": "72",
        }
    )
    revenue_multipliers: dict[str, float] = Field(
        default_factory=lambda: {
            "Technology": 250000,
            "Professional Services": 200000,
            "Financial Services": 300000,
            "Construction & Engineering": 180000,
            "Manufacturing": 150000,
            "Retail & Consumer": 120000,
            "Healthcare & Social": 140000,
            "Hospitality": 80000,
            "Other": 100000,
        }
    )
    regions: dict[str, str] = Field(
        default_factory=lambda: {
            "BC": "Western Canada",
            "AB": "Western Canada",
            "SK": "Prairie",
            "MB": "Prairie",
            "ON": "Central Canada",
            "QC": "Quebec",
            "NB": "Atlantic",
            "NS": "Atlantic",
            "PE": "Atlantic",
            "NL": "Atlantic",
            "YT": "Northern",
            "NT": "Northern",
            "NU": "Northern",
        }
    )
    timezones: dict[str, str] = Field(
        default_factory=lambda: {
            "BC": "America/Vancouver",
            "AB": "America/Edmonton",
            "SK": "America/Regina",
            "MB": "America/Winnipeg",
            "ON": "America/Toronto",
            "QC": "America/Montreal",
            "NB": "America/Halifax",
            "NS": "America/Halifax",
            "PE": "America/Halifax",
            "NL": "America/St_Johns",
            "YT": "America/Whitehorse",
            "NT": "America/Yellowknife",
            "NU": "America/Iqaluit",
        }
    )
    default_classification: str = "Other"
    default_code: str = "99"
    default_multiplier: float = 100000
    default_region: str = "Canada"
    default_timezone: str = "America/Toronto"


class PhaseToggles(BaseModel):
    priority_sourcing: bool = True
    mandated_sourcing: bool = True
    industry_sourcing: bool = True
    general_sourcing: bool = True
    enrichment: bool = True
    scoring: bool = True


class SwarmConfig(BaseModel):
    """Full campaign definition consumed by the orchestrator."""

    targets: TargetsConfig = Field(default_factory=TargetsConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    sources: dict[str, SourceSettings] = Field(default_factory=_default_sources)
    mandated_industries: list[str] = Field(
        default_factory=lambda: list(DEFAULT_MANDATED_INDUSTRIES)
    )
    general_chunk_size: int = Field(default=250, gt=0)
    insight: InsightConfig = Field(default_factory=InsightConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    classification: ClassificationTables = Field(default_factory=ClassificationTables)
    phases: PhaseToggles = Field(default_factory=PhaseToggles)

    @field_validator("mandated_industries", mode="before")
    @classmethod
    def _strip_industries(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [str(item).strip() for item in value if str(item).strip()]
        return value

    @model_validator(mode="after")
    def _validate_campaign(self) -> "SwarmConfig":
        if self.phases.industry_sourcing and not self.mandated_industries:
            raise ValueError("mandated_industries cannot be empty when industry_sourcing is enabled")
        for name, default in _default_sources().items():
            self.sources.setdefault(name, default)
        return self

    def source(self, name: str) -> SourceSettings:
        return self.sources.get(name) or SourceSettings()

    def resolved_database_path(self, base_dir: Path) -> Path:
        path = self.database.path
        if not path.is_absolute():
            return (base_dir / path).resolve()
        return path


__all__ = [
    "ClassificationTables",
    "ConcurrencyConfig",
    "DatabaseConfig",
    "DEFAULT_MANDATED_INDUSTRIES",
    "DEFAULT_PRIORITY_WEIGHTS",
    "DirectorySelectors",
    "FailurePolicy",
    "InsightConfig",
    "PhaseToggles",
    "PRIORITY_CATEGORIES",
    "ScoringConfig",
    "SourceSettings",
    "SwarmConfig",
    "TargetsConfig",
]
