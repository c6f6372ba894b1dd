"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository, parse_config
from .models import (
    DEFAULT_MANDATED_INDUSTRIES,
    DEFAULT_PRIORITY_WEIGHTS,
    PRIORITY_CATEGORIES,
    ClassificationTables,
    ConcurrencyConfig,
    DatabaseConfig,
    DirectorySelectors,
    FailurePolicy,
    InsightConfig,
    PhaseToggles,
    ScoringConfig,
    SourceSettings,
    SwarmConfig,
    TargetsConfig,
)

__all__ = [
    "ClassificationTables",
    "ConcurrencyConfig",
    "ConfigLocator",
    "ConfigRepository",
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
    "parse_config",
]
