"""Processing engines: dedup, enrichment, scoring, pooling and rate limiting."""

from .dedup import DedupKey, DedupReport, DeduplicationEngine, derive_keys, merge_records
from .enrichment import EnrichmentEngine
from .insight import (
    HttpInsightProvider,
    InsightProvider,
    InsightRequest,
    NullInsightProvider,
    build_insight_provider,
)
from .rate_limiter import RateLimiter
from .scoring import PriorityScorer
from .thread_pool import ThreadPoolManager

__all__ = [
    "DedupKey",
    "DedupReport",
    "DeduplicationEngine",
    "EnrichmentEngine",
    "HttpInsightProvider",
    "InsightProvider",
    "InsightRequest",
    "NullInsightProvider",
    "PriorityScorer",
    "RateLimiter",
    "ThreadPoolManager",
    "build_insight_provider",
    "derive_keys",
    "merge_records",
]
