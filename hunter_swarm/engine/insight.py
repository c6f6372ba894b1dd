"""Optional semantic-summary capability injected into the enrichment engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Protocol

import httpx
import structlog

from ..config import InsightConfig
from ..errors import EnrichmentServiceError

SYSTEM_PROMPT = "Generate brief business insights for procurement and compliance purposes."


@dataclass(slots=True)
class InsightRequest:
    name: str
    industry: str | None
    size: int | None

    def prompt(self) -> str:
        size = f"{self.size} employees" if self.size else "unknown size"
        return f"Business: {self.name}, Industry: {self.industry or 'unknown'}, Size: {size}"


class InsightProvider(Protocol):
    """Return a short summary or raise ``EnrichmentServiceError``."""

    def summarize(self, request: InsightRequest) -> str | None:
        ...

    def close(self) -> None:
        ...


class NullInsightProvider:
    """Disabled insight service: never produces a summary."""

    def summarize(self, request: InsightRequest) -> str | None:  # noqa: ARG002
        return None

    def close(self) -> None:
        return


class HttpInsightProvider:
    """Call an OpenAI-compatible chat-completions endpoint with a bounded timeout."""

    def __init__(self, config: InsightConfig, client: httpx.Client | None = None) -> None:
        self.config = config
        api_key = config.api_key or os.environ.get("HUNTER_SWARM_INSIGHT_API_KEY")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        self._client = client or httpx.Client(timeout=config.timeout, headers=headers)
        self.logger = structlog.get_logger("hunter_swarm.insight")

    def summarize(self, request: InsightRequest) -> str | None:
        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": request.prompt()},
            ],
            "max_tokens": self.config.max_tokens,
        }
        try:
            response = self._client.post(
                self.config.endpoint, json=payload, timeout=self.config.timeout
            )
            response.raise_for_status()
            body = response.json()
            content = body["choices"][0]["message"]["content"]
        except httpx.TimeoutException as exc:
            raise EnrichmentServiceError(f"insight request timed out for {request.name}") from exc
        except (
            httpx.HTTPError, httpx.InvalidURL, ValueError, KeyError, IndexError, TypeError
        ) as exc:
            raise EnrichmentServiceError(f"insight request failed for {request.name}: {exc}") from exc
        if not isinstance(content, str):
            return None
        return content.strip() or None

    def close(self) -> None:
        self._client.close()


def build_insight_provider(config: InsightConfig) -> InsightProvider:
    if not config.enabled:
        return NullInsightProvider()
    return HttpInsightProvider(config)


__all__ = [
    "HttpInsightProvider",
    "InsightProvider",
    "InsightRequest",
    "NullInsightProvider",
    "build_insight_provider",
]
