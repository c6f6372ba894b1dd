"""Plain HTTP page retrieval for hunters that do not need a browser."""

from __future__ import annotations

import time

import httpx
import structlog

from ..config import SourceSettings
from ..errors import SourceUnavailable
from ..infra import UserAgentPool


class PageFetcher:
    """Fetch HTML with a small retry loop; owned by a single hunter task."""

    def __init__(
        self,
        source: str,
        settings: SourceSettings,
        *,
        client: httpx.Client | None = None,
        ua_pool: UserAgentPool | None = None,
        attempts: int = 3,
        backoff: float = 1.0,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.source = source
        self.settings = settings
        self.attempts = max(1, attempts)
        self.backoff = backoff
        self.logger = logger or structlog.get_logger("hunter_swarm.fetcher")
        user_agent = (ua_pool or UserAgentPool()).get(settings.user_agent)
        self._client = client or httpx.Client(
            follow_redirects=True,
            timeout=settings.timeout,
            headers={"User-Agent": user_agent} if user_agent else None,
        )

    def __enter__(self) -> "PageFetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch(self, url: str) -> str:
        last_error: str = "no attempt made"
        for attempt in range(1, self.attempts + 1):
            try:
                response = self._client.get(url)
            except httpx.HTTPError as exc:
                last_error = str(exc)
                self.logger.warning("fetch_error", url=url, attempt=attempt, error=last_error)
            else:
                if self._is_failure(response):
                    last_error = f"unexpected status {response.status_code}"
                    self.logger.warning(
                        "fetch_bad_status", url=url, attempt=attempt, status=response.status_code
                    )
                else:
                    return response.text
            if attempt < self.attempts and self.backoff:
                time.sleep(self.backoff * 2 ** (attempt - 1))
        raise SourceUnavailable(
            self.source, f"fetch failed after {self.attempts} attempts: {url} ({last_error})"
        )

    @staticmethod
    def _is_failure(response: httpx.Response) -> bool:
        return response.status_code >= 400

    def close(self) -> None:
        self._client.close()


__all__ = ["PageFetcher"]
