"""Listing-page extraction driven by CSS selectors."""

from __future__ import annotations

from typing import Any
from urllib.parse import urljoin

from selectolax.parser import HTMLParser, Node

from ..config import DirectorySelectors

PROVINCES = ("ON", "BC", "AB", "SK", "MB", "QC", "NB", "NS", "PE", "NL", "YT", "NT", "NU")

_LISTING_FIELDS = (
    "name",
    "description",
    "website",
    "phone",
    "email",
    "address",
    "industry",
    "certification",
)


def split_selector(selector: str) -> tuple[str, str]:
    """``"a::attr:href"`` -> ``("a", "attr:href")``; mode defaults to ``text``."""

    if "::" in selector:
        css, mode = selector.split("::", 1)
        return css.strip(), mode.strip().lower()
    return selector.strip(), "text"


def parse_location(text: str | None) -> tuple[str | None, str | None, str | None]:
    """Split ``"123 Bay Street, Toronto, ON M5J 2T3"`` into address, city, province.

    The province is the first known code appearing as a word; the city is the
    second-to-last comma-separated part.
    """

    if not text or not text.strip():
        return None, None, None
    tokens = text.replace(",", " ").split()
    province = next((token for token in tokens if token in PROVINCES), None)
    parts = [part.strip() for part in text.split(",")]
    if len(parts) > 1:
        return parts[0] or None, parts[-2] or None, province
    return text.strip(), None, province


class ListingParser:
    """Extract one raw record per listing node."""

    def __init__(self, selectors: DirectorySelectors | None = None) -> None:
        self.selectors = selectors or DirectorySelectors()

    def parse_listings(self, html: str, base_url: str) -> list[dict[str, Any]]:
        tree = HTMLParser(html)
        rows: list[dict[str, Any]] = []
        for node in tree.css(self.selectors.item):
            row = {field: self._extract(node, getattr(self.selectors, field)) for field in _LISTING_FIELDS}
            if not row["name"]:
                continue
            if row["website"]:
                row["website"] = urljoin(base_url, row["website"])
            rows.append(row)
        return rows

    def next_page_url(self, html: str, base_url: str) -> str | None:
        css, _ = split_selector(self.selectors.next_page)
        node = HTMLParser(html).css_first(css)
        if node is None:
            return None
        href = (node.attributes.get("href") or "").strip()
        if not href or href.startswith(("javascript:", "#")):
            return None
        return urljoin(base_url, href)

    @staticmethod
    def _extract(node: Node, selector: str) -> str | None:
        css, mode = split_selector(selector)
        if not css:
            return None
        target = node.css_first(css)
        if target is None:
            return None
        if mode == "html":
            value = target.html
        elif mode.startswith("attr:"):
            value = target.attributes.get(mode.split(":", 1)[1])
        else:
            value = target.text(separator=" ", strip=True)
            if not value:
                # tel:/mailto: links sometimes carry the value only in href
                value = target.attributes.get("href")
        if value is None:
            return None
        value = value.strip()
        return value or None


__all__ = ["ListingParser", "PROVINCES", "parse_location", "split_selector"]
