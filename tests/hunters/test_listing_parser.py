from __future__ import annotations

import httpx
import pytest

from hunter_swarm.config import DirectorySelectors, SourceSettings
from hunter_swarm.errors import SourceUnavailable
from hunter_swarm.hunters.fetcher import PageFetcher
from hunter_swarm.hunters.parser import ListingParser, parse_location, split_selector

PAGE = """
<html><body>
  <div class="business-listing">
    <h3>Maple Solutions</h3>
    <p class="description">IT consulting for public agencies</p>
    <a href="https://maple.ca">Website</a>
    <a class="phone" href="tel:4165550100"></a>
    <a class="email" href="mailto:info@maple.ca"></a>
    <span class="address">1 Bay St, Toronto, ON M5J 2T3</span>
    <span class="industry">Consulting</span>
    <span class="badge">CCAB Gold</span>
  </div>
  <div class="business-listing">
    <h4>Cedar Works</h4>
    <a href="/members/cedar" class="profile">Profile</a>
  </div>
  <div class="business-listing"><span>listing without a name</span></div>
  <nav class="pagination"><a class="next" href="/listings?page=2">Next</a></nav>
</body></html>
"""


def test_split_selector_modes() -> None:
    assert split_selector("a::attr:href") == ("a", "attr:href")
    assert split_selector(" .name ") == (".name", "text")
    assert split_selector("div::HTML") == ("div", "html")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1 Bay St, Toronto, ON M5J 2T3", ("1 Bay St", "Toronto", "ON")),
        ("Suite 4, 88 Main St, Regina, SK", ("Suite 4", "Regina", "SK")),
        ("Whitehorse YT", ("Whitehorse YT", None, "YT")),
        ("", (None, None, None)),
        (None, (None, None, None)),
    ],
)
def test_parse_location(text, expected) -> None:
    assert parse_location(text) == expected


def test_parse_listings_extracts_fields() -> None:
    rows = ListingParser().parse_listings(PAGE, "https://directory.example/listings")

    assert [row["name"] for row in rows] == ["Maple Solutions", "Cedar Works"]
    maple, cedar = rows
    assert maple["description"] == "IT consulting for public agencies"
    assert maple["website"] == "https://maple.ca"
    assert maple["phone"] == "tel:4165550100"
    assert maple["email"] == "mailto:info@maple.ca"
    assert maple["address"] == "1 Bay St, Toronto, ON M5J 2T3"
    assert maple["industry"] == "Consulting"
    assert maple["certification"] == "CCAB Gold"
    assert cedar["website"] is None
    assert cedar["phone"] is None


def test_custom_attribute_selector_resolves_relative_links() -> None:
    selectors = DirectorySelectors(website="a.profile::attr:href")
    rows = ListingParser(selectors).parse_listings(PAGE, "https://directory.example/listings")
    assert rows[1]["website"] == "https://directory.example/members/cedar"


def test_next_page_url() -> None:
    parser = ListingParser()
    assert (
        parser.next_page_url(PAGE, "https://directory.example/listings")
        == "https://directory.example/listings?page=2"
    )
    assert parser.next_page_url("<a class='next' href='#'>Next</a>", "https://x.example") is None
    assert parser.next_page_url("<p>last page</p>", "https://x.example") is None


def _fetcher(handler, attempts: int = 3) -> PageFetcher:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return PageFetcher("directory", SourceSettings(), client=client, attempts=attempts, backoff=0)


def test_fetcher_retries_transient_failures() -> None:
    statuses = iter([503, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(next(statuses), text="<html>ok</html>")

    with _fetcher(handler) as fetcher:
        assert fetcher.fetch("https://directory.example/listings") == "<html>ok</html>"


def test_fetcher_raises_source_unavailable_after_attempts() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        if len(calls) == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(404)

    with _fetcher(handler, attempts=2) as fetcher:
        with pytest.raises(SourceUnavailable) as excinfo:
            fetcher.fetch("https://directory.example/missing")

    assert len(calls) == 2
    assert excinfo.value.source == "directory"
    assert "404" in excinfo.value.message
