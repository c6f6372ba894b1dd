from __future__ import annotations

import pytest

from hunter_swarm.config import SourceSettings, SwarmConfig
from hunter_swarm.errors import SourceUnavailable
from hunter_swarm.hunters import (
    DirectoryHunter,
    GovernmentHunter,
    HuntQuery,
    YellowPagesHunter,
    build_hunter,
)
from hunter_swarm.hunters.yellowpages import GENERAL_QUERY_CAP
from hunter_swarm.records import CandidateRecord

LISTING = """
<div class="business-listing">
  <h3>{name}</h3>
  <a class="email" href="mailto:{email}"></a>
  <span class="address">{address}</span>
</div>
"""


def _page(*listings: tuple[str, str, str], next_url: str | None = None) -> str:
    body = "".join(
        LISTING.format(name=name, email=email, address=address) for name, email, address in listings
    )
    if next_url:
        body += f'<a class="next" href="{next_url}">Next</a>'
    return f"<html><body>{body}</body></html>"


class FakeFetcher:
    pages: dict[str, str] = {}

    def __init__(self, source, settings, **kwargs) -> None:
        self.source = source

    def __enter__(self) -> "FakeFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def fetch(self, url: str) -> str:
        if url not in self.pages:
            raise SourceUnavailable(self.source, f"unexpected status 404 for {url}")
        return self.pages[url]


@pytest.fixture
def directory(monkeypatch: pytest.MonkeyPatch, quiet_logger):
    monkeypatch.setattr("hunter_swarm.hunters.directory.PageFetcher", FakeFetcher)
    monkeypatch.setattr(FakeFetcher, "pages", {})
    settings = SourceSettings(url="https://directory.example/listings", use_browser=False)
    return DirectoryHunter(settings, logger=quiet_logger)


def test_directory_follows_pagination(directory) -> None:
    FakeFetcher.pages.update(
        {
            "https://directory.example/listings": _page(
                ("Maple Solutions", "info@maple.ca", "1 Bay St, Toronto, ON"),
                next_url="/listings?page=2",
            ),
            "https://directory.example/listings?page=2": _page(
                ("Cedar Works", "hello@cedar.ca", "9 Main St, Vancouver, BC"),
            ),
        }
    )

    result = directory.collect()

    assert result.ok and not result.synthetic
    assert [record["name"] for record in result.records] == ["Maple Solutions", "Cedar Works"]
    maple = result.records[0]
    assert maple["email"] == "info@maple.ca"
    assert (maple["city"], maple["province"]) == ("Toronto", "ON")
    assert maple["certifications"] == ["CCAB Certified"]
    assert maple["ownership_percentage"] == 51
    assert maple["indigenous_verified"] is True
    assert maple["source"] == "directory"
    assert maple["synthetic"] is False

    by_province = directory.collect(HuntQuery(kind="geography", value="bc"))
    assert [record["name"] for record in by_province.records] == ["Cedar Works"]


def test_directory_failure_substitutes_flagged_samples(directory) -> None:
    result = directory.collect()

    assert not result.ok
    assert result.synthetic
    assert isinstance(result.error, SourceUnavailable)
    assert len(result.records) == 3
    assert all(record["synthetic"] and record["source"] == "directory" for record in result.records)

    western = directory.collect(HuntQuery(kind="geography", value="BC"))
    assert [record["province"] for record in western.records] == ["BC"]


def test_directory_without_url_is_unavailable(quiet_logger) -> None:
    result = DirectoryHunter(SourceSettings(), logger=quiet_logger).collect(HuntQuery(limit=2))
    assert result.synthetic
    assert len(result.records) == 2
    assert "no directory url" in str(result.error)


def test_government_records_are_deterministic_and_valid(quiet_logger) -> None:
    query = HuntQuery(limit=25)
    first = GovernmentHunter(SourceSettings(seed=7), logger=quiet_logger).collect(query)
    second = GovernmentHunter(SourceSettings(seed=7), logger=quiet_logger).collect(query)

    assert first.records == second.records
    assert len(first.records) == 25
    assert len({record["phone"] for record in first.records}) == 25
    for raw in first.records:
        record = CandidateRecord.from_raw(raw)
        assert record.government_contractor and record.mandatory_industry
        assert record.current_compliance < 5
        assert len(record.contract_refs) >= 1
        assert record.priority_score == 100


def test_government_geography_and_record_cap(quiet_logger) -> None:
    hunter = GovernmentHunter(SourceSettings(max_records=3), logger=quiet_logger)

    assert len(hunter.collect(HuntQuery(limit=10)).records) == 3
    halifax = hunter.collect(HuntQuery(kind="geography", value="NS"))
    assert {record["city"] for record in halifax.records} == {"Halifax"}
    empty = hunter.collect(HuntQuery(kind="geography", value="YT"))
    assert empty.ok and empty.records == []


def test_yellowpages_industry_query(quiet_logger) -> None:
    hunter = YellowPagesHunter(logger=quiet_logger)
    result = hunter.collect(HuntQuery(kind="industry", value="Construction", limit=4))

    assert len(result.records) == 4
    for index, raw in enumerate(result.records, start=1):
        assert raw["industry"] == "Construction"
        assert raw["email"] == f"info@construction-company-{index}.ca"
        CandidateRecord.from_raw(raw)

    with pytest.raises(ValueError):
        hunter.collect(HuntQuery(kind="industry"))


def test_yellowpages_general_chunks_do_not_repeat(quiet_logger) -> None:
    hunter = YellowPagesHunter(logger=quiet_logger)
    first = hunter.collect(HuntQuery(kind="general", limit=4))
    second = hunter.collect(HuntQuery(kind="general", limit=4, offset=4))

    names = [record["name"] for record in first.records + second.records]
    assert len(set(names)) == 8
    assert second.records[0]["name"].endswith(" 5")


def test_yellowpages_general_query_is_capped(quiet_logger) -> None:
    hunter = YellowPagesHunter(SourceSettings(max_records=5000), logger=quiet_logger)
    result = hunter.collect(HuntQuery(kind="general", limit=1500))
    assert len(result.records) == GENERAL_QUERY_CAP


def test_unsupported_query_kind_is_rejected(quiet_logger) -> None:
    with pytest.raises(ValueError):
        YellowPagesHunter(logger=quiet_logger).collect(HuntQuery(kind="default"))
    with pytest.raises(ValueError):
        GovernmentHunter(logger=quiet_logger).collect(HuntQuery(kind="industry", value="IT"))


@pytest.mark.parametrize("limit", [0, -1])
def test_non_positive_limit_is_rejected(limit: int) -> None:
    with pytest.raises(ValueError, match="must be positive"):
        HuntQuery(limit=limit)


def test_build_hunter_uses_source_settings() -> None:
    config = SwarmConfig(sources={"government": SourceSettings(seed=3, max_records=9)})
    hunter = build_hunter("government", config)
    assert isinstance(hunter, GovernmentHunter)
    assert hunter.settings.max_records == 9
    with pytest.raises(ValueError):
        build_hunter("linkedin", config)
