from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pymongo.errors import BulkWriteError, ServerSelectionTimeoutError

from hunter_swarm.config import DatabaseConfig
from hunter_swarm.engine.enrichment import EnrichmentEngine
from hunter_swarm.engine.sink import MongoSink, SQLiteSink, build_sink
from hunter_swarm.errors import PersistenceError
from hunter_swarm.records import CanonicalRecord


@pytest.fixture
def row_for(make_candidate):
    def _row(**overrides):
        return CanonicalRecord.from_candidate(make_candidate(**overrides)).to_row()

    return _row


def test_upsert_inserts_then_overwrites_on_natural_key(sqlite_sink: SQLiteSink, row_for) -> None:
    first = sqlite_sink.upsert_batch([row_for(description="first"), row_for(name="Cedar Ltd")])
    assert first.written == 2 and not first.failures

    second = sqlite_sink.upsert_batch([row_for(name="MAPLE SOLUTIONS", description="second")])
    assert second.written == 1

    assert sqlite_sink.count() == 2
    stored = {row["record_key"]: row for row in sqlite_sink.fetch_pending("enrichment", 10)}
    assert stored["maple_solutions|toronto"]["description"] == "second"


def test_row_failures_do_not_sink_the_batch(sqlite_sink: SQLiteSink, row_for) -> None:
    missing_key = row_for(name="Broken Co")
    del missing_key["name_key"]
    null_name = row_for(name="Null Name Co")
    null_name["name"] = None

    result = sqlite_sink.upsert_batch([row_for(), missing_key, null_name, row_for(name="Cedar")])

    assert result.written == 2
    assert sorted(failure.record_key for failure in result.failures) == [
        "broken|toronto",
        "null_name|toronto",
    ]
    assert sqlite_sink.count() == 2


def test_whole_batch_failure_raises(sqlite_sink: SQLiteSink, row_for) -> None:
    bad = row_for()
    bad["name"] = None
    with pytest.raises(PersistenceError):
        sqlite_sink.upsert_batch([bad])

    sqlite_sink.close()
    with pytest.raises(PersistenceError):
        sqlite_sink.upsert_batch([row_for()])


def test_fetch_pending_pages_by_record_key(sqlite_sink: SQLiteSink, row_for) -> None:
    names = ["Echo", "Alpha", "Delta", "Bravo", "Charlie"]
    sqlite_sink.upsert_batch([row_for(name=name) for name in names])

    seen: list[str] = []
    cursor = None
    while True:
        page = sqlite_sink.fetch_pending("enrichment", 2, after_key=cursor)
        if not page:
            break
        seen.extend(row["name"] for row in page)
        cursor = page[-1]["record_key"]

    assert seen == sorted(names)
    assert sqlite_sink.fetch_pending("scoring", 10) == []
    with pytest.raises(ValueError):
        sqlite_sink.fetch_pending("export", 10)


def test_stage_flags_move_rows_through_the_pipeline(sqlite_sink: SQLiteSink, make_candidate) -> None:
    canonical = CanonicalRecord.from_candidate(make_candidate())
    sqlite_sink.upsert_batch([canonical.to_row()])

    enriched = EnrichmentEngine().enrich(canonical)
    sqlite_sink.upsert_batch([enriched.to_row()])

    assert sqlite_sink.fetch_pending("enrichment", 10) == []
    [pending] = sqlite_sink.fetch_pending("scoring", 10)
    assert pending["enrichment"]["industry_classification"] == "Other"


def test_top_orders_by_priority(sqlite_sink: SQLiteSink, row_for) -> None:
    low = row_for(name="Low")
    high = row_for(name="High")
    high["priority_score"] = 90
    low["priority_score"] = 10
    sqlite_sink.upsert_batch([low, high])

    assert [row["name"] for row in sqlite_sink.top(5)] == ["High", "Low"]
    assert len(sqlite_sink.top(1)) == 1


def test_build_sink_picks_backend(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    sink = build_sink(DatabaseConfig(table="firms"), tmp_path / "x.db")
    assert isinstance(sink, SQLiteSink)
    assert sink.table == "firms"
    sink.close()

    created = {}

    class FakeMongo(MongoSink):
        def __init__(self, uri, database, collection, client=None):
            created.update(uri=uri, database=database, collection=collection)

    monkeypatch.setattr("hunter_swarm.engine.sink.MongoSink", FakeMongo)
    sink = build_sink(DatabaseConfig(backend="mongodb", mongo_database="db"), tmp_path / "x.db")
    assert isinstance(sink, FakeMongo)
    assert created == {"uri": "mongodb://localhost:27017", "database": "db", "collection": "businesses"}


@pytest.fixture
def mongo_client() -> MagicMock:
    return MagicMock()


def _collection(client: MagicMock) -> MagicMock:
    return client["hunter_swarm"]["businesses"]


def test_mongo_upsert_reports_write_errors(mongo_client: MagicMock, row_for) -> None:
    sink = MongoSink("mongodb://unused", "hunter_swarm", "businesses", client=mongo_client)
    collection = _collection(mongo_client)
    collection.bulk_write.side_effect = BulkWriteError(
        {"writeErrors": [{"index": 1, "errmsg": "duplicate key"}]}
    )
    no_key = {"record_key": "orphan|"}

    result = sink.upsert_batch([row_for(), no_key, row_for(name="Cedar")])

    operations = collection.bulk_write.call_args.args[0]
    assert len(operations) == 2
    assert collection.bulk_write.call_args.kwargs == {"ordered": False}
    assert result.written == 1
    assert [(f.record_key, f.error) for f in result.failures] == [
        ("orphan|", "row has no natural key"),
        ("cedar|toronto", "duplicate key"),
    ]


def test_mongo_connection_failure_is_persistence_error(mongo_client: MagicMock, row_for) -> None:
    sink = MongoSink("mongodb://unused", "hunter_swarm", "businesses", client=mongo_client)
    _collection(mongo_client).bulk_write.side_effect = ServerSelectionTimeoutError("no servers")
    with pytest.raises(PersistenceError):
        sink.upsert_batch([row_for()])


def test_mongo_fetch_pending_filters_and_sorts(mongo_client: MagicMock) -> None:
    sink = MongoSink("mongodb://unused", "hunter_swarm", "businesses", client=mongo_client)
    collection = _collection(mongo_client)
    collection.find.return_value.sort.return_value.limit.return_value = [{"name": "Maple"}]

    rows = sink.fetch_pending("scoring", 5, after_key="m")

    assert rows == [{"name": "Maple"}]
    query, projection = collection.find.call_args.args
    assert query == {"enriched": True, "scored": {"$ne": True}, "record_key": {"$gt": "m"}}
    assert projection == {"_id": 0}
    collection.find.return_value.sort.return_value.limit.assert_called_once_with(5)

    sink.close()
    mongo_client.close.assert_called_once()
