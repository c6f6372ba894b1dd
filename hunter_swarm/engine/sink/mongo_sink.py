"""MongoDB sink implementation."""

from __future__ import annotations

from typing import Any, Sequence

from pymongo import ASCENDING, DESCENDING, MongoClient, UpdateOne
from pymongo.errors import BulkWriteError, PyMongoError

from ...errors import PersistenceError
from .base import BaseSink, BatchResult, RowFailure, Stage


class MongoSink(BaseSink):
    """Upsert rows into a MongoDB collection keyed on (name_key, city_key)."""

    def __init__(
        self,
        uri: str,
        database: str,
        collection: str,
        client: MongoClient | None = None,
    ) -> None:
        self.client = client or MongoClient(uri)
        self.collection = self.client[database][collection]
        self.collection.create_index(
            [("name_key", ASCENDING), ("city_key", ASCENDING)], unique=True
        )
        self.collection.create_index([("record_key", ASCENDING)])

    def upsert_batch(self, rows: Sequence[dict[str, Any]]) -> BatchResult:
        result = BatchResult()
        operations = []
        keys = []
        for row in rows:
            key = str(row.get("record_key", "?"))
            if "name_key" not in row or "city_key" not in row:
                result.failures.append(RowFailure(key, "row has no natural key"))
                continue
            operations.append(
                UpdateOne(
                    {"name_key": row["name_key"], "city_key": row["city_key"]},
                    {"$set": dict(row)},
                    upsert=True,
                )
            )
            keys.append(key)
        if not operations:
            return result
        try:
            self.collection.bulk_write(operations, ordered=False)
            result.written += len(operations)
        except BulkWriteError as exc:
            write_errors = exc.details.get("writeErrors", [])
            for error in write_errors:
                result.failures.append(RowFailure(keys[error["index"]], error.get("errmsg", "")))
            result.written += len(operations) - len(write_errors)
        except PyMongoError as exc:
            raise PersistenceError(f"bulk upsert failed: {exc}") from exc
        return result

    def fetch_pending(
        self, stage: Stage, limit: int, after_key: str | None = None
    ) -> list[dict[str, Any]]:
        if stage == "enrichment":
            query: dict[str, Any] = {"enriched": {"$ne": True}}
        elif stage == "scoring":
            query = {"enriched": True, "scored": {"$ne": True}}
        else:
            raise ValueError(f"Unknown stage: {stage}")
        if after_key:
            query["record_key"] = {"$gt": after_key}
        cursor = (
            self.collection.find(query, {"_id": 0})
            .sort("record_key", ASCENDING)
            .limit(limit)
        )
        return list(cursor)

    def top(self, limit: int = 20) -> list[dict[str, Any]]:
        cursor = (
            self.collection.find({}, {"_id": 0})
            .sort([("priority_score", DESCENDING), ("record_key", ASCENDING)])
            .limit(limit)
        )
        return list(cursor)

    def count(self) -> int:
        return int(self.collection.count_documents({}))

    def close(self) -> None:
        self.client.close()


__all__ = ["MongoSink"]
