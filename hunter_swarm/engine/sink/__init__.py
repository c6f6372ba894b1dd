"""Sink SPI and implementations."""

from __future__ import annotations

from pathlib import Path

from ...config import DatabaseConfig
from .base import BaseSink, BatchResult, RowFailure, Stage
from .mongo_sink import MongoSink
from .sqlite_sink import SQLiteSink


def build_sink(config: DatabaseConfig, sqlite_path: Path) -> BaseSink:
    if config.backend == "mongodb":
        return MongoSink(config.mongo_uri, config.mongo_database, config.table)
    return SQLiteSink(sqlite_path, table=config.table)


__all__ = [
    "BaseSink",
    "BatchResult",
    "MongoSink",
    "RowFailure",
    "SQLiteSink",
    "Stage",
    "build_sink",
]
