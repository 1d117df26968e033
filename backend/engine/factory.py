from __future__ import annotations

from engine.config import duckdb_path, duckdb_threads, normalize_engine
from engine.duckdb import DuckDBStore
from engine.in_memory import InMemoryStore
from engine.types import RecordStore
from records.load import load_records


def build_store(name: str | None) -> RecordStore:
    n = normalize_engine(name)
    if n == "duckdb":
        return DuckDBStore(
            path=duckdb_path(),
            threads=duckdb_threads(),
            records_loader=load_records,
        )
    return InMemoryStore(load_records())
