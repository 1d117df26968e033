from __future__ import annotations

import os


def engine_name() -> str:
    return normalize_engine(os.getenv("ATLAS_ENGINE"))


def normalize_engine(name: str | None) -> str:
    n = (name or "in_memory").strip().lower()
    if n in {"duckdb", "in_memory"}:
        return n
    return "in_memory"


def duckdb_path() -> str:
    return (os.getenv("ATLAS_DUCKDB_PATH") or "").strip() or ":memory:"


def duckdb_threads() -> int:
    raw = (os.getenv("ATLAS_DUCKDB_THREADS") or "").strip()
    if raw:
        try:
            return max(1, int(raw))
        except ValueError:
            pass
    return max(1, int(os.cpu_count() or 1))
