from __future__ import annotations

import os

DEFAULT_TTL_S = 300.0
DEFAULT_MAX_ENTRIES = 100


def cache_enabled() -> bool:
    raw = (os.getenv("ATLAS_CACHE") or "").strip().lower()
    return raw not in {"0", "false", "no", "off"}


def cache_ttl_s() -> float:
    raw = (os.getenv("ATLAS_CACHE_TTL_S") or "").strip()
    if raw:
        try:
            v = float(raw)
            if v > 0:
                return v
        except ValueError:
            pass
    return DEFAULT_TTL_S


def cache_max_entries() -> int:
    raw = (os.getenv("ATLAS_CACHE_MAX_ENTRIES") or "").strip()
    if raw:
        try:
            return max(1, int(raw))
        except ValueError:
            pass
    return DEFAULT_MAX_ENTRIES
