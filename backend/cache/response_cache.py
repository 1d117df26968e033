from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable

from cache.config import cache_max_entries, cache_ttl_s

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Any
    stored_at: float


class ResponseCache:
    """
    TTL + size bounded map of response payloads, safe to share across threads.

    Expired entries read as a miss and are dropped on that access or on the next
    `set`. When `set` pushes the table over `max_entries`, the oldest entries (by
    store time) go first. Stored payloads must not be mutated by callers.
    """

    def __init__(
        self,
        *,
        ttl_s: float = 300.0,
        max_entries: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_s <= 0:
            raise ValueError("ttl_s must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.ttl_s = float(ttl_s)
        self.max_entries = int(max_entries)
        self._clock = clock
        self._lock = threading.Lock()
        # Insertion order == store order; re-storing a key moves it to the end.
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @classmethod
    def from_env(cls) -> ResponseCache:
        return cls(ttl_s=cache_ttl_s(), max_entries=cache_max_entries())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at >= self.ttl_s

    def get(self, key: str) -> Any | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if self._expired(entry, now):
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return entry.payload

    def set(self, key: str, payload: Any) -> bool:
        """
        Store `payload` under `key`. Empty payloads are refused (returns False).
        """
        if not payload:
            return False
        now = self._clock()
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(key=key, payload=payload, stored_at=now)
            self._sweep(now)
        return True

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        expired = [k for k, e in self._entries.items() if self._expired(e, now)]
        for k in expired:
            del self._entries[k]
        evicted = 0
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
            evicted += 1
        if expired or evicted:
            logger.debug(
                "Response cache sweep: dropped %d expired, evicted %d (size=%d)",
                len(expired),
                evicted,
                len(self._entries),
            )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "maxEntries": self.max_entries,
                "ttlS": self.ttl_s,
                "hits": self.hits,
                "misses": self.misses,
            }
