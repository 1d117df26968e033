from __future__ import annotations

import threading

import pytest

from cache.keys import canonical_body_key, canonical_request_key
from cache.response_cache import ResponseCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_key_is_order_independent():
    a = canonical_request_key("/companies", [("country", "Germany"), ("limit", "10"), ("companyType", "equipment")])
    b = canonical_request_key("/companies", [("limit", "10"), ("companyType", "equipment"), ("country", "Germany")])
    assert a == b
    assert a != canonical_request_key("/companies/heatmap", [("country", "Germany")])
    assert a != canonical_request_key("/companies", [("country", "France"), ("limit", "10"), ("companyType", "equipment")])


def test_body_key_sorts_object_keys():
    a = canonical_body_key("/companies", {"country": ["Germany"], "limit": 10})
    b = canonical_body_key("/companies", {"limit": 10, "country": ["Germany"]})
    assert a == b


def test_hit_within_ttl_and_miss_after():
    clock = FakeClock()
    cache = ResponseCache(ttl_s=300, max_entries=10, clock=clock)
    cache.set("k", {"data": [1]})
    clock.now += 299
    assert cache.get("k") == {"data": [1]}
    clock.now += 1
    assert cache.get("k") is None
    assert len(cache) == 0
    assert cache.stats()["hits"] == 1
    assert cache.stats()["misses"] == 1


def test_oldest_entries_are_evicted_over_cap():
    clock = FakeClock()
    cache = ResponseCache(ttl_s=300, max_entries=3, clock=clock)
    for i in range(5):
        clock.now += 1
        cache.set(f"k{i}", {"i": i})
    assert len(cache) == 3
    assert cache.get("k0") is None
    assert cache.get("k1") is None
    assert cache.get("k4") == {"i": 4}


def test_restoring_a_key_refreshes_its_age():
    clock = FakeClock()
    cache = ResponseCache(ttl_s=300, max_entries=2, clock=clock)
    cache.set("a", {"v": 1})
    clock.now += 1
    cache.set("b", {"v": 2})
    clock.now += 1
    cache.set("a", {"v": 3})
    clock.now += 1
    cache.set("c", {"v": 4})
    assert cache.get("b") is None
    assert cache.get("a") == {"v": 3}


def test_empty_payloads_are_not_stored():
    cache = ResponseCache()
    assert cache.set("k", {}) is False
    assert cache.set("k", None) is False
    assert cache.get("k") is None


def test_invalid_configuration():
    with pytest.raises(ValueError):
        ResponseCache(ttl_s=0)
    with pytest.raises(ValueError):
        ResponseCache(max_entries=0)


def test_from_env(monkeypatch):
    monkeypatch.setenv("ATLAS_CACHE_TTL_S", "60")
    monkeypatch.setenv("ATLAS_CACHE_MAX_ENTRIES", "oops")
    cache = ResponseCache.from_env()
    assert cache.ttl_s == 60.0
    assert cache.max_entries == 100


def test_concurrent_writers_respect_the_cap():
    cache = ResponseCache(ttl_s=300, max_entries=50)

    def writer(n: int) -> None:
        for i in range(200):
            cache.set(f"{n}-{i}", {"i": i})
            cache.get(f"{n}-{i // 2}")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(cache) == 50
