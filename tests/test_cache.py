"""
Tests for TTLCache: expiry on read, sweeping and the size bound.
"""

from __future__ import annotations

import pytest

from eth_network_analyzer.cache import TTLCache

from conftest import FakeClock


def test_get_returns_value_within_ttl():
    clock = FakeClock()
    cache = TTLCache(300, clock=clock)
    cache.set("k", {"v": 1})
    clock.advance(299.9)
    assert cache.get("k") == {"v": 1}


def test_entry_expires_exactly_at_ttl():
    """now - inserted_at >= ttl is a miss."""
    clock = FakeClock()
    cache = TTLCache(300, clock=clock)
    cache.set("k", "value")
    clock.advance(300)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_missing_key_is_a_miss():
    assert TTLCache(10).get("nope") is None


def test_set_refreshes_insertion_time():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("k", 1)
    clock.advance(8)
    cache.set("k", 2)
    clock.advance(8)
    assert cache.get("k") == 2


def test_sweep_removes_only_expired_entries():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("old", 1)
    clock.advance(6)
    cache.set("new", 2)
    clock.advance(5)
    assert cache.sweep() == 1
    assert "old" not in cache
    assert "new" in cache


def test_full_cache_evicts_expired_before_oldest():
    clock = FakeClock()
    cache = TTLCache(10, max_entries=2, clock=clock)
    cache.set("a", 1)
    clock.advance(11)
    cache.set("b", 2)
    cache.set("c", 3)
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_full_cache_evicts_oldest_insertion():
    cache = TTLCache(100, max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("c") == 3


def test_none_cannot_be_cached():
    with pytest.raises(ValueError):
        TTLCache(10).set("k", None)


def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        TTLCache(0)


def test_clear():
    cache = TTLCache(10)
    cache.set("k", 1)
    cache.clear()
    assert len(cache) == 0
