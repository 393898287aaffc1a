from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.utils import cache as cache_module
from app.utils.cache import CacheRegistry, TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def monotonic(self):
        return self.now


@pytest.fixture()
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(cache_module, "time", SimpleNamespace(monotonic=fake.monotonic))
    return fake


def test_loader_runs_once_until_expiry(clock):
    cache = TTLCache(ttl_seconds=30)
    calls = []

    def load():
        calls.append(1)
        return {"value": len(calls)}

    assert cache.get("k", load) == {"value": 1}
    assert cache.get("k", load) == {"value": 1}
    clock.now += 31
    assert cache.get("k", load) == {"value": 2}
    assert len(calls) == 2


def test_none_values_are_not_stored(clock):
    cache = TTLCache(ttl_seconds=30)
    cache.set("k", None)
    assert "k" not in cache
    assert cache.get("k") is None


def test_invalidate_and_eviction(clock):
    cache = TTLCache(ttl_seconds=30, maxsize=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert "a" not in cache
    assert cache.get_stats()["evictions"] == 1

    cache.invalidate("b")
    assert "b" not in cache
    assert cache.get("c") == 3


def test_disabled_cache_always_loads():
    cache = TTLCache(enabled=False)
    cache.set("k", 1)
    assert cache.get("k") is None
    assert cache.get("k", lambda: 7) == 7
    assert cache.get_stats()["enabled"] is False


def test_registry(clock):
    registry = CacheRegistry()
    weather = registry.register("weather", TTLCache())
    weather.set("k", 1)

    with pytest.raises(ValueError):
        registry.register("weather", TTLCache())
    assert registry.get_all_stats()["weather"]["size"] == 1

    registry.clear_all()
    assert registry.get_all_stats()["weather"]["size"] == 0


def test_invalidate_prefix_only_drops_matching_string_keys(clock):
    cache = TTLCache(ttl_seconds=30)
    cache.set("alert:HIVE-1:temperature", 1)
    cache.set("alert:HIVE-1:humidity", 2)
    cache.set("alert:HIVE-10:temperature", 3)
    cache.set(("current", 1.0, 2.0), {"temp": 20})

    assert cache.invalidate_prefix("alert:HIVE-1:") == 2
    assert "alert:HIVE-10:temperature" in cache
    assert ("current", 1.0, 2.0) in cache
