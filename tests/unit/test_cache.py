from __future__ import annotations

from dateplanner.infrastructure.cache import TTLCache, make_cache_key


def test_entry_readable_until_ttl(fake_clock):
    cache = TTLCache(ttl=300, clock=fake_clock)
    cache.set("k", {"v": 1})
    fake_clock.now += 299.9
    assert cache.get("k") == {"v": 1}


def test_entry_expires_at_ttl_and_is_purged(fake_clock):
    cache = TTLCache(ttl=300, clock=fake_clock)
    cache.set("k", "value")
    fake_clock.now += 300
    assert cache.get("k") is None
    assert len(cache) == 0


def test_set_overwrites_and_restarts_ttl(fake_clock):
    cache = TTLCache(ttl=10, clock=fake_clock)
    cache.set("k", "old")
    fake_clock.now += 8
    cache.set("k", "new")
    fake_clock.now += 8
    assert cache.get("k") == "new"


def test_stats_and_clear(fake_clock):
    cache = TTLCache(ttl=10, clock=fake_clock)
    cache.set("a", 1)
    cache.get("a")
    cache.get("missing")
    stats = cache.stats
    assert stats["size"] == 1
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 0.5
    cache.clear()
    assert len(cache) == 0


def test_cache_key_normalizes_case_and_whitespace():
    assert make_cache_key("date_flow", "Austin, TX") == make_cache_key("date_flow", "  austin,   tx ")
    assert make_cache_key("date_flow", ["Jazz", "Art"]) == make_cache_key("date_flow", ["jazz", "art"])


def test_cache_key_separates_namespaces_and_values():
    assert make_cache_key("date_flow", "Austin") != make_cache_key("date_ideas", "Austin")
    assert make_cache_key("date_flow", "Austin") != make_cache_key("date_flow", "Dallas")
    assert make_cache_key("events", "Austin").startswith("events:")
