"""Tests for the in-memory TTL cache."""

from __future__ import annotations

import asyncio

import pytest

from guarded_rag.cache.ttl_cache import TTLCache
from guarded_rag.exceptions import CacheError


@pytest.fixture
def cache(clock):
    return TTLCache(default_ttl=None, clock=clock)


async def test_get_missing_key(cache):
    assert await cache.get("nope") is None


async def test_set_then_get_within_ttl(cache, clock):
    await cache.set("k", {"a": 1}, ttl=10)
    clock.advance(9.5)
    assert await cache.get("k") == {"a": 1}


async def test_entry_invisible_after_ttl(cache, clock):
    await cache.set("k", "v", ttl=10)
    clock.advance(10.01)
    assert await cache.get("k") is None
    assert cache.size == 0


async def test_default_ttl_applies(clock):
    cache = TTLCache(default_ttl=5, clock=clock)
    await cache.set("k", "v")
    clock.advance(6)
    assert await cache.get("k") is None


async def test_zero_ttl_uses_default(clock):
    cache = TTLCache(default_ttl=5, clock=clock)
    await cache.set("k", "v", ttl=0)
    clock.advance(4)
    assert await cache.get("k") == "v"
    clock.advance(2)
    assert await cache.get("k") is None


async def test_no_ttl_never_expires(cache, clock):
    await cache.set("k", "v")
    clock.advance(10**9)
    assert await cache.get("k") == "v"


async def test_delete_and_clear(cache):
    await cache.set("a", 1)
    await cache.set("b", 2)
    await cache.delete("a")
    assert await cache.get("a") is None
    await cache.clear()
    assert cache.size == 0


async def test_sweep_removes_only_expired(cache, clock):
    await cache.set("short", 1, ttl=1)
    await cache.set("long", 2, ttl=100)
    await cache.set("forever", 3)
    clock.advance(2)
    removed = await cache.sweep()
    assert removed == 1
    assert sorted(cache.stats()["keys"]) == ["forever", "long"]


async def test_background_sweep_runs(clock):
    cache = TTLCache(sweep_interval=0.01, clock=clock)
    await cache.set("k", "v", ttl=1)
    clock.advance(5)
    cache.start()
    try:
        for _ in range(50):
            if cache.size == 0:
                break
            await asyncio.sleep(0.01)
        assert cache.size == 0
    finally:
        await cache.close()


async def test_concurrent_writers(cache):
    await asyncio.gather(*(cache.set(f"k{i}", i) for i in range(100)))
    values = await asyncio.gather(*(cache.get(f"k{i}") for i in range(100)))
    assert values == list(range(100))


async def test_negative_ttl_rejected(cache):
    with pytest.raises(CacheError):
        await cache.set("k", "v", ttl=-1)
    assert cache.size == 0
