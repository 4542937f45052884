"""Tests for the in-process permission cache and cache key builders."""

import pytest

from app.infrastructure.cache import (
    MemoryCacheService,
    permission_key,
    rate_limit_key,
    tenant_permission_pattern,
)


async def test_set_get_returns_copy() -> None:
    cache = MemoryCacheService()
    await cache.set("k", [{"id": "p1"}], ttl=60)
    value = await cache.get("k")
    value.append({"id": "p2"})
    assert await cache.get("k") == [{"id": "p1"}]


async def test_expired_entry_is_a_miss() -> None:
    cache = MemoryCacheService()
    await cache.set("k", "v", ttl=0)
    assert await cache.get("k") is None
    assert len(cache) == 0


async def test_least_recently_used_entry_is_evicted() -> None:
    cache = MemoryCacheService(max_entries=2)
    await cache.set("a", 1)
    await cache.set("b", 2)
    await cache.get("a")
    await cache.set("c", 3)
    assert await cache.get("b") is None
    assert await cache.get("a") == 1
    assert await cache.get("c") == 3


async def test_delete_pattern_is_tenant_scoped() -> None:
    cache = MemoryCacheService()
    await cache.set(permission_key("t1", "r1"), [])
    await cache.set(permission_key("t1", "r2"), [])
    await cache.set(permission_key("t2", "r1"), [])
    assert await cache.delete_pattern(tenant_permission_pattern("t1")) == 2
    assert await cache.get(permission_key("t2", "r1")) == []
    assert await cache.delete("missing") is False


def test_key_builders() -> None:
    assert permission_key("t1", "r1") == "permission:t1:r1"
    assert rate_limit_key(0, "a@x.com:::1") == "ratelimit:0:a@x.com:::1"
    with pytest.raises(ValueError):
        permission_key("t:1", "r1")
