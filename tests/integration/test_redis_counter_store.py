"""Redis counter store and cache integration tests. Require Redis; db 15 is flushed after each test."""

import asyncio

import pytest
import redis.asyncio as redis

from app.application.dtos import RequestMetadata
from app.application.services import RateLimitService
from app.domain.value_objects import RateLimitTier
from app.infrastructure.counters import RedisCounterStore


@pytest.mark.requires_redis
async def test_concurrent_increments_are_atomic(redis_client: redis.Redis) -> None:
    """50 concurrent increments of one key produce counts 1..50 exactly once."""
    store = RedisCounterStore(redis_client)
    readings = await asyncio.gather(*(store.increment("it:k", 60) for _ in range(50)))
    assert sorted(r.count for r in readings) == list(range(1, 51))


@pytest.mark.requires_redis
async def test_expiry_is_set_by_first_increment_only(redis_client: redis.Redis) -> None:
    store = RedisCounterStore(redis_client)
    first = await store.increment("it:ttl", 60)
    assert 0 < first.ttl_ms <= 60_000
    await asyncio.sleep(0.05)
    second = await store.increment("it:ttl", 60)
    assert second.count == 2
    assert second.ttl_ms < first.ttl_ms


@pytest.mark.requires_redis
async def test_reset_deletes_counter(redis_client: redis.Redis) -> None:
    store = RedisCounterStore(redis_client)
    await store.increment("it:reset", 60)
    await store.reset("it:reset")
    assert (await store.increment("it:reset", 60)).count == 1


@pytest.mark.requires_redis
async def test_limiter_over_redis_rejects_after_cap(redis_client: redis.Redis) -> None:
    tier = RateLimitTier(window_seconds=60, max_attempts=3, message="slow down")
    service = RateLimitService(RedisCounterStore(redis_client), [tier])
    meta = RequestMetadata(endpoint="/api/v1/auth/login", method="POST")
    results = [await service.check_limit("it-client", meta) for _ in range(4)]
    assert [r.allowed for r in results] == [True, True, True, False]
    assert results[-1].retry_after_seconds <= 60
