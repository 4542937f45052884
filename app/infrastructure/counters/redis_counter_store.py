"""Redis counter store: atomic increment-with-expiry via one Lua script.

INCR and the conditional PEXPIRE run inside a single script, so concurrent
callers never lose an update and the expiry is set only by the call that
creates the key (the window starts at the first attempt).
"""

from __future__ import annotations

import logging

import redis.asyncio as redis

from app.domain.exceptions import CounterStoreError
from app.domain.value_objects import CounterReading

logger = logging.getLogger(__name__)

# KEYS[1] = counter key, ARGV[1] = window in ms. Returns {count, pttl_ms}.
_INCREMENT_LUA = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then
  redis.call('PEXPIRE', KEYS[1], ARGV[1])
end
local ttl = redis.call('PTTL', KEYS[1])
if ttl < 0 then
  redis.call('PEXPIRE', KEYS[1], ARGV[1])
  ttl = tonumber(ARGV[1])
end
return {count, ttl}
"""


class RedisCounterStore:
    """ICounterStore backed by Redis (shared across instances)."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client
        self._increment = client.register_script(_INCREMENT_LUA)

    async def increment(self, key: str, window_seconds: int) -> CounterReading:
        try:
            count, ttl_ms = await self._increment(
                keys=[key], args=[int(window_seconds * 1000)]
            )
        except redis.RedisError as e:
            raise CounterStoreError(key, str(e)) from e
        return CounterReading(count=int(count), ttl_ms=int(ttl_ms))

    async def reset(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except redis.RedisError as e:
            raise CounterStoreError(key, str(e)) from e
