"""In-process counter store for single-instance deployments and tests.

All reads and writes happen under one asyncio.Lock, so concurrent
increments of the same key are never lost. Expiry uses a monotonic clock.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections import OrderedDict
from collections.abc import Callable

from app.domain.value_objects import CounterReading

logger = logging.getLogger(__name__)


class MemoryCounterStore:
    """ICounterStore over a bounded dict; oldest windows are dropped first when full."""

    def __init__(
        self,
        max_keys: int = 100_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_keys < 1:
            raise ValueError("max_keys must be positive")
        self.max_keys = max_keys
        self._clock = clock
        self._lock = asyncio.Lock()
        # key -> (count, expires_at); insertion order == window start order
        self._counters: OrderedDict[str, tuple[int, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._counters)

    def _evict(self, now: float) -> None:
        expired = [k for k, (_, exp) in self._counters.items() if exp <= now]
        for k in expired:
            del self._counters[k]
        while len(self._counters) > self.max_keys:
            evicted, _ = self._counters.popitem(last=False)
            logger.debug("Counter store evicted %s", evicted)

    async def increment(self, key: str, window_seconds: int) -> CounterReading:
        async with self._lock:
            now = self._clock()
            entry = self._counters.get(key)
            if entry is None or entry[1] <= now:
                self._counters.pop(key, None)
                count, expires_at = 1, now + window_seconds
                self._counters[key] = (count, expires_at)
                if len(self._counters) > self.max_keys:
                    self._evict(now)
            else:
                count, expires_at = entry[0] + 1, entry[1]
                self._counters[key] = (count, expires_at)
            ttl_ms = max(0, math.ceil((expires_at - now) * 1000))
            return CounterReading(count=count, ttl_ms=ttl_ms)

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._counters.pop(key, None)
