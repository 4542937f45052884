"""Rate-limit counter stores (implement ICounterStore)."""

from app.infrastructure.counters.memory_counter_store import MemoryCounterStore
from app.infrastructure.counters.redis_counter_store import RedisCounterStore

__all__ = ["MemoryCounterStore", "RedisCounterStore"]
