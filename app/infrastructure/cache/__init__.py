"""Cache: Redis and in-process permission caches plus key builders.

Both services satisfy ICacheService; key format is in keys.py (DRY).
"""

from app.infrastructure.cache.keys import (
    permission_key,
    rate_limit_key,
    tenant_permission_pattern,
)
from app.infrastructure.cache.memory_cache import MemoryCacheService
from app.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheService",
    "MemoryCacheService",
    "permission_key",
    "rate_limit_key",
    "tenant_permission_pattern",
]
