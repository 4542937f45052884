"""Tests for the Redis permission cache with a mocked client (no Redis server)."""

from unittest.mock import AsyncMock, MagicMock, patch

from app.core.config import get_settings
from app.infrastructure.cache import CacheService


def _cache_with(client: MagicMock) -> CacheService:
    return CacheService(redis_client=client, settings=get_settings())


async def test_get_decodes_json() -> None:
    client = MagicMock()
    client.get = AsyncMock(return_value='[{"id": "p1"}]')
    assert await _cache_with(client).get("permission:t1:r1") == [{"id": "p1"}]


async def test_corrupt_entry_is_a_miss() -> None:
    """A value that is not JSON reads as absent instead of failing the request."""
    client = MagicMock()
    client.get = AsyncMock(return_value="{truncated")
    assert await _cache_with(client).get("permission:t1:r1") is None


async def test_connect_bounds_socket_reads() -> None:
    settings = get_settings()
    with patch("redis.asyncio.Redis") as redis_cls:
        redis_cls.return_value.ping = AsyncMock(return_value=True)
        cache = CacheService(settings=settings)
        await cache.connect()
    assert cache.is_available()
    assert redis_cls.call_args.kwargs["socket_timeout"] == settings.store_timeout_seconds
