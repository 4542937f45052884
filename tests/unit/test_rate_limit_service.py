"""Tests for tiered RateLimitService over the in-memory counter store."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from app.application.dtos import RequestMetadata
from app.application.services import RateLimitService
from app.application.services.rate_limit_service import retry_after_seconds
from app.core.constants import RATE_LIMIT_ALLOWED_MESSAGE, RATE_LIMIT_FALLBACK_MESSAGE
from app.domain.enums import SecurityEventType, Severity
from app.domain.exceptions import CounterStoreError
from app.domain.value_objects import CounterReading, RateLimitTier
from app.infrastructure.counters import MemoryCounterStore

META = RequestMetadata(endpoint="/api/v1/auth/login", method="POST")

MINUTE_TIER = RateLimitTier(60, 10, "Too many attempts. Wait a minute.", Severity.MEDIUM)
HOUR_TIER = RateLimitTier(3600, 50, "Too many attempts. Try again later.", Severity.HIGH)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def limiter(clock: FakeClock, sink: AsyncMock) -> RateLimitService:
    return RateLimitService(MemoryCounterStore(clock=clock), [MINUTE_TIER, HOUR_TIER], sink=sink)


async def test_first_tier_rejects_eleventh_attempt(limiter: RateLimitService) -> None:
    """Ten attempts pass; the eleventh within the minute is rejected by tier 0."""
    for _ in range(10):
        decision = await limiter.check_limit("a@x.com:1.2.3.4", META)
        assert decision.allowed is True
        assert decision.message == RATE_LIMIT_ALLOWED_MESSAGE
        assert decision.tier_index == 1

    decision = await limiter.check_limit("a@x.com:1.2.3.4", META)
    assert decision.allowed is False
    assert decision.tier_index == 0
    assert decision.message == MINUTE_TIER.message
    assert 1 <= decision.retry_after_seconds <= 60


async def test_keys_are_counted_independently(limiter: RateLimitService) -> None:
    for _ in range(11):
        await limiter.check_limit("a@x.com:1.2.3.4", META)
    decision = await limiter.check_limit("b@x.com:1.2.3.4", META)
    assert decision.allowed is True


async def test_window_expiry_resets_count(limiter: RateLimitService, clock: FakeClock) -> None:
    for _ in range(11):
        await limiter.check_limit("k", META)
    clock.now += 61
    decision = await limiter.check_limit("k", META)
    assert decision.allowed is True


async def test_second_tier_rejects_after_sustained_attempts(
    limiter: RateLimitService, clock: FakeClock
) -> None:
    """Spread over several minutes, tier 0 never trips but tier 1 caps at 50 per hour."""
    for _ in range(5):
        for _ in range(10):
            assert (await limiter.check_limit("k", META)).allowed is True
        clock.now += 61
    decision = await limiter.check_limit("k", META)
    assert decision.allowed is False
    assert decision.tier_index == 1
    assert decision.message == HOUR_TIER.message
    assert decision.retry_after_seconds > 60


async def test_rejection_emits_security_event(limiter: RateLimitService, sink: AsyncMock) -> None:
    for _ in range(11):
        await limiter.check_limit("a@x.com:1.2.3.4", META)
    await limiter.drain()
    sink.emit.assert_awaited_once()
    event = sink.emit.await_args.args[0]
    assert event.type is SecurityEventType.RATE_LIMIT_EXCEEDED
    assert event.severity is Severity.MEDIUM
    assert event.details["key"] == "a@x.com:1.2.3.4"
    assert event.details["endpoint"] == "/api/v1/auth/login"
    assert event.details["tier"] == 0
    assert event.details["attempts"] == 11


async def test_sink_failure_does_not_affect_decision(clock: FakeClock) -> None:
    failing_sink = AsyncMock()
    failing_sink.emit.side_effect = RuntimeError("sink down")
    service = RateLimitService(MemoryCounterStore(clock=clock), [MINUTE_TIER], sink=failing_sink)
    for _ in range(10):
        await service.check_limit("k", META)
    decision = await service.check_limit("k", META)
    await service.drain()
    assert decision.allowed is False


async def test_store_failure_fails_open_with_fallback() -> None:
    """Every tier failing admits the request with the fallback message and tier 0."""
    store = AsyncMock()
    store.increment.side_effect = CounterStoreError("k", "connection refused")
    service = RateLimitService(store, [MINUTE_TIER, HOUR_TIER])
    decision = await service.check_limit("k", META)
    assert decision.allowed is True
    assert decision.tier_index == 0
    assert decision.message == RATE_LIMIT_FALLBACK_MESSAGE
    assert store.increment.await_count == 2


async def test_failing_tier_is_skipped_and_later_tier_decides() -> None:
    store = AsyncMock()
    store.increment.side_effect = [
        CounterStoreError("k", "boom"),
        CounterReading(count=51, ttl_ms=120_000),
    ]
    service = RateLimitService(store, [MINUTE_TIER, HOUR_TIER])
    decision = await service.check_limit("k", META)
    assert decision.allowed is False
    assert decision.tier_index == 1
    assert decision.retry_after_seconds == 120


async def test_slow_store_times_out_and_fails_open() -> None:
    async def slow_increment(key: str, window_seconds: int) -> CounterReading:
        await asyncio.sleep(1)
        return CounterReading(count=1, ttl_ms=60_000)

    store = AsyncMock()
    store.increment.side_effect = slow_increment
    service = RateLimitService(store, [MINUTE_TIER], store_timeout_seconds=0.01)
    decision = await service.check_limit("k", META)
    assert decision.allowed is True
    assert decision.message == RATE_LIMIT_FALLBACK_MESSAGE


async def test_reset_clears_counters(limiter: RateLimitService) -> None:
    for _ in range(11):
        await limiter.check_limit("k", META)
    await limiter.reset("k")
    assert (await limiter.check_limit("k", META)).allowed is True


def test_requires_at_least_one_tier() -> None:
    with pytest.raises(ValueError):
        RateLimitService(MemoryCounterStore(), [])


@pytest.mark.parametrize(
    ("ttl_ms", "window", "expected"),
    [(59_001, 60, 60), (1, 60, 1), (0, 60, 1), (-1, 60, 60), (-2, 3600, 3600)],
)
def test_retry_after_seconds(ttl_ms: int, window: int, expected: int) -> None:
    assert retry_after_seconds(ttl_ms, window) == expected
