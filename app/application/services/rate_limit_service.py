"""Tiered rate limiting over an atomic increment-with-expiry counter store.

Each tier is checked in order and yields an explicit outcome (TierCount or
TierStoreFailure). The fold stops at the first tier whose count exceeds its
cap; a failing tier is logged and skipped. When no tier decides (every tier
failed, or the last one failed) the request is admitted with the fallback
message: rate limiting fails open, unlike permission checks.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Sequence

from app.application.dtos.rate_limit import RequestMetadata
from app.application.interfaces.services import ICounterStore, ISecurityEventSink
from app.core.constants import RATE_LIMIT_ALLOWED_MESSAGE, RATE_LIMIT_FALLBACK_MESSAGE
from app.domain.enums import SecurityEventType
from app.domain.exceptions import CounterStoreError
from app.domain.value_objects import (
    RateLimitDecision,
    RateLimitTier,
    SecurityEvent,
    TierCount,
    TierOutcome,
    TierStoreFailure,
)
from app.infrastructure.cache.keys import rate_limit_key
from app.shared.telemetry.tracing import add_span_attributes, traced
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)


def retry_after_seconds(ttl_ms: int, window_seconds: int) -> int:
    """Seconds until the counter expires, at least 1.

    A counter without a readable expiry (ttl_ms < 0) is assumed to live for
    the whole window.
    """
    if ttl_ms < 0:
        return max(1, window_seconds)
    return max(1, math.ceil(ttl_ms / 1000))


class RateLimitService:
    """Admit or reject requests per client key across ordered tiers."""

    def __init__(
        self,
        store: ICounterStore,
        tiers: Sequence[RateLimitTier],
        sink: ISecurityEventSink | None = None,
        store_timeout_seconds: float = 0.5,
    ) -> None:
        if not tiers:
            raise ValueError("At least one rate-limit tier is required")
        self.store = store
        self.tiers = tuple(tiers)
        self.sink = sink
        self.store_timeout_seconds = store_timeout_seconds
        self._pending: set[asyncio.Task[None]] = set()

    async def _count_tier(self, index: int, tier: RateLimitTier, key: str) -> TierOutcome:
        """Increment one tier's counter; any store error or timeout becomes TierStoreFailure."""
        counter_key = rate_limit_key(index, key)
        try:
            reading = await asyncio.wait_for(
                self.store.increment(counter_key, tier.window_seconds),
                timeout=self.store_timeout_seconds,
            )
        except TimeoutError:
            return TierStoreFailure(index, "timeout")
        except CounterStoreError as e:
            return TierStoreFailure(index, str(e.details.get("reason") or e.message))
        except Exception as e:  # fail-open: an unexpected store error is still a tier failure
            return TierStoreFailure(index, f"{type(e).__name__}: {e}")
        return TierCount(index, reading)

    @traced("rate_limit.check_limit")
    async def check_limit(self, key: str, metadata: RequestMetadata) -> RateLimitDecision:
        """Return the decision for one request from key. Never raises.

        Args:
            key: Client key (identity:address or address).
            metadata: Endpoint and method, recorded in the security event on rejection.
        """
        last = len(self.tiers) - 1
        for index, tier in enumerate(self.tiers):
            outcome = await self._count_tier(index, tier, key)
            if isinstance(outcome, TierStoreFailure):
                logger.error(
                    "Rate limit store failure: tier=%s key=%s reason=%s",
                    index,
                    key,
                    outcome.reason,
                )
                continue
            reading = outcome.reading
            if reading.count > tier.max_attempts:
                retry_after = retry_after_seconds(reading.ttl_ms, tier.window_seconds)
                self._emit_exceeded(key, metadata, index, tier, reading.count)
                add_span_attributes(**{"ratelimit.allowed": False, "ratelimit.tier": index})
                return RateLimitDecision(
                    allowed=False,
                    tier_index=index,
                    message=tier.message,
                    retry_after_seconds=retry_after,
                )
            if index == last:
                add_span_attributes(**{"ratelimit.allowed": True, "ratelimit.tier": index})
                return RateLimitDecision(
                    allowed=True, tier_index=index, message=RATE_LIMIT_ALLOWED_MESSAGE
                )
        logger.warning("Rate limiter fell back to allow: key=%s", key)
        add_span_attributes(**{"ratelimit.allowed": True, "ratelimit.fallback": True})
        return RateLimitDecision(allowed=True, tier_index=0, message=RATE_LIMIT_FALLBACK_MESSAGE)

    async def reset(self, key: str) -> None:
        """Drop every tier counter for key (e.g. after a successful login)."""
        for index in range(len(self.tiers)):
            try:
                await asyncio.wait_for(
                    self.store.reset(rate_limit_key(index, key)),
                    timeout=self.store_timeout_seconds,
                )
            except (TimeoutError, CounterStoreError):
                logger.warning("Rate limit reset failed: tier=%s key=%s", index, key)

    def _emit_exceeded(
        self,
        key: str,
        metadata: RequestMetadata,
        index: int,
        tier: RateLimitTier,
        attempts: int,
    ) -> None:
        """Schedule the security event; the decision never waits on it."""
        if self.sink is None:
            return
        now = utc_now()
        event = SecurityEvent(
            type=SecurityEventType.RATE_LIMIT_EXCEEDED,
            timestamp=now,
            severity=tier.severity,
            details={
                "key": key,
                "endpoint": metadata.endpoint,
                "method": metadata.method,
                "tier": index,
                "attempts": attempts,
                "limit": tier.max_attempts,
                "window_seconds": tier.window_seconds,
                "timestamp": now.isoformat(),
            },
        )
        task = asyncio.create_task(self._emit(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _emit(self, event: SecurityEvent) -> None:
        try:
            await self.sink.emit(event)
        except Exception:
            logger.exception("Security event emission failed: type=%s", event.type.value)

    async def drain(self) -> None:
        """Wait for in-flight security event emissions (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
