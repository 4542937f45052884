"""Rate-limit value objects: tiers, per-tier outcomes, decisions, presets.

Per-tier counter results are explicit outcomes (TierCount or
TierStoreFailure) so the limiter folds them instead of relying on
exception flow.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from app.domain.enums import Severity


@dataclass(frozen=True)
class RateLimitTier:
    """One strictness level: at most max_attempts per window_seconds."""

    window_seconds: int
    max_attempts: int
    message: str
    severity: Severity = Severity.MEDIUM

    def __post_init__(self) -> None:
        if self.window_seconds <= 0:
            raise ValueError("Tier window_seconds must be positive")
        if self.max_attempts <= 0:
            raise ValueError("Tier max_attempts must be positive")
        if not isinstance(self.severity, Severity):
            object.__setattr__(self, "severity", Severity(self.severity))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RateLimitTier:
        return cls(
            window_seconds=int(data["window_seconds"]),
            max_attempts=int(data["max_attempts"]),
            message=str(data.get("message") or "Too many requests"),
            severity=Severity(data.get("severity", Severity.MEDIUM.value)),
        )


@dataclass(frozen=True)
class CounterReading:
    """Post-increment counter value and milliseconds until the window resets."""

    count: int
    ttl_ms: int


@dataclass(frozen=True)
class TierCount:
    """Successful per-tier increment."""

    tier_index: int
    reading: CounterReading


@dataclass(frozen=True)
class TierStoreFailure:
    """Per-tier increment that failed in the counter store (or timed out)."""

    tier_index: int
    reason: str


TierOutcome = TierCount | TierStoreFailure


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a tiered rate-limit check."""

    allowed: bool
    tier_index: int
    message: str
    retry_after_seconds: int | None = None


@dataclass(frozen=True)
class LimitPreset:
    """Advisory tier sizing suggested by the adaptive policy."""

    max_attempts: int
    window_seconds: int
