"""Domain value objects and shared value types."""

from app.domain.value_objects.core import WILDCARD, PermissionCode, RoleCode
from app.domain.value_objects.permission_condition import PermissionCondition
from app.domain.value_objects.rate_limit import (
    CounterReading,
    LimitPreset,
    RateLimitDecision,
    RateLimitTier,
    TierCount,
    TierOutcome,
    TierStoreFailure,
)
from app.domain.value_objects.security_event import SecurityEvent

__all__ = [
    "WILDCARD",
    "RoleCode",
    "PermissionCode",
    "PermissionCondition",
    "CounterReading",
    "LimitPreset",
    "RateLimitDecision",
    "RateLimitTier",
    "TierCount",
    "TierOutcome",
    "TierStoreFailure",
    "SecurityEvent",
]
