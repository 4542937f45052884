"""Adaptive rate-limit policy: per-client behavior tracking and advisory presets.

BehaviorTracker is an explicitly owned, size-bounded LRU map (keyed by
identity:address) injected where it is needed. It never enforces anything;
suggest_limits() only proposes how strict a tier could be for a client.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.domain.value_objects import LimitPreset
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_WINDOW = timedelta(minutes=5)

STRICT_PRESET = LimitPreset(max_attempts=3, window_seconds=15 * 60)
ELEVATED_PRESET = LimitPreset(max_attempts=5, window_seconds=5 * 60)
DEFAULT_PRESET = LimitPreset(max_attempts=10, window_seconds=60)


@dataclass
class BehaviorRecord:
    """Attempt counters and last activity for one client key."""

    successful_attempts: int = 0
    failed_attempts: int = 0
    last_activity: datetime | None = None

    @property
    def total_attempts(self) -> int:
        return self.successful_attempts + self.failed_attempts

    @property
    def failure_rate(self) -> float:
        total = self.total_attempts
        return self.failed_attempts / total if total else 0.0


def score_record(record: BehaviorRecord | None, now: datetime | None = None) -> int:
    """Risk score in [0, 100] for a behavior record (0 for unknown clients)."""
    if record is None:
        return 0
    now = now or utc_now()
    score = 0
    if record.last_activity is not None and now - record.last_activity < RECENT_ACTIVITY_WINDOW:
        score += 20
    if record.failure_rate > 0.5:
        score += 30
    if record.failed_attempts > 3:
        score += 25
    if record.successful_attempts > 5:
        score -= 15
    return max(0, min(100, score))


def preset_for_score(score: int) -> LimitPreset:
    """Map a risk score to a limit preset (score > 70 strict, > 40 elevated)."""
    if score > 70:
        return STRICT_PRESET
    if score > 40:
        return ELEVATED_PRESET
    return DEFAULT_PRESET


class BehaviorTracker:
    """Bounded LRU of client behavior; least recently active entries are evicted."""

    def __init__(self, max_entries: int = 1000) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._records: OrderedDict[str, BehaviorRecord] = OrderedDict()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def get(self, key: str) -> BehaviorRecord | None:
        """Return the record without refreshing its recency."""
        return self._records.get(key)

    def record_attempt(self, key: str, success: bool, now: datetime | None = None) -> BehaviorRecord:
        """Count one attempt for key and mark it most recently active."""
        record = self._records.get(key)
        if record is None:
            record = BehaviorRecord()
            self._records[key] = record
        if success:
            record.successful_attempts += 1
        else:
            record.failed_attempts += 1
        record.last_activity = now or utc_now()
        self._records.move_to_end(key)
        while len(self._records) > self.max_entries:
            evicted, _ = self._records.popitem(last=False)
            logger.debug("Behavior tracker evicted %s", evicted)
        return record

    def risk_score(self, key: str, now: datetime | None = None) -> int:
        return score_record(self._records.get(key), now)

    def suggest_limits(self, key: str, now: datetime | None = None) -> LimitPreset:
        """Advisory preset for key; callers decide whether to apply it."""
        return preset_for_score(self.risk_score(key, now))
