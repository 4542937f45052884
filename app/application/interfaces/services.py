"""Service interfaces (ports) for the application layer.

Protocols define contracts for infrastructure services (DIP): the
permission cache, the rate-limit counter store, and the security-event sink.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.domain.value_objects import CounterReading, SecurityEvent


# Cache service interface
class ICacheService(Protocol):
    """Minimal cache protocol for permission caching (DIP)."""

    def is_available(self) -> bool:
        """Return True if cache is connected."""

    async def get(self, key: str) -> Any:
        """Return cached value or None."""

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value with TTL. Returns True on success."""

    async def delete(self, key: str) -> bool:
        """Remove key. Returns True if deleted."""

    async def delete_pattern(self, pattern: str) -> int:
        """Remove keys matching a glob pattern. Returns count deleted."""


# Rate-limit counter store interface
class ICounterStore(Protocol):
    """Atomic increment-with-expiry counter store for rate limiting.

    increment() must count every concurrent call (no lost updates) and set
    the expiry only when it creates the key, so the window resets once it
    elapses.
    """

    async def increment(self, key: str, window_seconds: int) -> CounterReading:
        """Increment key; return post-increment count and remaining TTL in ms.

        Raises:
            CounterStoreError: If the store cannot complete the increment.
        """

    async def reset(self, key: str) -> None:
        """Drop the counter for key (e.g. after a successful login)."""


# Security event sink interface
class ISecurityEventSink(Protocol):
    """Destination for structured security audit events."""

    async def emit(self, event: SecurityEvent) -> None:
        """Record the event. Callers treat this as fire-and-forget."""
