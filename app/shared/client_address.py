"""Client identity helpers: originating address and rate-limit key derivation.

Single source of truth for deriving the client address from proxy headers
(X-Forwarded-For first hop, then CF-Connecting-IP, then X-Real-IP) and for
composing the identity:address limiter key.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

UNKNOWN_ADDRESS = "unknown"

# Checked in this order; first non-empty wins.
_ADDRESS_HEADERS: tuple[str, ...] = (
    "x-forwarded-for",
    "cf-connecting-ip",
    "x-real-ip",
)


def get_client_address(headers: Mapping[str, str]) -> str:
    """Return the originating client address from proxy headers, or 'unknown'.

    Args:
        headers: Case-insensitive header mapping (e.g. starlette Headers) or a
            dict with lowercase keys.
    """
    for name in _ADDRESS_HEADERS:
        raw = headers.get(name)
        if not raw:
            continue
        first = raw.split(",")[0].strip()
        if first:
            return first
    return UNKNOWN_ADDRESS


def extract_identity(body: Any, fields: Iterable[str]) -> str | None:
    """Return the first non-empty identity value in a JSON body, normalized.

    Only top-level string (or numeric) values are used; emails and
    usernames are lowercased so 'A@x.com' and 'a@x.com' share a key.
    """
    if not isinstance(body, Mapping):
        return None
    for name in fields:
        value = body.get(name)
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, (int, float)):
            value = str(value)
        if isinstance(value, str) and value.strip():
            return value.strip().lower()
    return None


def derive_rate_limit_key(identity: str | None, address: str) -> str:
    """Compose the limiter key: 'identity:address' when identity is known, else address."""
    if identity:
        return f"{identity}:{address}"
    return address
