"""Tiered rate-limit middleware.

Guards requests whose path starts with one of the configured prefixes. The
client key is identity:address when the JSON body names an identity (first
of the configured fields), else the address from proxy headers. Up to
max_identity_body_bytes of the body is buffered and replayed so the route
still receives it; the rest streams through untouched.

The limiter and the optional behavior tracker are read from app.state at
request time (they are created in the lifespan). Uses raw ASGI (no
BaseHTTPMiddleware) so the replayed body reaches the route unchanged.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any, Callable

from app.application.dtos.rate_limit import RequestMetadata
from app.core.constants import RATE_LIMIT_TIER_HEADER, RETRY_AFTER_HEADER
from app.middleware._asgi import get_header, header_map, send_json
from app.shared.client_address import (
    derive_rate_limit_key,
    extract_identity,
    get_client_address,
)

logger = logging.getLogger(__name__)

# At most this much of a body is buffered before the limiter decides. Larger
# bodies are keyed by address only and streamed on to the route.
DEFAULT_MAX_IDENTITY_BODY_BYTES = 64 * 1024


class _BufferedBody:
    """Body prefix read ahead of the limiter decision."""

    def __init__(self) -> None:
        self.chunks: list[bytes] = []
        self.size = 0
        self.complete = False
        self.disconnected = False

    @property
    def content(self) -> bytes | None:
        """Whole body, or None when it was cut off at the buffer limit."""
        return b"".join(self.chunks) if self.complete else None


async def _read_body(receive: Callable, max_bytes: int) -> _BufferedBody:
    """Read body chunks until the body ends or more than max_bytes are held."""
    buffered = _BufferedBody()
    while buffered.size <= max_bytes:
        message = await receive()
        if message["type"] == "http.disconnect":
            buffered.disconnected = True
            return buffered
        if message["type"] != "http.request":
            continue
        body = message.get("body", b"")
        buffered.chunks.append(body)
        buffered.size += len(body)
        if not message.get("more_body", False):
            buffered.complete = True
            return buffered
    return buffered


def _replay(buffered: _BufferedBody, receive: Callable) -> Callable:
    """Receive callable that yields the buffered chunks, then defers to the original."""
    pending = list(buffered.chunks) or [b""]

    async def replay_receive() -> dict:
        if pending:
            body = pending.pop(0)
            more = bool(pending) or not buffered.complete
            return {"type": "http.request", "body": body, "more_body": more}
        return await receive()

    return replay_receive


def _identity_from_body(scope: dict, body: bytes | None, fields: Sequence[str]) -> str | None:
    if not body:
        return None
    content_type = (get_header(scope, "content-type") or "").lower()
    if "json" not in content_type:
        return None
    try:
        parsed: Any = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    return extract_identity(parsed, fields)


def _path_is_guarded(path: str, prefixes: Sequence[str]) -> bool:
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in prefixes)


def RateLimitMiddleware(
    app: Callable,
    path_prefixes: Sequence[str],
    identity_fields: Sequence[str] = ("email", "username", "phone"),
    max_identity_body_bytes: int = DEFAULT_MAX_IDENTITY_BODY_BYTES,
) -> Callable:
    """Apply the tiered limiter to guarded paths; 429 with Retry-After when rejected. Raw ASGI."""
    prefixes = tuple(path_prefixes)
    fields = tuple(identity_fields)

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http" or not _path_is_guarded(scope.get("path", ""), prefixes):
            await app(scope, receive, send)
            return
        state = scope["app"].state
        limiter = getattr(state, "rate_limiter", None)
        if limiter is None:
            await app(scope, receive, send)
            return

        buffered = await _read_body(receive, max_identity_body_bytes)
        if buffered.disconnected:
            return
        address = get_client_address(header_map(scope))
        body = buffered.content if buffered.size <= max_identity_body_bytes else None
        identity = _identity_from_body(scope, body, fields)
        key = derive_rate_limit_key(identity, address)
        metadata = RequestMetadata(endpoint=scope.get("path", ""), method=scope.get("method", ""))

        decision = await limiter.check_limit(key, metadata)
        tier_header = (RATE_LIMIT_TIER_HEADER.encode(), str(decision.tier_index).encode())
        if not decision.allowed:
            logger.warning(
                "Rate limited: key=%s %s %s tier=%s",
                key,
                metadata.method,
                metadata.endpoint,
                decision.tier_index,
            )
            await send_json(
                send,
                429,
                {"error": "RATE_LIMITED", "message": decision.message},
                headers=[
                    (RETRY_AFTER_HEADER.encode(), str(decision.retry_after_seconds or 1).encode()),
                    tier_header,
                ],
            )
            return

        tracker = getattr(state, "behavior_tracker", None)
        status_code: int | None = None

        async def send_wrapper(message: dict) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = list(message.get("headers", []))
                headers.append(tier_header)
                message["headers"] = headers
            await send(message)

        await app(scope, _replay(buffered, receive), send_wrapper)

        # 429s from downstream limiters are not behavior signals.
        if tracker is not None and status_code is not None and status_code != 429:
            if status_code < 400:
                tracker.record_attempt(key, success=True)
            elif status_code < 500:
                tracker.record_attempt(key, success=False)

    return asgi_app
