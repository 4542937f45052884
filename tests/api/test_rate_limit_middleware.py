"""Tiered rate-limit middleware tests on guarded paths (/api/v1/authorization)."""

from types import SimpleNamespace
from typing import Callable
from unittest.mock import AsyncMock

from fastapi import FastAPI
from httpx import AsyncClient

from app.domain.enums import SecurityEventType
from app.domain.value_objects import RateLimitDecision
from app.middleware import RateLimitMiddleware
from tests.conftest import make_headers

CHECK_URL = "/api/v1/authorization/check"
BODY = {"resource": "lease", "action": "read"}


def _headers(address: str) -> dict[str, str]:
    return {**make_headers("renter-1"), "X-Forwarded-For": address}


async def test_eleventh_request_in_a_minute_is_rejected(client: AsyncClient) -> None:
    """First tier allows 10 per minute per key; the 11th gets 429 with Retry-After."""
    headers = _headers("203.0.113.10")
    for _ in range(10):
        response = await client.post(CHECK_URL, headers=headers, json=BODY)
        assert response.status_code == 200
        assert response.headers["X-RateLimit-Tier"] == "1"

    response = await client.post(CHECK_URL, headers=headers, json=BODY)
    assert response.status_code == 429
    assert response.json()["error"] == "RATE_LIMITED"
    assert response.headers["X-RateLimit-Tier"] == "0"
    assert 1 <= int(response.headers["Retry-After"]) <= 60


async def test_identity_in_body_separates_keys(client: AsyncClient) -> None:
    """Same address, different email: counted under identity:address independently."""
    headers = _headers("203.0.113.11")
    for _ in range(11):
        last = await client.post(CHECK_URL, headers=headers, json={**BODY, "email": "a@x.com"})
    assert last.status_code == 429

    response = await client.post(CHECK_URL, headers=headers, json={**BODY, "email": "B@x.com"})
    assert response.status_code == 200


async def test_addresses_are_counted_separately(client: AsyncClient) -> None:
    for _ in range(11):
        await client.post(CHECK_URL, headers=_headers("203.0.113.12"), json=BODY)
    response = await client.post(CHECK_URL, headers=_headers("203.0.113.13"), json=BODY)
    assert response.status_code == 200


async def test_buffered_body_still_reaches_route(
    client: AsyncClient, seeded_roles: dict[str, str]
) -> None:
    """The middleware reads the body for the identity; the route must still validate it."""
    headers = {**make_headers("renter-1", role_id=seeded_roles["tenant"]), "X-Forwarded-For": "203.0.113.14"}
    response = await client.post(CHECK_URL, headers=headers, json={**BODY, "email": "r@x.com"})
    assert response.status_code == 200
    assert response.json() == {"allowed": True}

    response = await client.post(CHECK_URL, headers=headers, json={"resource": "lease"})
    assert response.status_code == 422


async def test_unguarded_path_is_not_limited(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    for _ in range(12):
        response = await client.get("/api/v1/roles", headers=admin_headers)
        assert response.status_code == 200
        assert "X-RateLimit-Tier" not in response.headers


async def test_rejection_emits_security_event(app: FastAPI, client: AsyncClient) -> None:
    sink = AsyncMock()
    app.state.rate_limiter.sink = sink
    headers = _headers("203.0.113.15")
    for _ in range(11):
        await client.post(CHECK_URL, headers=headers, json=BODY)
    await app.state.rate_limiter.drain()

    sink.emit.assert_awaited_once()
    event = sink.emit.await_args.args[0]
    assert event.type is SecurityEventType.RATE_LIMIT_EXCEEDED
    assert event.details["key"] == "203.0.113.15"
    assert event.details["endpoint"] == CHECK_URL
    assert event.details["method"] == "POST"


async def test_outcomes_feed_behavior_tracker(app: FastAPI, client: AsyncClient) -> None:
    """2xx counts as success, 4xx as failure."""
    tracker = app.state.behavior_tracker
    await client.post(CHECK_URL, headers=_headers("203.0.113.16"), json=BODY)
    await client.post(
        CHECK_URL,
        headers={"X-Tenant-ID": "tenant-test", "X-Forwarded-For": "203.0.113.16"},
        json=BODY,
    )
    record = tracker.get("203.0.113.16")
    assert record.successful_attempts == 1
    assert record.failed_attempts == 1


async def test_store_outage_fails_open(app: FastAPI, client: AsyncClient) -> None:
    app.state.rate_limiter.store = AsyncMock()
    app.state.rate_limiter.store.increment.side_effect = RuntimeError("store down")
    for _ in range(12):
        response = await client.post(CHECK_URL, headers=_headers("203.0.113.17"), json=BODY)
        assert response.status_code == 200
        assert response.headers["X-RateLimit-Tier"] == "0"


async def test_large_body_is_streamed_not_buffered() -> None:
    """Only the first 64 KiB are read ahead of the limiter; the route still gets every byte."""
    chunk = b"x" * (32 * 1024)
    total_chunks = 64
    sent = 0

    async def receive() -> dict:
        nonlocal sent
        sent += 1
        return {"type": "http.request", "body": chunk, "more_body": sent < total_chunks}

    limiter = SimpleNamespace(
        check_limit=AsyncMock(return_value=RateLimitDecision(True, 1, "Request allowed"))
    )
    read_ahead: list[int] = []
    received = bytearray()

    async def route(scope: dict, receive: Callable, send: Callable) -> None:
        read_ahead.append(sent)
        while True:
            message = await receive()
            received.extend(message["body"])
            if not message["more_body"]:
                break
        await send({"type": "http.response.start", "status": 200, "headers": []})
        await send({"type": "http.response.body", "body": b""})

    middleware = RateLimitMiddleware(route, path_prefixes=["/api/v1/authorization"])
    scope = {
        "type": "http",
        "path": CHECK_URL,
        "method": "POST",
        "headers": [(b"content-type", b"application/json"), (b"x-forwarded-for", b"203.0.113.18")],
        "app": SimpleNamespace(state=SimpleNamespace(rate_limiter=limiter, behavior_tracker=None)),
    }
    await middleware(scope, receive, AsyncMock())

    assert read_ahead == [3]
    assert len(received) == len(chunk) * total_chunks
    limiter.check_limit.assert_awaited_once()
    assert limiter.check_limit.await_args.args[0] == "203.0.113.18"
