"""Raw-ASGI helpers shared by the middleware (header lookup, JSON responses)."""

import json
from typing import Any, Callable


def get_header(scope: dict, name: str) -> str | None:
    """Return first header value for name (case-insensitive). Headers are (bytes, bytes)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


def header_map(scope: dict) -> dict[str, str]:
    """Lowercase header name -> first value."""
    headers: dict[str, str] = {}
    for k, v in scope.get("headers", []):
        headers.setdefault(
            k.decode("latin-1").lower(), v.decode("utf-8", errors="replace")
        )
    return headers


async def send_json(
    send: Callable,
    status: int,
    content: dict[str, Any],
    headers: list[tuple[bytes, bytes]] | None = None,
) -> None:
    """Send a complete JSON response."""
    body = json.dumps(content).encode()
    await send({
        "type": "http.response.start",
        "status": status,
        "headers": [
            (b"content-type", b"application/json"),
            (b"content-length", str(len(body)).encode()),
            *(headers or []),
        ],
    })
    await send({
        "type": "http.response.body",
        "body": body,
        "more_body": False,
    })
