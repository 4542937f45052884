"""Request ID middleware (raw ASGI).

Forwards a well-formed client X-Request-ID or mints one, echoes it on the
response, and publishes it on request_id_var so authorization denials and
rate-limit rejections logged during the request can be correlated.
"""

import re
import uuid
from typing import Callable

from app.middleware._asgi import get_header
from app.shared.telemetry.logging import request_id_var

REQUEST_ID_MAX_LENGTH = 64
# Client ids end up in log lines: no whitespace or control characters.
_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9_-]{1,%d}" % REQUEST_ID_MAX_LENGTH)


def resolve_request_id(raw: str | None) -> str:
    """Client-supplied id when it is safe to log, else a fresh uuid4."""
    candidate = (raw or "").strip()
    if _REQUEST_ID_RE.fullmatch(candidate):
        return candidate
    return str(uuid.uuid4())


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    header_bytes = header_name.lower().encode()

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = resolve_request_id(get_header(scope, header_name))
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_id(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (header_bytes, request_id.encode()),
                ]
            await send(message)

        token = request_id_var.set(request_id)
        try:
            await app(scope, receive, send_with_id)
        finally:
            request_id_var.reset(token)

    return asgi_app
