"""SlowAPI limiter for administrative writes (role, permission and assignment changes).

The tiered request limiter lives in RateLimitMiddleware; this one only caps
how fast a single client can mutate RBAC data. Shared here so main
(app.state.limiter) and the route modules use one instance.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.shared.client_address import UNKNOWN_ADDRESS, get_client_address

WRITE_ENDPOINT_LIMIT = "120/minute"


def client_address_key(request: Request) -> str:
    """Same proxy-aware address the tiered limiter uses; socket peer when no proxy header."""
    address = get_client_address(request.headers)
    if address == UNKNOWN_ADDRESS:
        return get_remote_address(request)
    return address


limiter = Limiter(key_func=client_address_key)

limit_writes = limiter.limit(WRITE_ENDPOINT_LIMIT)
