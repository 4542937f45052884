"""HTTP middleware: timeout, request ID, tiered rate limiting.

Applied in main app; order matters (first added = outermost).
Import and use from app.main.
"""

from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware
from app.middleware.timeout import TimeoutMiddleware

__all__ = [
    "RateLimitMiddleware",
    "RequestIDMiddleware",
    "TimeoutMiddleware",
]
