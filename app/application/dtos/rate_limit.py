"""DTO describing the request being rate limited (carried into security events)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestMetadata:
    """Endpoint path and HTTP method of the guarded request."""

    endpoint: str
    method: str
