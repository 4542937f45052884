"""Shared utilities: client identity, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from app.shared.client_address import (
    UNKNOWN_ADDRESS,
    derive_rate_limit_key,
    extract_identity,
    get_client_address,
)
from app.shared.utils import ensure_utc, generate_cuid, utc_now

__all__ = [
    "UNKNOWN_ADDRESS",
    "derive_rate_limit_key",
    "extract_identity",
    "get_client_address",
    "generate_cuid",
    "utc_now",
    "ensure_utc",
]
