"""Tenant and role id format validation.

Shared by the tenant header dependency, token verification and the seed
script, so an id that could break a cache key or a Firestore document path
is rejected in one place.
"""

import re

TENANT_ID_MAX_LENGTH = 64
# Alphanumeric, hyphen, underscore; no ':' (cache key separator) or '/' (document path).
_IDENTIFIER_RE = re.compile(
    r"^[a-zA-Z0-9_-]{1," + str(TENANT_ID_MAX_LENGTH) + r"}$"
)


def is_safe_identifier(value: str) -> bool:
    """Return True if value can be used as a cache key component and document id."""
    if not value or len(value) > TENANT_ID_MAX_LENGTH:
        return False
    return bool(_IDENTIFIER_RE.fullmatch(value))


def is_valid_tenant_id_format(value: str) -> bool:
    """Return True if value is a well-formed tenant id."""
    return is_safe_identifier(value)
