"""Cache and counter key builders. Single place for key format (DRY).

Key components (tenant_id, role_id) must not contain CACHE_KEY_SEP to avoid
ambiguous or colliding keys. The rate-limit client key is always the last
component, so it may contain the separator (identity:address, IPv6).
"""

from app.core.constants import (
    CACHE_KEY_SEP,
    CACHE_PREFIX_PERMISSION,
    RATE_LIMIT_KEY_PREFIX,
)


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value contains the cache key separator.

    Args:
        value: String component used in a cache key.
        name: Name of the component (for error message).

    Raises:
        ValueError: If value contains CACHE_KEY_SEP.
    """
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def permission_key(tenant_id: str, role_id: str) -> str:
    """Cache key for a role's permission set (tenant + role)."""
    _validate_key_component(tenant_id, "tenant_id")
    _validate_key_component(role_id, "role_id")
    return (
        f"{CACHE_PREFIX_PERMISSION}{CACHE_KEY_SEP}{tenant_id}{CACHE_KEY_SEP}{role_id}"
    )


def tenant_permission_pattern(tenant_id: str) -> str:
    """Glob pattern matching every cached permission set of a tenant."""
    _validate_key_component(tenant_id, "tenant_id")
    return f"{CACHE_PREFIX_PERMISSION}{CACHE_KEY_SEP}{tenant_id}{CACHE_KEY_SEP}*"


def rate_limit_key(tier_index: int, client_key: str) -> str:
    """Counter key for one tier of one client key."""
    return f"{RATE_LIMIT_KEY_PREFIX}{CACHE_KEY_SEP}{tier_index}{CACHE_KEY_SEP}{client_key}"
