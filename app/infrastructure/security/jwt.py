"""JWT access tokens carrying the caller's identity, tenant and optional role.

Claims: sub (user id), tenant_id, role_id (optional, the role pre-resolved
for the session), exp. Uses app.core.config for secret and algorithm.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import JWTError, jwt

from app.core.config import get_settings
from app.core.tenant_validation import is_safe_identifier


@dataclass(frozen=True)
class TokenClaims:
    """Verified identity claims extracted from an access token."""

    user_id: str
    tenant_id: str
    role_id: str | None = None


def create_access_token(
    user_id: str,
    tenant_id: str,
    role_id: str | None = None,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Create a signed JWT for user_id in tenant_id.

    Args:
        user_id: Subject (sub claim).
        tenant_id: Tenant the token is scoped to.
        role_id: Optional role pre-resolved for this session.
        expires_delta: Optional TTL; else settings.access_token_expire_minutes.
        extra_claims: Additional non-reserved claims.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    to_encode: dict[str, Any] = dict(extra_claims or {})
    to_encode.update({"sub": user_id, "tenant_id": tenant_id})
    if role_id:
        to_encode["role_id"] = role_id
    ttl = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = datetime.now(UTC) + ttl
    encoded = jwt.encode(
        to_encode,
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )
    return cast(str, encoded)


def verify_token(token: str) -> TokenClaims:
    """Verify and decode a JWT.

    Enforces presence of exp, sub and tenant_id. An optional role_id must be
    a safe identifier, since it becomes part of the permission cache key.

    Raises:
        ValueError: If token is invalid, expired, or missing required claims.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    user_id = payload.get("sub")
    tenant_id = payload.get("tenant_id")
    if not user_id or not isinstance(user_id, str):
        raise ValueError("Token missing required claim: sub")
    if not tenant_id or not isinstance(tenant_id, str):
        raise ValueError("Token missing required claim: tenant_id")
    role_id = payload.get("role_id") or None
    if role_id is not None and not (isinstance(role_id, str) and is_safe_identifier(role_id)):
        raise ValueError("Token claim role_id is malformed")
    return TokenClaims(user_id=user_id, tenant_id=tenant_id, role_id=role_id)
