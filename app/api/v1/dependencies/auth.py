"""Auth and tenant dependencies (composition root).

The caller is identified by a bearer JWT; the tenant by the X-Tenant-ID
header, which must be well-formed and equal the token's tenant.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.application.dtos.principal import PrincipalContext
from app.core.config import get_settings
from app.core.tenant_validation import is_valid_tenant_id_format
from app.infrastructure.security.jwt import TokenClaims, verify_token

_http_bearer = HTTPBearer(auto_error=False)


async def get_tenant_id(request: Request) -> str:
    """Return the tenant id from the tenant header; 400 when missing or malformed."""
    name = get_settings().tenant_header_name
    value = request.headers.get(name)
    if not value:
        raise HTTPException(
            status_code=400,
            detail=f"Missing required header: {name}",
        )
    if not is_valid_tenant_id_format(value):
        raise HTTPException(
            status_code=400,
            detail="Invalid tenant ID format (use alphanumeric, hyphen, underscore; max 64 characters)",
        )
    return value


async def get_token_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> TokenClaims:
    """Return verified JWT claims; raise 401 if missing or invalid."""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return verify_token(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None


async def get_current_principal(
    claims: Annotated[TokenClaims, Depends(get_token_claims)],
    tenant_id: Annotated[str, Depends(get_tenant_id)],
) -> PrincipalContext:
    """Principal for this request; 403 when the header tenant differs from the token's."""
    if claims.tenant_id != tenant_id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return PrincipalContext(
        user_id=claims.user_id,
        tenant_id=claims.tenant_id,
        role_id=claims.role_id,
    )
