"""Authorization API: check the caller's own permissions (single, all-of, any-of).

Any authenticated principal may check its own permissions; a denied check
is a normal 200 response with allowed=false.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.v1.dependencies import get_authorization_service, get_current_principal
from app.application.dtos.principal import PermissionCheck, PrincipalContext
from app.application.services import AuthorizationService
from app.schemas.authorization import (
    AuthorizationCheckRequest,
    AuthorizationCheckResponse,
    BatchAuthorizationCheckRequest,
)

router = APIRouter()


def _checks(body: BatchAuthorizationCheckRequest) -> list[PermissionCheck]:
    return [PermissionCheck(resource=c.resource, action=c.action) for c in body.checks]


@router.post("/check", response_model=AuthorizationCheckResponse)
async def check_permission(
    body: AuthorizationCheckRequest,
    principal: Annotated[PrincipalContext, Depends(get_current_principal)],
    authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
):
    """Return whether the caller may perform action on resource (for entity, if given)."""
    allowed = await authz.can(body.resource, body.action, principal.for_entity(body.entity))
    return AuthorizationCheckResponse(allowed=allowed)


@router.post("/check-all", response_model=AuthorizationCheckResponse)
async def check_all_permissions(
    body: BatchAuthorizationCheckRequest,
    principal: Annotated[PrincipalContext, Depends(get_current_principal)],
    authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
):
    """allowed is true when every check passes (an empty list passes)."""
    allowed = await authz.has_all(_checks(body), principal.for_entity(body.entity))
    return AuthorizationCheckResponse(allowed=allowed)


@router.post("/check-any", response_model=AuthorizationCheckResponse)
async def check_any_permission(
    body: BatchAuthorizationCheckRequest,
    principal: Annotated[PrincipalContext, Depends(get_current_principal)],
    authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
):
    """allowed is true when at least one check passes (an empty list fails)."""
    allowed = await authz.has_any(_checks(body), principal.for_entity(body.entity))
    return AuthorizationCheckResponse(allowed=allowed)
