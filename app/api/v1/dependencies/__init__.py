"""Presentation-layer dependency injection (composition root).

Routes depend only on these dependencies, not on infrastructure directly.
"""

from .auth import get_current_principal, get_tenant_id, get_token_claims
from .rbac import (
    get_authorization_service,
    get_permission_service,
    get_role_assignment_service,
    get_role_service,
    require_permission,
)

__all__ = [
    "get_authorization_service",
    "get_current_principal",
    "get_permission_service",
    "get_role_assignment_service",
    "get_role_service",
    "get_tenant_id",
    "get_token_claims",
    "require_permission",
]
