"""Application services: authorization, RBAC administration, rate limiting."""

from app.application.services.adaptive_rate_policy import BehaviorRecord, BehaviorTracker
from app.application.services.authorization_service import AuthorizationService
from app.application.services.permission_service import PermissionService
from app.application.services.rate_limit_service import RateLimitService
from app.application.services.role_assignment_service import RoleAssignmentService
from app.application.services.role_service import RoleService

__all__ = [
    "AuthorizationService",
    "BehaviorRecord",
    "BehaviorTracker",
    "PermissionService",
    "RateLimitService",
    "RoleAssignmentService",
    "RoleService",
]
