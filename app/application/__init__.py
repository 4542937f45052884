"""Application layer: interfaces, DTOs, services.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, cache, counters, sinks).
"""

from app.application.interfaces import (
    ICacheService,
    ICounterStore,
    IPermissionRepository,
    IRoleAssignmentRepository,
    IRoleRepository,
    ISecurityEventSink,
)
from app.application.services import (
    AuthorizationService,
    BehaviorTracker,
    PermissionService,
    RateLimitService,
    RoleAssignmentService,
    RoleService,
)

__all__ = [
    "AuthorizationService",
    "BehaviorTracker",
    "ICacheService",
    "ICounterStore",
    "IPermissionRepository",
    "IRoleAssignmentRepository",
    "IRoleRepository",
    "ISecurityEventSink",
    "PermissionService",
    "RateLimitService",
    "RoleAssignmentService",
    "RoleService",
]
