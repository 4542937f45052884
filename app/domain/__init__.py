"""Domain layer: entities, value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.entities import PermissionEntity, RoleAssignmentEntity, RoleEntity
from app.domain.enums import ConditionOperator, SecurityEventType, Severity, StandardAction
from app.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    CounterStoreError,
    DuplicateAssignmentException,
    RentalAccessException,
    ResourceNotFoundException,
    RoleInUseException,
    StoreUnavailableException,
    SystemRoleProtectedException,
    ValidationException,
)
from app.domain.value_objects import (
    PermissionCode,
    PermissionCondition,
    RateLimitDecision,
    RateLimitTier,
    RoleCode,
    SecurityEvent,
)

__all__ = [
    "PermissionEntity",
    "RoleAssignmentEntity",
    "RoleEntity",
    "ConditionOperator",
    "SecurityEventType",
    "Severity",
    "StandardAction",
    "AuthenticationException",
    "AuthorizationException",
    "CounterStoreError",
    "DuplicateAssignmentException",
    "RentalAccessException",
    "ResourceNotFoundException",
    "RoleInUseException",
    "StoreUnavailableException",
    "SystemRoleProtectedException",
    "ValidationException",
    "PermissionCode",
    "PermissionCondition",
    "RateLimitDecision",
    "RateLimitTier",
    "RoleCode",
    "SecurityEvent",
]
