"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure or app.api.
"""

from app.application.interfaces.repositories import (
    IPermissionRepository,
    IRoleAssignmentRepository,
    IRoleRepository,
)
from app.application.interfaces.services import (
    ICacheService,
    ICounterStore,
    ISecurityEventSink,
)

__all__ = [
    "ICacheService",
    "ICounterStore",
    "IPermissionRepository",
    "IRoleAssignmentRepository",
    "IRoleRepository",
    "ISecurityEventSink",
]
