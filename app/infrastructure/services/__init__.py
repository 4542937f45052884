"""Infrastructure implementations of application service interfaces."""

from app.infrastructure.services.security_event_sink import (
    FirestoreSecurityEventSink,
    LoggingSecurityEventSink,
)
from app.infrastructure.services.tenant_initialization_service import (
    TenantInitializationService,
)

__all__ = [
    "FirestoreSecurityEventSink",
    "LoggingSecurityEventSink",
    "TenantInitializationService",
]
