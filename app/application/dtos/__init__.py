"""Application DTOs: use-case inputs that carry no HTTP or storage types."""

from app.application.dtos.principal import PermissionCheck, PrincipalContext
from app.application.dtos.rate_limit import RequestMetadata

__all__ = ["PermissionCheck", "PrincipalContext", "RequestMetadata"]
