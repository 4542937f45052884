"""Structured security audit event handed to a security-event sink."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.domain.enums import SecurityEventType, Severity


@dataclass(frozen=True)
class SecurityEvent:
    """Security event: type, free-form details, timestamp, severity."""

    type: SecurityEventType
    timestamp: datetime
    severity: Severity
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "details": dict(self.details),
            "timestamp": self.timestamp.isoformat(),
            "severity": self.severity.value,
        }
