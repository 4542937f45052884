"""Domain enumerations for the rental access service.

Enums represent fixed sets of domain values (condition operators,
standard actions, severities, security event types).
"""

from enum import Enum


class ConditionOperator(str, Enum):
    """Operators allowed in permission attribute conditions."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    EXISTS = "exists"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid operator values as strings.

        Returns:
            List of enum value strings (e.g. for validation or serialization).
        """
        return [op.value for op in cls]


class StandardAction(str, Enum):
    """Built-in permission actions. Custom lowercase actions are also accepted."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"


class Severity(str, Enum):
    """Severity label attached to rate-limit tiers and security events."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SecurityEventType(str, Enum):
    """Security audit event types emitted by request-path controls."""

    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    PERMISSION_DENIED = "permission_denied"
