"""Domain exceptions for the rental access service.

Defines domain-level exceptions that represent business rule violations
and store failures. Presentation layer maps them to HTTP responses in
exception handlers (see app.core.exception_handlers).
"""

from typing import Any


class RentalAccessException(Exception):
    """Base exception for all rental access errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON error responses."""
        body: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationException(RentalAccessException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(RentalAccessException):
    """Raised when authentication fails (e.g. invalid credentials or token)."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class AuthorizationException(RentalAccessException):
    """Raised when the principal lacks the permission for the operation.

    resource and action are kept on the instance for logging only; they are
    never put in details, so the client response stays generic.
    """

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Not authorized",
    ) -> None:
        """Initialize with optional resource and action (server-side context).

        Args:
            resource: Resource tag that was checked (e.g. 'contracts').
            action: Action that was attempted (e.g. 'update').
            message: Client-facing message; generic by default.
        """
        self.resource = resource
        self.action = action
        super().__init__(message, "PERMISSION_DENIED")


class ResourceNotFoundException(RentalAccessException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'role', 'permission').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class DuplicateAssignmentException(RentalAccessException):
    """Raised when assigning a role/permission that is already assigned."""

    def __init__(self, message: str, assignment_type: str, details_extra: dict[str, Any] | None = None) -> None:
        """Initialize with message and assignment context.

        Args:
            message: Human-readable description (e.g. 'Permission already assigned to role').
            assignment_type: 'role_permission' or 'user_role'.
            details_extra: Optional extra keys (e.g. role_id, permission_id).
        """
        details = details_extra or {}
        details["assignment_type"] = assignment_type
        super().__init__(message, "DUPLICATE_ASSIGNMENT", details)


class RoleInUseException(RentalAccessException):
    """Raised when deleting a role that active assignments still reference."""

    def __init__(self, role_id: str, assignment_count: int) -> None:
        super().__init__(
            f"Role is assigned to {assignment_count} user(s); revoke assignments first",
            "ROLE_IN_USE",
            {"role_id": role_id, "assignment_count": assignment_count},
        )


class SystemRoleProtectedException(RentalAccessException):
    """Raised when updating or deleting a system-defined role."""

    def __init__(self, role_id: str) -> None:
        super().__init__(
            "System roles cannot be modified",
            "SYSTEM_ROLE_PROTECTED",
            {"role_id": role_id},
        )


class StoreUnavailableException(RentalAccessException):
    """Raised when the role/permission store is unreachable or times out.

    Permission checks fail closed on this error: it is surfaced as 503 and
    never treated as an allow.
    """

    def __init__(self, operation: str, reason: str | None = None) -> None:
        """Initialize with the failed store operation.

        Args:
            operation: Store operation name (e.g. 'get_permissions_for_roles').
            reason: Optional low-level reason, logged server-side.
        """
        self.reason = reason
        super().__init__(
            "Authorization store unavailable",
            "STORE_UNAVAILABLE",
            {"operation": operation},
        )


class CounterStoreError(RentalAccessException):
    """Raised by a rate-limit counter store when an increment cannot complete."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(
            f"Counter store failed for {key}",
            "COUNTER_STORE_ERROR",
            {"key": key, "reason": reason},
        )
