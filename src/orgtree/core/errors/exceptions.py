"""Domain exceptions for the application.

These exceptions represent business-logic errors and are automatically
converted to RFC 7807 Problem Details responses by the exception handlers.
Hierarchy operations fail with exactly one of NotFoundError,
StructuralConflictError or DependencyConflictError.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a resource is missing or belongs to another tenant.

    Cross-tenant lookups raise this instead of a "forbidden" error so
    callers cannot probe for ids outside their tenant.

    Example:
        raise NotFoundError("Node not found", resource="node", resource_id=str(node_id))
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when there's a conflict with existing data.

    Example:
        raise ConflictError("Email already registered", details={"email": email})
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class StructuralConflictError(ConflictError):
    """Raised when a change would break the shape of a tenant's tree.

    Covers cycles and a second root for an existing tenant.
    """

    message = "Operation conflicts with the hierarchy structure"
    error_code = "structural_conflict"


class DependencyConflictError(ConflictError):
    """Raised when a node cannot be retired because something depends on it."""

    message = "Resource has active dependents"
    error_code = "dependency_conflict"


class ValidationError(AppException):
    """Raised when input data fails validation outside request parsing.

    Example:
        raise ValidationError(
            "Invalid input data",
            errors=[{"field": "name", "message": "Name must not be blank"}]
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)


class ServiceUnavailableError(AppException):
    """Raised when a required service is unavailable.

    Example:
        raise ServiceUnavailableError("Tenant hierarchy is locked")
    """

    message = "Service temporarily unavailable"
    error_code = "service_unavailable"
    status_code = 503
