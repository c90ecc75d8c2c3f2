"""Error handling module with RFC 7807 Problem Details."""

from orgtree.core.errors.exceptions import (
    AppException,
    ConflictError,
    DependencyConflictError,
    NotFoundError,
    ServiceUnavailableError,
    StructuralConflictError,
    ValidationError,
)
from orgtree.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    "AppException",
    "ConflictError",
    "DependencyConflictError",
    "FieldError",
    "NotFoundError",
    "ProblemDetail",
    "ServiceUnavailableError",
    "StructuralConflictError",
    "ValidationError",
    "register_exception_handlers",
]
