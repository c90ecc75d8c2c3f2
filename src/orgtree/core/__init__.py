"""Core services and cross-cutting concerns."""

from orgtree.core.database import Base, get_db
from orgtree.core.errors import (
    AppException,
    ConflictError,
    DependencyConflictError,
    NotFoundError,
    StructuralConflictError,
    ValidationError,
    register_exception_handlers,
)


__all__ = [
    # Errors
    "AppException",
    # Database
    "Base",
    "ConflictError",
    "DependencyConflictError",
    "NotFoundError",
    "StructuralConflictError",
    "ValidationError",
    "get_db",
    "register_exception_handlers",
]
