"""SQLAlchemy declarative base and common mixins."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from orgtree.core.constants import MAX_ACTOR_LENGTH


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UUIDMixin:
    """Mixin that adds a UUID primary key."""

    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=uuid4,
        index=True,
    )


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ActorMixin:
    """Mixin that records which caller created and last changed a row.

    Values are set by services from the caller identity, never taken
    from request bodies.
    """

    created_by: Mapped[str] = mapped_column(
        String(MAX_ACTOR_LENGTH),
        nullable=False,
    )
    updated_by: Mapped[str | None] = mapped_column(
        String(MAX_ACTOR_LENGTH),
        nullable=True,
    )
