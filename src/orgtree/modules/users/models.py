"""User database models."""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from orgtree.core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH
from orgtree.core.database.base import Base, TimestampMixin, UUIDMixin


ID_PATH_DELIMITER = "/"


def encode_id_path(ids: Iterable[str | UUID]) -> str:
    """Encode an ancestor chain as "/root/.../leaf/" for substring matching."""
    return ID_PATH_DELIMITER + "".join(f"{value}{ID_PATH_DELIMITER}" for value in ids)


def id_path_fragment(node_id: UUID) -> str:
    """The substring every id path containing ``node_id`` has."""
    return f"{ID_PATH_DELIMITER}{node_id}{ID_PATH_DELIMITER}"


class User(Base, UUIDMixin, TimestampMixin):
    """A person assigned to a node of a tenant's hierarchy.

    ``entity_id_path`` is a copy of the node's ancestor chain taken when
    the user was assigned. It is not rewritten when the node later
    moves, so it reflects the hierarchy at assignment time.

    Attributes:
        tenant_id: The tenant the user belongs to
        email: Email address, unique within the tenant
        full_name: User's full name
        is_active: Whether the user still occupies their node
        entity_id: The node the user is assigned to
        entity_id_path: Delimited ancestor chain of that node
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_tenant_email", "tenant_id", "email", unique=True),
        Index("ix_users_tenant_entity", "tenant_id", "entity_id"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    entity_id: Mapped[UUID] = mapped_column(
        ForeignKey("nodes.id"),
        nullable=False,
    )
    entity_id_path: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    @property
    def entity_ancestor_ids(self) -> list[UUID]:
        return [UUID(part) for part in self.entity_id_path.split(ID_PATH_DELIMITER) if part]

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, tenant_id={self.tenant_id})>"
