"""Hierarchy node database models."""

from enum import StrEnum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from orgtree.core.constants import MAX_ENUM_LENGTH, MAX_NAME_LENGTH
from orgtree.core.database.base import ActorMixin, Base, TimestampMixin, UUIDMixin


class NodeKind(StrEnum):
    """Semantic label of a node. Any kind may sit under any other."""

    ORGANIZATION = "organization"
    BUSINESS_UNIT = "business_unit"
    DEPARTMENT = "department"


class NodeStatus(StrEnum):
    """Soft-delete state. Retired nodes are invisible to every query."""

    ACTIVE = "active"
    RETIRED = "retired"

    @property
    def is_visible(self) -> bool:
        match self:
            case NodeStatus.ACTIVE:
                return True
            case NodeStatus.RETIRED:
                return False


def _enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


class Node(Base, UUIDMixin, TimestampMixin, ActorMixin):
    """One organizational unit in a tenant's tree.

    The parent is referenced by id only. ``path``, ``level`` and
    ``ancestor_ids`` are materialized from the parent chain and kept
    current by HierarchyService.

    Attributes:
        tenant_id: Id of the tenant root; equals ``id`` on the root itself
        name: Display name; siblings may share a name
        kind: Semantic label (organization, business unit, department)
        parent_id: Id of the parent node, None for the tenant root
        path: Ancestor names root-to-self joined by the path separator
        level: Number of ancestors (root is 0)
        ancestor_ids: Ancestor ids root-to-self, ending with this node's id
        properties: Caller-defined attributes, never read by the engine
        status: ACTIVE or RETIRED
    """

    __tablename__ = "nodes"
    __table_args__ = (
        Index("ix_nodes_tenant_parent", "tenant_id", "parent_id"),
        Index("ix_nodes_tenant_path", "tenant_id", "path"),
        Index("ix_nodes_tenant_status", "tenant_id", "status"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    kind: Mapped[NodeKind] = mapped_column(
        Enum(
            NodeKind,
            native_enum=False,
            length=MAX_ENUM_LENGTH,
            values_callable=_enum_values,
        ),
        nullable=False,
    )
    parent_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("nodes.id"),
        nullable=True,
    )
    path: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    level: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    ancestor_ids: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    properties: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        default=dict,
        nullable=False,
    )
    status: Mapped[NodeStatus] = mapped_column(
        Enum(
            NodeStatus,
            native_enum=False,
            length=MAX_ENUM_LENGTH,
            values_callable=_enum_values,
        ),
        default=NodeStatus.ACTIVE,
        nullable=False,
    )

    @property
    def is_active(self) -> bool:
        return self.status.is_visible

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def __repr__(self) -> str:
        return f"<Node(id={self.id}, path={self.path!r}, tenant_id={self.tenant_id})>"
