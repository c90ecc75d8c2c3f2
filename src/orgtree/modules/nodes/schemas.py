"""Pydantic schemas for hierarchy node operations."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from orgtree.config import settings
from orgtree.core.constants import MAX_NAME_LENGTH
from orgtree.modules.nodes.models import NodeKind
from orgtree.modules.nodes.paths import normalize_node_name


# JSON-like values allowed in a node's property bag
PropertyValue = str | int | float | bool | None | list[Any] | dict[str, Any]


class _NamedNode(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)

    @field_validator("name")
    @classmethod
    def name_fits_path(cls, v: str) -> str:
        """Strip the name and reject names that would corrupt paths."""
        return normalize_node_name(v, settings.hierarchy_path_separator)


class NodeCreate(_NamedNode):
    """Schema for creating a node.

    Omitting ``parent_id`` creates the root of a brand-new tenant.
    """

    kind: NodeKind
    parent_id: UUID | None = None
    properties: dict[str, PropertyValue] = Field(default_factory=dict)


class NodeRename(_NamedNode):
    """Schema for renaming a node."""


class NodeMove(BaseModel):
    """Schema for re-parenting a node."""

    new_parent_id: UUID | None = None


class NodeResponse(BaseModel):
    """Schema for node response data."""

    id: UUID
    tenant_id: UUID
    name: str
    kind: NodeKind
    parent_id: UUID | None
    path: str
    level: int
    ancestor_ids: list[UUID]
    properties: dict[str, Any]
    is_active: bool
    created_by: str
    updated_by: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NodeListResponse(BaseModel):
    """Schema for listing nodes."""

    items: list[NodeResponse]
    total: int


class KindStats(BaseModel):
    """Node count and average depth for one kind."""

    kind: NodeKind
    count: int
    average_level: float


class HierarchyStats(BaseModel):
    """Summary of a tenant's hierarchy."""

    total_nodes: int
    total_users: int
    by_kind: list[KindStats]


class RepairResponse(BaseModel):
    """Nodes rewritten by a repair pass."""

    repaired: list[NodeResponse]
    total: int
