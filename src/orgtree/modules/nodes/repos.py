"""Node repository for database operations."""

from collections.abc import Sequence
from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy import Select, func, or_, select

from orgtree.api.dependencies import DBSession
from orgtree.modules.nodes.models import Node, NodeKind, NodeStatus


def _visible(stmt: Select[Any], tenant_id: UUID) -> Select[Any]:
    """Scope a node query to one tenant's active nodes."""
    return stmt.where(Node.tenant_id == tenant_id, Node.status == NodeStatus.ACTIVE)


class NodeRepository:
    """Repository for Node database operations.

    Every read is scoped to a tenant and, unless stated otherwise,
    to active nodes only.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, node: Node) -> Node:
        """Persist a new node and load its server-side defaults."""
        self.session.add(node)
        await self.session.flush()
        await self.session.refresh(node)
        return node

    async def update(self, node: Node) -> Node:
        """Flush pending changes to a node."""
        await self.session.flush()
        await self.session.refresh(node)
        return node

    async def commit(self) -> None:
        """Commit the unit of work."""
        await self.session.commit()

    async def get_by_id(
        self,
        node_id: UUID,
        tenant_id: UUID,
        include_retired: bool = False,
    ) -> Node | None:
        """Get a node by ID within a tenant.

        Args:
            node_id: The node's UUID
            tenant_id: The tenant scope
            include_retired: Also return retired nodes

        Returns:
            Node if found, None otherwise
        """
        stmt = select(Node).where(Node.id == node_id)
        if include_retired:
            stmt = stmt.where(Node.tenant_id == tenant_id)
        else:
            stmt = _visible(stmt, tenant_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(self, node_ids: Sequence[UUID], tenant_id: UUID) -> list[Node]:
        """Get active nodes by ID, in no particular order."""
        if not node_ids:
            return []
        stmt = _visible(select(Node).where(Node.id.in_(node_ids)), tenant_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_root(self, tenant_id: UUID) -> Node | None:
        """Get the active root of a tenant's tree."""
        stmt = _visible(select(Node).where(Node.parent_id.is_(None)), tenant_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_children(self, parent_id: UUID, tenant_id: UUID) -> list[Node]:
        """List the active children of a node ordered by name."""
        stmt = _visible(
            select(Node).where(Node.parent_id == parent_id), tenant_id
        ).order_by(Node.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_children(self, parent_id: UUID, tenant_id: UUID) -> int:
        """Count the active children of a node."""
        stmt = _visible(
            select(func.count()).select_from(Node).where(Node.parent_id == parent_id),
            tenant_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def find_by_path_prefix(
        self, prefix: str, tenant_id: UUID, separator: str
    ) -> list[Node]:
        """Find the node at ``prefix`` and every node beneath it.

        Matches on whole path segments, so "Sales" does not match
        "Salesforce". Siblings sharing a name share a path, so all of
        them are returned.

        Args:
            prefix: A materialized path, e.g. "Acme > Sales"
            tenant_id: The tenant scope
            separator: The path separator

        Returns:
            Matching nodes ordered by path
        """
        stmt = _visible(
            select(Node).where(
                or_(
                    Node.path == prefix,
                    Node.path.startswith(f"{prefix}{separator}", autoescape=True),
                )
            ),
            tenant_id,
        ).order_by(Node.path)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_tenant(
        self,
        tenant_id: UUID,
        kind: NodeKind | None = None,
        parent_id: UUID | None = None,
        level: int | None = None,
        search: str | None = None,
        max_depth: int | None = None,
    ) -> list[Node]:
        """List a tenant's active nodes ordered by path.

        Args:
            tenant_id: The tenant scope
            kind: Only nodes of this kind
            parent_id: Only children of this node
            level: Only nodes at this depth
            search: Case-insensitive substring of the name
            max_depth: Only nodes at or above this depth

        Returns:
            Matching nodes
        """
        stmt = _visible(select(Node), tenant_id)
        if kind is not None:
            stmt = stmt.where(Node.kind == kind)
        if parent_id is not None:
            stmt = stmt.where(Node.parent_id == parent_id)
        if level is not None:
            stmt = stmt.where(Node.level == level)
        if max_depth is not None:
            stmt = stmt.where(Node.level <= max_depth)
        if search:
            stmt = stmt.where(Node.name.icontains(search, autoescape=True))
        result = await self.session.execute(stmt.order_by(Node.path))
        return list(result.scalars().all())

    async def kind_stats(self, tenant_id: UUID) -> list[tuple[NodeKind, int, float]]:
        """Count active nodes and average their level per kind.

        Returns:
            (kind, count, average level) rows ordered by kind
        """
        stmt = (
            _visible(
                select(Node.kind, func.count(Node.id), func.avg(Node.level)),
                tenant_id,
            )
            .group_by(Node.kind)
            .order_by(Node.kind)
        )
        result = await self.session.execute(stmt)
        return [(kind, count, float(avg_level or 0)) for kind, count, avg_level in result.all()]


# Type alias for dependency injection
NodeRepo = Annotated[NodeRepository, Depends(NodeRepository)]
