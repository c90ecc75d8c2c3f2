"""Hierarchy service: tenant-scoped create, rename, move, retire and query."""

from typing import Annotated, Protocol
from uuid import UUID, uuid4

import structlog
from fastapi import Depends

from orgtree.config import settings
from orgtree.core.errors import (
    DependencyConflictError,
    NotFoundError,
    StructuralConflictError,
    ValidationError,
)
from orgtree.core.locks import TenantLock, TenantLockDep
from orgtree.modules.nodes.cascade import DescendantCascader
from orgtree.modules.nodes.guard import CycleGuard
from orgtree.modules.nodes.models import Node, NodeKind, NodeStatus
from orgtree.modules.nodes.paths import derive, normalize_node_name
from orgtree.modules.nodes.repos import NodeRepo
from orgtree.modules.nodes.schemas import HierarchyStats, KindStats, NodeCreate
from orgtree.modules.users.repos import UserRepo


logger = structlog.get_logger()


class OccupantRegistry(Protocol):
    """Anything that can tell whether records still point at a node."""

    async def count_active_in_node(self, tenant_id: UUID, node_id: UUID) -> int: ...

    async def count_active(self, tenant_id: UUID) -> int: ...


class HierarchyService:
    """Service for organizational hierarchy operations.

    Keeps every node's path, level and ancestor chain consistent with
    its parent chain. Structural changes hold the tenant lock from the
    first read until the commit, and are rejected before any write when
    they would break the tree.
    """

    def __init__(
        self,
        repo: NodeRepo,
        occupants: UserRepo,
        lock: TenantLockDep,
    ) -> None:
        self.repo = repo
        self.occupants: OccupantRegistry = occupants
        self.lock: TenantLock = lock
        self.separator = settings.hierarchy_path_separator
        self.guard = CycleGuard(repo)
        self.cascader = DescendantCascader(repo, self.separator)

    # ------------------------------------------------------------
    # Structural operations
    # ------------------------------------------------------------

    async def create(
        self,
        data: NodeCreate,
        tenant_id: UUID | None,
        actor: str,
    ) -> Node:
        """Create a node.

        Without a parent the node becomes the root of a new tenant and
        its own id becomes the tenant id.

        Args:
            data: Node creation data
            tenant_id: The caller's tenant, None when founding a tenant
            actor: Identity of the caller

        Returns:
            The created node

        Raises:
            NotFoundError: If the parent or tenant is not visible to the caller
            StructuralConflictError: If the tenant already has a root
        """
        name = self._clean_name(data.name)

        if data.parent_id is None:
            if tenant_id is not None:
                if await self.repo.get_root(tenant_id) is not None:
                    raise StructuralConflictError(
                        "Tenant already has a root node",
                        error_code="tenant_root_exists",
                        details={"tenant_id": str(tenant_id)},
                    )
                raise NotFoundError(
                    "Tenant not found",
                    resource="tenant",
                    resource_id=str(tenant_id),
                )
            node = await self.repo.create(
                self._new_node(name, data, parent=None, actor=actor)
            )
            await self.repo.commit()
            logger.info(
                "tenant_created",
                tenant_id=str(node.tenant_id),
                node_id=str(node.id),
                actor=actor,
            )
            return node

        if tenant_id is None:
            raise NotFoundError(
                "Parent node not found",
                resource="node",
                resource_id=str(data.parent_id),
            )

        async with self.lock.hold(tenant_id):
            parent = await self._get_parent(data.parent_id, tenant_id)
            node = await self.repo.create(
                self._new_node(name, data, parent=parent, actor=actor)
            )
            await self.repo.commit()

        logger.info(
            "node_created",
            tenant_id=str(tenant_id),
            node_id=str(node.id),
            parent_id=str(parent.id),
            level=node.level,
            actor=actor,
        )
        return node

    async def rename(
        self,
        node_id: UUID,
        new_name: str,
        tenant_id: UUID,
        actor: str,
    ) -> Node:
        """Rename a node and correct the paths of all its descendants.

        Level and ancestor ids do not change.

        Raises:
            NotFoundError: If the node is not visible to the caller
        """
        name = self._clean_name(new_name)

        async with self.lock.hold(tenant_id):
            node = await self.get_node(node_id, tenant_id)
            if name == node.name:
                return node

            old_name = node.name
            parent = None
            if node.parent_id is not None:
                parent = await self.repo.get_by_id(
                    node.parent_id, tenant_id, include_retired=True
                )

            node.name = name
            derive(node.id, name, parent, self.separator).apply_to(node)
            node.updated_by = actor
            await self.repo.update(node)
            rewritten = await self.cascader.cascade(node, actor=actor)
            await self.repo.commit()

        logger.info(
            "node_renamed",
            tenant_id=str(tenant_id),
            node_id=str(node_id),
            old_name=old_name,
            new_name=name,
            descendants_rewritten=len(rewritten),
            actor=actor,
        )
        return node

    async def move(
        self,
        node_id: UUID,
        new_parent_id: UUID | None,
        tenant_id: UUID,
        actor: str,
    ) -> Node:
        """Re-parent a node and cascade the change to its subtree.

        A tenant has exactly one root, so moving a non-root node to the
        top level is rejected; "moving" the root there is a no-op.

        Raises:
            NotFoundError: If the node or new parent is not visible
            StructuralConflictError: If the move would create a cycle or a
                second root
        """
        async with self.lock.hold(tenant_id):
            node = await self.get_node(node_id, tenant_id)

            if new_parent_id is None:
                if node.is_root:
                    return node
                raise StructuralConflictError(
                    "A tenant cannot have more than one root node",
                    error_code="second_root",
                    details={"node_id": str(node_id)},
                )

            new_parent = await self._get_parent(new_parent_id, tenant_id)

            if await self.guard.would_cycle(new_parent.id, node.id, tenant_id):
                logger.warning(
                    "move_rejected_cycle",
                    tenant_id=str(tenant_id),
                    node_id=str(node_id),
                    new_parent_id=str(new_parent_id),
                )
                raise StructuralConflictError(
                    "Cannot move a node beneath itself or its descendants",
                    error_code="hierarchy_cycle",
                    details={
                        "node_id": str(node_id),
                        "new_parent_id": str(new_parent_id),
                    },
                )

            if new_parent.id == node.parent_id:
                return node

            old_parent_id = node.parent_id
            node.parent_id = new_parent.id
            derive(node.id, node.name, new_parent, self.separator).apply_to(node)
            node.updated_by = actor
            await self.repo.update(node)
            rewritten = await self.cascader.cascade(node, actor=actor)
            await self.repo.commit()

        logger.info(
            "node_moved",
            tenant_id=str(tenant_id),
            node_id=str(node_id),
            old_parent_id=str(old_parent_id),
            new_parent_id=str(new_parent_id),
            level=node.level,
            descendants_rewritten=len(rewritten),
            actor=actor,
        )
        return node

    async def delete(self, node_id: UUID, tenant_id: UUID, actor: str) -> None:
        """Retire a node.

        The record is kept and flagged RETIRED; it disappears from every
        query. Children must be retired first, bottom-up.

        Raises:
            NotFoundError: If the node is not visible to the caller
            DependencyConflictError: If active children or occupants remain
        """
        async with self.lock.hold(tenant_id):
            node = await self.get_node(node_id, tenant_id)

            children = await self.repo.count_children(node.id, tenant_id)
            if children:
                raise DependencyConflictError(
                    "Cannot delete a node with active children",
                    error_code="node_has_children",
                    details={"node_id": str(node_id), "active_children": children},
                )

            occupants = await self.occupants.count_active_in_node(tenant_id, node.id)
            if occupants:
                raise DependencyConflictError(
                    "Cannot delete a node with active users",
                    error_code="node_has_occupants",
                    details={"node_id": str(node_id), "active_users": occupants},
                )

            node.status = NodeStatus.RETIRED
            node.updated_by = actor
            await self.repo.update(node)
            await self.repo.commit()

        logger.info(
            "node_retired",
            tenant_id=str(tenant_id),
            node_id=str(node_id),
            actor=actor,
        )

    async def repair_subtree(
        self,
        node_id: UUID,
        tenant_id: UUID,
        actor: str,
    ) -> list[Node]:
        """Re-derive a node and everything below it.

        Recovers a subtree left half-updated by an interrupted cascade.
        Running it on a consistent subtree changes nothing.

        Returns:
            The nodes that were rewritten
        """
        async with self.lock.hold(tenant_id):
            node = await self.get_node(node_id, tenant_id)
            parent = None
            if node.parent_id is not None:
                parent = await self.repo.get_by_id(
                    node.parent_id, tenant_id, include_retired=True
                )

            rewritten: list[Node] = []
            derived = derive(node.id, node.name, parent, self.separator)
            if not derived.matches(node):
                derived.apply_to(node)
                node.updated_by = actor
                await self.repo.update(node)
                rewritten.append(node)

            rewritten.extend(await self.cascader.cascade(node, actor=actor))
            await self.repo.commit()

        logger.info(
            "subtree_repaired",
            tenant_id=str(tenant_id),
            node_id=str(node_id),
            rewritten=len(rewritten),
            actor=actor,
        )
        return rewritten

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    async def get_node(self, node_id: UUID, tenant_id: UUID) -> Node:
        """Get an active node.

        Raises:
            NotFoundError: If missing, retired or in another tenant
        """
        node = await self.repo.get_by_id(node_id, tenant_id)
        if node is None:
            raise NotFoundError(
                "Node not found",
                resource="node",
                resource_id=str(node_id),
            )
        return node

    async def list_children(self, node_id: UUID, tenant_id: UUID) -> list[Node]:
        """List a node's active children."""
        node = await self.get_node(node_id, tenant_id)
        return await self.repo.list_children(node.id, tenant_id)

    async def list_ancestors(self, node_id: UUID, tenant_id: UUID) -> list[Node]:
        """List a node's ancestors root first, excluding the node itself.

        Resolved from the materialized ancestor chain in a single query.
        """
        node = await self.get_node(node_id, tenant_id)
        ancestor_ids = [UUID(value) for value in node.ancestor_ids[:-1]]
        by_id = {
            ancestor.id: ancestor
            for ancestor in await self.repo.get_many(ancestor_ids, tenant_id)
        }
        return [by_id[ancestor_id] for ancestor_id in ancestor_ids if ancestor_id in by_id]

    async def find_by_path_prefix(self, prefix: str, tenant_id: UUID) -> list[Node]:
        """Find the node at a path and everything beneath it."""
        prefix = prefix.strip()
        if not prefix:
            return []
        return await self.repo.find_by_path_prefix(prefix, tenant_id, self.separator)

    async def list_nodes(
        self,
        tenant_id: UUID,
        kind: NodeKind | None = None,
        parent_id: UUID | None = None,
        level: int | None = None,
        search: str | None = None,
    ) -> list[Node]:
        """List a tenant's nodes with optional filters, ordered by path."""
        return await self.repo.list_by_tenant(
            tenant_id,
            kind=kind,
            parent_id=parent_id,
            level=level,
            search=search,
        )

    async def get_hierarchy(
        self, tenant_id: UUID, max_depth: int | None = None
    ) -> list[Node]:
        """Get the whole tree in path order, optionally cut at a depth."""
        return await self.repo.list_by_tenant(tenant_id, max_depth=max_depth)

    async def get_stats(self, tenant_id: UUID) -> HierarchyStats:
        """Summarize node counts per kind and the tenant's active users."""
        rows = await self.repo.kind_stats(tenant_id)
        return HierarchyStats(
            total_nodes=sum(count for _, count, _ in rows),
            total_users=await self.occupants.count_active(tenant_id),
            by_kind=[
                KindStats(kind=kind, count=count, average_level=round(avg_level, 2))
                for kind, count, avg_level in rows
            ],
        )

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------

    def _clean_name(self, name: str) -> str:
        try:
            return normalize_node_name(name, self.separator)
        except ValueError as exc:
            raise ValidationError(
                str(exc),
                errors=[{"field": "name", "message": str(exc)}],
            ) from exc

    def _new_node(
        self,
        name: str,
        data: NodeCreate,
        parent: Node | None,
        actor: str,
    ) -> Node:
        node_id = uuid4()
        derived = derive(node_id, name, parent, self.separator)
        return Node(
            id=node_id,
            tenant_id=parent.tenant_id if parent is not None else node_id,
            name=name,
            kind=data.kind,
            parent_id=parent.id if parent is not None else None,
            path=derived.path,
            level=derived.level,
            ancestor_ids=derived.ancestor_ids,
            properties=dict(data.properties),
            status=NodeStatus.ACTIVE,
            created_by=actor,
        )

    async def _get_parent(self, parent_id: UUID, tenant_id: UUID) -> Node:
        parent = await self.repo.get_by_id(parent_id, tenant_id)
        if parent is None:
            raise NotFoundError(
                "Parent node not found",
                resource="node",
                resource_id=str(parent_id),
            )
        return parent


# Type alias for dependency injection
HierarchySvc = Annotated[HierarchyService, Depends(HierarchyService)]
