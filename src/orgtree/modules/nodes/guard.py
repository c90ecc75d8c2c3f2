"""Cycle detection for re-parenting."""

from collections import deque
from uuid import UUID

import structlog

from orgtree.modules.nodes.repos import NodeRepository


logger = structlog.get_logger()


class CycleGuard:
    """Decides whether a proposed parent would make a node its own ancestor.

    Walks the live parent/child edges rather than trusting the
    materialized ancestor chains, so the answer stays correct even if a
    cascade was interrupted and left stale chains behind.
    """

    def __init__(self, repo: NodeRepository) -> None:
        self.repo = repo

    async def would_cycle(
        self,
        candidate_parent_id: UUID,
        moving_node_id: UUID,
        tenant_id: UUID,
    ) -> bool:
        """Check whether ``candidate_parent_id`` is the moving node or below it.

        Breadth-first over active children, stopping as soon as the
        candidate is found.

        Args:
            candidate_parent_id: The proposed new parent
            moving_node_id: The node being moved
            tenant_id: The tenant scope

        Returns:
            True if the move would create a cycle
        """
        if candidate_parent_id == moving_node_id:
            return True

        seen = {moving_node_id}
        queue = deque([moving_node_id])
        while queue:
            current = queue.popleft()
            for child in await self.repo.list_children(current, tenant_id):
                if child.id == candidate_parent_id:
                    return True
                if child.id in seen:
                    logger.error(
                        "hierarchy_cycle_in_store",
                        tenant_id=str(tenant_id),
                        node_id=str(child.id),
                    )
                    continue
                seen.add(child.id)
                queue.append(child.id)
        return False
