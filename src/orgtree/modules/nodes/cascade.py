"""Descendant recomputation after a node's ancestry changed."""

from collections import deque

import structlog

from orgtree.modules.nodes.models import Node
from orgtree.modules.nodes.paths import derive
from orgtree.modules.nodes.repos import NodeRepository


logger = structlog.get_logger()


class DescendantCascader:
    """Rewrites path, level and ancestor ids below a changed node.

    Traversal is breadth-first: a child is only recomputed after its
    parent's new values have been written, so no descendant is ever
    derived from a stale parent. Nodes whose values are already correct
    are left untouched, which makes the cascade safe to re-run as a
    repair pass.
    """

    def __init__(self, repo: NodeRepository, separator: str) -> None:
        self.repo = repo
        self.separator = separator

    async def cascade(self, root: Node, actor: str | None = None) -> list[Node]:
        """Propagate ``root``'s committed values to all active descendants.

        Args:
            root: The node whose path, level or ancestor ids changed
            actor: Recorded as ``updated_by`` on every rewritten node

        Returns:
            The descendants that were rewritten, in traversal order
        """
        rewritten: list[Node] = []
        visited = {root.id}
        queue = deque([root])

        while queue:
            parent = queue.popleft()
            for child in await self.repo.list_children(parent.id, root.tenant_id):
                if child.id in visited:
                    logger.error(
                        "hierarchy_cycle_in_store",
                        tenant_id=str(root.tenant_id),
                        node_id=str(child.id),
                    )
                    continue
                visited.add(child.id)

                derived = derive(child.id, child.name, parent, self.separator)
                if not derived.matches(child):
                    derived.apply_to(child)
                    if actor is not None:
                        child.updated_by = actor
                    await self.repo.update(child)
                    rewritten.append(child)
                queue.append(child)

        logger.info(
            "cascade_completed",
            tenant_id=str(root.tenant_id),
            node_id=str(root.id),
            visited=len(visited) - 1,
            rewritten=len(rewritten),
        )
        return rewritten
