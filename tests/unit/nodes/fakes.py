"""In-memory stand-in for the node repository."""

from types import SimpleNamespace
from uuid import UUID, uuid4

from orgtree.modules.nodes.paths import derive


SEP = " > "


class InMemoryNodes:
    """Just enough of NodeRepository for the guard and the cascader."""

    def __init__(self) -> None:
        self.tenant_id = uuid4()
        self.nodes: dict[UUID, SimpleNamespace] = {}
        self.updates: list[UUID] = []
        self.children_calls = 0

    def add(self, name: str, parent: SimpleNamespace | None = None) -> SimpleNamespace:
        node_id = uuid4()
        derived = derive(node_id, name, parent, SEP)
        node = SimpleNamespace(
            id=node_id,
            tenant_id=self.tenant_id,
            name=name,
            parent_id=parent.id if parent is not None else None,
            path=derived.path,
            level=derived.level,
            ancestor_ids=list(derived.ancestor_ids),
            updated_by=None,
        )
        self.nodes[node_id] = node
        return node

    async def list_children(self, parent_id: UUID, tenant_id: UUID) -> list[SimpleNamespace]:
        self.children_calls += 1
        return sorted(
            (
                node
                for node in self.nodes.values()
                if node.parent_id == parent_id and node.tenant_id == tenant_id
            ),
            key=lambda node: node.name,
        )

    async def update(self, node: SimpleNamespace) -> SimpleNamespace:
        self.updates.append(node.id)
        return node


def chain(repo: InMemoryNodes) -> dict[str, SimpleNamespace]:
    """R -> A -> B -> C and R -> D."""
    r = repo.add("R")
    a = repo.add("A", r)
    b = repo.add("B", a)
    c = repo.add("C", b)
    d = repo.add("D", r)
    return {"R": r, "A": a, "B": b, "C": c, "D": d}
