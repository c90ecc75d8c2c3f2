"""Materialized path derivation.

Pure helpers with no I/O: given a node's id and name and its parent's
current values, compute the node's path, level and ancestor chain.
"""

from typing import NamedTuple, Protocol
from uuid import UUID

from orgtree.core.constants import MAX_NAME_LENGTH


class ParentSnapshot(Protocol):
    """The parent attributes derivation reads."""

    path: str
    level: int
    ancestor_ids: list[str]


class Derivation(NamedTuple):
    """Derived ancestry of one node."""

    path: str
    level: int
    ancestor_ids: list[str]

    def matches(self, node: ParentSnapshot) -> bool:
        """Check whether a node already carries these values."""
        return (
            node.path == self.path
            and node.level == self.level
            and list(node.ancestor_ids) == self.ancestor_ids
        )

    def apply_to(self, node: ParentSnapshot) -> None:
        node.path = self.path
        node.level = self.level
        node.ancestor_ids = list(self.ancestor_ids)


def derive(
    node_id: UUID,
    name: str,
    parent: ParentSnapshot | None,
    separator: str,
) -> Derivation:
    """Compute path, level and ancestor ids for a node.

    Args:
        node_id: Id of the node being derived
        name: The node's (new) name
        parent: The parent's committed values, or None for a root
        separator: Path separator, e.g. " > "

    Returns:
        The node's derivation
    """
    if parent is None:
        return Derivation(path=name, level=0, ancestor_ids=[str(node_id)])
    return Derivation(
        path=f"{parent.path}{separator}{name}",
        level=parent.level + 1,
        ancestor_ids=[*parent.ancestor_ids, str(node_id)],
    )


def normalize_node_name(name: str, separator: str) -> str:
    """Strip a node name and check it can be embedded in a path.

    Raises:
        ValueError: If the name is blank, too long or contains the separator
    """
    name = name.strip()
    if not name:
        raise ValueError("Name must not be blank")
    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"Name must be at most {MAX_NAME_LENGTH} characters")
    if separator in name:
        raise ValueError(f"Name must not contain the path separator {separator!r}")
    return name
