"""Unit tests for DescendantCascader."""

import pytest

from orgtree.modules.nodes.cascade import DescendantCascader
from orgtree.modules.nodes.paths import derive
from tests.unit.nodes.fakes import SEP, InMemoryNodes, chain


@pytest.fixture
def repo() -> InMemoryNodes:
    return InMemoryNodes()


class TestCascade:
    """Tests for DescendantCascader.cascade."""

    async def test_consistent_subtree_untouched(self, repo: InMemoryNodes):
        tree = chain(repo)
        cascader = DescendantCascader(repo, SEP)

        assert await cascader.cascade(tree["R"], actor="ops") == []
        assert repo.updates == []

    async def test_rewrites_after_move(self, repo: InMemoryNodes):
        """Moving A under D rewrites B and C from A's new values."""
        tree = chain(repo)
        a = tree["A"]
        a.parent_id = tree["D"].id
        derive(a.id, a.name, tree["D"], SEP).apply_to(a)
        cascader = DescendantCascader(repo, SEP)

        rewritten = await cascader.cascade(a, actor="ops")

        assert [node.name for node in rewritten] == ["B", "C"]
        assert tree["B"].path == "R > D > A > B"
        assert tree["C"].path == "R > D > A > B > C"
        assert tree["C"].level == 4
        assert tree["C"].ancestor_ids == [
            str(tree[name].id) for name in ("R", "D", "A", "B", "C")
        ]
        assert tree["C"].updated_by == "ops"

    async def test_rename_keeps_level_and_chain(self, repo: InMemoryNodes):
        tree = chain(repo)
        a = tree["A"]
        before = (tree["C"].level, list(tree["C"].ancestor_ids))
        a.name = "A2"
        derive(a.id, "A2", tree["R"], SEP).apply_to(a)

        await DescendantCascader(repo, SEP).cascade(a)

        assert tree["C"].path == "R > A2 > B > C"
        assert (tree["C"].level, tree["C"].ancestor_ids) == before
        assert tree["C"].updated_by is None

    async def test_parents_written_before_children(self, repo: InMemoryNodes):
        """Breadth-first order writes each parent before its children."""
        tree = chain(repo)
        tree["R"].name = "Acme"
        derive(tree["R"].id, "Acme", None, SEP).apply_to(tree["R"])

        await DescendantCascader(repo, SEP).cascade(tree["R"])

        order = [repo.nodes[node_id].name for node_id in repo.updates]
        assert order.index("A") < order.index("B") < order.index("C")

    async def test_second_run_is_noop(self, repo: InMemoryNodes):
        tree = chain(repo)
        tree["R"].name = "Acme"
        derive(tree["R"].id, "Acme", None, SEP).apply_to(tree["R"])
        cascader = DescendantCascader(repo, SEP)
        await cascader.cascade(tree["R"])

        assert await cascader.cascade(tree["R"]) == []
