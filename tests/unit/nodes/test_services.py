"""Unit tests for HierarchyService with a mocked repository."""

from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from orgtree.core.errors import (
    DependencyConflictError,
    NotFoundError,
    StructuralConflictError,
    ValidationError,
)
from orgtree.core.locks import LocalTenantLock
from orgtree.modules.nodes.models import NodeKind
from orgtree.modules.nodes.services import HierarchyService
from tests.factories.node import ACTOR, NodeCreateFactory


@pytest.fixture
def repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def occupants() -> AsyncMock:
    mock = AsyncMock()
    mock.count_active_in_node.return_value = 0
    return mock


@pytest.fixture
def service(repo: AsyncMock, occupants: AsyncMock) -> HierarchyService:
    return HierarchyService(repo=repo, occupants=occupants, lock=LocalTenantLock())


def _node(**overrides) -> SimpleNamespace:
    node_id = uuid4()
    values = {
        "id": node_id,
        "tenant_id": uuid4(),
        "name": "A",
        "parent_id": uuid4(),
        "path": "R > A",
        "level": 1,
        "ancestor_ids": [str(uuid4()), str(node_id)],
        "is_root": False,
        "updated_by": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestCreate:
    """Tests for HierarchyService.create."""

    async def test_new_tenant_root(self, service: HierarchyService, repo: AsyncMock):
        repo.create.side_effect = lambda node: node
        data = NodeCreateFactory.build(name="Acme", kind=NodeKind.ORGANIZATION)

        node = await service.create(data, None, ACTOR)

        assert node.tenant_id == node.id
        assert node.path == "Acme"
        assert node.created_by == ACTOR
        repo.commit.assert_awaited_once()

    async def test_root_for_existing_tenant(self, service: HierarchyService, repo: AsyncMock):
        repo.get_root.return_value = _node()

        with pytest.raises(StructuralConflictError):
            await service.create(NodeCreateFactory.build(), uuid4(), ACTOR)

        repo.create.assert_not_awaited()

    async def test_missing_parent(self, service: HierarchyService, repo: AsyncMock):
        repo.get_by_id.return_value = None
        data = NodeCreateFactory.build(parent_id=uuid4())

        with pytest.raises(NotFoundError):
            await service.create(data, uuid4(), ACTOR)

        repo.create.assert_not_awaited()

    async def test_child_inherits_parent_tenant(
        self, service: HierarchyService, repo: AsyncMock
    ):
        parent = _node(name="R", path="R", level=0, parent_id=None)
        parent.ancestor_ids = [str(parent.id)]
        repo.get_by_id.return_value = parent
        repo.create.side_effect = lambda node: node
        data = NodeCreateFactory.build(name="Sales", parent_id=parent.id)

        node = await service.create(data, parent.tenant_id, ACTOR)

        assert node.tenant_id == parent.tenant_id
        assert node.path == "R > Sales"
        assert node.ancestor_ids == [str(parent.id), str(node.id)]


class TestMove:
    """Tests for HierarchyService.move."""

    async def test_top_level_rejected(self, service: HierarchyService, repo: AsyncMock):
        node = _node()
        repo.get_by_id.return_value = node

        with pytest.raises(StructuralConflictError) as exc_info:
            await service.move(node.id, None, node.tenant_id, ACTOR)

        assert exc_info.value.error_code == "second_root"
        repo.update.assert_not_awaited()

    async def test_cycle_rejected_before_write(
        self, service: HierarchyService, repo: AsyncMock
    ):
        node = _node()
        child = _node(parent_id=node.id, name="B")
        repo.get_by_id.side_effect = [node, child]
        repo.list_children.return_value = [child]

        with pytest.raises(StructuralConflictError) as exc_info:
            await service.move(node.id, child.id, node.tenant_id, ACTOR)

        assert exc_info.value.error_code == "hierarchy_cycle"
        repo.update.assert_not_awaited()
        repo.commit.assert_not_awaited()
        assert node.parent_id != child.id


class TestRename:
    """Tests for HierarchyService.rename."""

    async def test_blank_name_rejected(self, service: HierarchyService, repo: AsyncMock):
        with pytest.raises(ValidationError):
            await service.rename(uuid4(), "   ", uuid4(), ACTOR)

        repo.get_by_id.assert_not_awaited()

    async def test_missing_node(self, service: HierarchyService, repo: AsyncMock):
        repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await service.rename(uuid4(), "New", uuid4(), ACTOR)


class TestDelete:
    """Tests for HierarchyService.delete."""

    async def test_children_block_delete(self, service: HierarchyService, repo: AsyncMock):
        node = _node()
        repo.get_by_id.return_value = node
        repo.count_children.return_value = 2

        with pytest.raises(DependencyConflictError):
            await service.delete(node.id, node.tenant_id, ACTOR)

        repo.update.assert_not_awaited()

    async def test_occupants_block_delete(
        self, service: HierarchyService, repo: AsyncMock, occupants: AsyncMock
    ):
        node = _node()
        repo.get_by_id.return_value = node
        repo.count_children.return_value = 0
        occupants.count_active_in_node.return_value = 1

        with pytest.raises(DependencyConflictError) as exc_info:
            await service.delete(node.id, node.tenant_id, ACTOR)

        assert exc_info.value.error_code == "node_has_occupants"
