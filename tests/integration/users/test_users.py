"""Integration tests for user assignment and its effect on node retirement."""

import asyncio
from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree.core.errors import ConflictError, DependencyConflictError, NotFoundError
from orgtree.core.locks import LocalTenantLock
from orgtree.modules.nodes.models import NodeStatus
from orgtree.modules.nodes.repos import NodeRepository
from orgtree.modules.nodes.services import HierarchyService
from orgtree.modules.users.repos import UserRepository
from orgtree.modules.users.schemas import UserCreate
from orgtree.modules.users.services import UserService
from tests.factories.node import ACTOR, add_node, build_tree


pytestmark = pytest.mark.integration


@pytest.fixture
def users(db: AsyncSession, tenant_lock: LocalTenantLock) -> UserService:
    return UserService(repo=UserRepository(db), nodes=NodeRepository(db), lock=tenant_lock)


def _user(email: str, node_id) -> UserCreate:
    return UserCreate(email=email, full_name=email.split("@")[0].title(), entity_id=node_id)


class TestUserService:
    """Tests for UserService against a real database."""

    async def test_assignment_copies_ancestry(
        self, service: HierarchyService, users: UserService
    ):
        tree = await build_tree(service)

        user = await users.create_user(_user("ann@example.com", tree["B"].id), tree["R"].tenant_id)

        assert user.entity_id == tree["B"].id
        assert user.entity_ancestor_ids == [tree["R"].id, tree["A"].id, tree["B"].id]
        assert user.is_active is True

    async def test_node_in_other_tenant(self, service: HierarchyService, users: UserService):
        tree = await build_tree(service)
        other = await add_node(service, "Globex")

        with pytest.raises(NotFoundError):
            await users.create_user(_user("ann@example.com", tree["B"].id), other.tenant_id)

    async def test_duplicate_email(self, service: HierarchyService, users: UserService):
        tree = await build_tree(service)
        tenant_id = tree["R"].tenant_id
        await users.create_user(_user("ann@example.com", tree["B"].id), tenant_id)

        with pytest.raises(ConflictError) as exc_info:
            await users.create_user(_user("ann@example.com", tree["D"].id), tenant_id)

        assert exc_info.value.error_code == "email_exists"

    async def test_same_email_in_two_tenants(self, service: HierarchyService, users: UserService):
        acme = await add_node(service, "Acme")
        globex = await add_node(service, "Globex")

        await users.create_user(_user("ann@example.com", acme.id), acme.tenant_id)
        await users.create_user(_user("ann@example.com", globex.id), globex.tenant_id)

    async def test_list_covers_subtree(self, service: HierarchyService, users: UserService):
        tree = await build_tree(service)
        tenant_id = tree["R"].tenant_id
        await users.create_user(_user("ann@example.com", tree["C"].id), tenant_id)
        await users.create_user(_user("bob@example.com", tree["A"].id), tenant_id)
        await users.create_user(_user("cy@example.com", tree["D"].id), tenant_id)

        under_a = await users.list_users(tenant_id, tree["A"].id)
        under_b = await users.list_users(tenant_id, tree["B"].id)

        assert [user.email for user in under_a] == ["ann@example.com", "bob@example.com"]
        assert [user.email for user in under_b] == ["ann@example.com"]

    async def test_occupied_node_cannot_be_retired(
        self, service: HierarchyService, users: UserService
    ):
        tree = await build_tree(service)
        tenant_id = tree["R"].tenant_id
        user = await users.create_user(_user("ann@example.com", tree["C"].id), tenant_id)

        with pytest.raises(DependencyConflictError) as exc_info:
            await service.delete(tree["C"].id, tenant_id, ACTOR)
        assert exc_info.value.error_code == "node_has_occupants"

        await users.deactivate_user(user.id, tenant_id)
        await service.delete(tree["C"].id, tenant_id, ACTOR)

        with pytest.raises(NotFoundError):
            await service.get_node(tree["C"].id, tenant_id)

    async def test_stats_count_active_users(self, service: HierarchyService, users: UserService):
        tree = await build_tree(service)
        tenant_id = tree["R"].tenant_id
        await users.create_user(_user("ann@example.com", tree["C"].id), tenant_id)
        bob = await users.create_user(_user("bob@example.com", tree["D"].id), tenant_id)
        await users.deactivate_user(bob.id, tenant_id)

        stats = await service.get_stats(tenant_id)

        assert stats.total_users == 1


class TestAssignmentLocking:
    """Assignment and retirement of the same node never interleave."""

    async def test_assignment_waits_for_tenant_lock(
        self,
        service: HierarchyService,
        users: UserService,
        tenant_lock: LocalTenantLock,
        db: AsyncSession,
    ):
        """A user cannot be attached to a node retired while the lock was held."""
        tree = await build_tree(service)
        tenant_id = tree["R"].tenant_id

        async with tenant_lock.hold(tenant_id):
            pending = asyncio.create_task(
                users.create_user(_user("ann@example.com", tree["D"].id), tenant_id)
            )
            await asyncio.sleep(0.05)
            assert not pending.done()

            tree["D"].status = NodeStatus.RETIRED
            await db.flush()

        with pytest.raises(NotFoundError):
            await pending

    async def test_concurrent_delete_and_assignment(
        self, service: HierarchyService, users: UserService
    ):
        """Exactly one of a racing delete and assignment succeeds."""
        tree = await build_tree(service)
        tenant_id = tree["R"].tenant_id

        deleted, assigned = await asyncio.gather(
            service.delete(tree["D"].id, tenant_id, ACTOR),
            users.create_user(_user("ann@example.com", tree["D"].id), tenant_id),
            return_exceptions=True,
        )

        outcomes = [isinstance(result, Exception) for result in (deleted, assigned)]
        assert outcomes.count(True) == 1
        if isinstance(assigned, Exception):
            assert isinstance(assigned, NotFoundError)
            assert await users.list_users(tenant_id, tree["D"].id) == []
        else:
            assert isinstance(deleted, DependencyConflictError)
            node = await service.get_node(tree["D"].id, tenant_id)
            assert node.is_active


class TestUserEndpoints:
    """Tests for /api/v1/users."""

    async def test_assign_list_deactivate(self, client: AsyncClient):
        actor = {"X-Actor-ID": "api-tester"}
        root = (
            await client.post(
                "/api/v1/nodes", json={"name": "Acme", "kind": "organization"}, headers=actor
            )
        ).json()
        headers = {**actor, "X-Tenant-ID": root["tenant_id"]}

        created = await client.post(
            "/api/v1/users",
            json={"email": "ann@example.com", "full_name": "Ann", "entity_id": root["id"]},
            headers=headers,
        )
        listed = await client.get(
            "/api/v1/users", params={"node_id": root["id"]}, headers=headers
        )
        blocked = await client.delete(f"/api/v1/nodes/{root['id']}", headers=headers)
        user_id = created.json()["id"]
        deactivated = await client.post(f"/api/v1/users/{user_id}/deactivate", headers=headers)

        assert created.status_code == 201
        assert created.json()["entity_ancestor_ids"] == [root["id"]]
        assert listed.json()["total"] == 1
        assert blocked.status_code == 409
        assert deactivated.json()["is_active"] is False

    async def test_invalid_email(self, client: AsyncClient):
        root: dict[str, Any] = (
            await client.post(
                "/api/v1/nodes",
                json={"name": "Acme", "kind": "organization"},
                headers={"X-Actor-ID": "api-tester"},
            )
        ).json()

        response = await client.post(
            "/api/v1/users",
            json={"email": "not-an-email", "full_name": "Ann", "entity_id": root["id"]},
            headers={"X-Actor-ID": "api-tester", "X-Tenant-ID": root["tenant_id"]},
        )

        assert response.status_code == 422
