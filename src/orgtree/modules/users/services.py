"""User service for business logic."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from orgtree.core.errors import ConflictError, NotFoundError
from orgtree.core.locks import TenantLock, TenantLockDep
from orgtree.modules.nodes.repos import NodeRepo
from orgtree.modules.users.models import User, encode_id_path
from orgtree.modules.users.repos import UserRepo
from orgtree.modules.users.schemas import UserCreate


logger = structlog.get_logger()


class UserService:
    """Service for assigning users to hierarchy nodes.

    Assignment takes the same tenant lock as node retirement, so a user
    is never attached to a node that is being retired.
    """

    def __init__(self, repo: UserRepo, nodes: NodeRepo, lock: TenantLockDep) -> None:
        self.repo = repo
        self.nodes = nodes
        self.lock: TenantLock = lock

    async def create_user(self, data: UserCreate, tenant_id: UUID) -> User:
        """Create a user assigned to a node.

        The node's current ancestor chain is copied onto the user. The
        tenant lock is held from the node lookup through the commit.

        Args:
            data: User creation data
            tenant_id: The tenant this user belongs to

        Returns:
            The created user

        Raises:
            NotFoundError: If the node is not an active node of the tenant
            ConflictError: If email already exists for this tenant
        """
        async with self.lock.hold(tenant_id):
            node = await self.nodes.get_by_id(data.entity_id, tenant_id)
            if node is None:
                raise NotFoundError(
                    "Node not found",
                    resource="node",
                    resource_id=str(data.entity_id),
                )

            if await self.repo.get_by_email(data.email, tenant_id):
                raise ConflictError(
                    "Email already registered",
                    error_code="email_exists",
                    details={"email": data.email},
                )

            user = await self.repo.create(
                User(
                    email=data.email,
                    full_name=data.full_name,
                    tenant_id=tenant_id,
                    is_active=True,
                    entity_id=node.id,
                    entity_id_path=encode_id_path(node.ancestor_ids),
                )
            )
            await self.repo.commit()

        logger.info(
            "user_assigned",
            tenant_id=str(tenant_id),
            user_id=str(user.id),
            node_id=str(node.id),
        )
        return user

    async def get_user(self, user_id: UUID, tenant_id: UUID) -> User:
        """Get a user by ID.

        Raises:
            NotFoundError: If user not found
        """
        user = await self.repo.get_by_id(user_id, tenant_id)
        if not user:
            raise NotFoundError(
                "User not found",
                resource="user",
                resource_id=str(user_id),
            )
        return user

    async def list_users(self, tenant_id: UUID, node_id: UUID) -> list[User]:
        """List active users at or below a node."""
        return await self.repo.list_in_node(tenant_id, node_id)

    async def deactivate_user(self, user_id: UUID, tenant_id: UUID) -> User:
        """Deactivate a user, releasing their node."""
        user = await self.get_user(user_id, tenant_id)
        user.is_active = False
        return await self.repo.update(user)


# Type alias for dependency injection
UserSvc = Annotated[UserService, Depends(UserService)]
