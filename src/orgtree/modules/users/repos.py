"""User repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select

from orgtree.api.dependencies import DBSession
from orgtree.modules.users.models import User, id_path_fragment


class UserRepository:
    """Repository for User database operations.

    All queries are scoped to a tenant. Also serves as the occupant
    registry the hierarchy service consults before retiring a node.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User instance to create

        Returns:
            The created user with ID populated
        """
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update(self, user: User) -> User:
        """Flush pending changes to a user."""
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def commit(self) -> None:
        """Commit the unit of work."""
        await self.session.commit()

    async def get_by_id(self, user_id: UUID, tenant_id: UUID) -> User | None:
        """Get a user by ID within a tenant."""
        stmt = select(User).where(User.id == user_id, User.tenant_id == tenant_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str, tenant_id: UUID) -> User | None:
        """Get a user by email address within a tenant."""
        stmt = select(User).where(User.email == email, User.tenant_id == tenant_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_in_node(self, tenant_id: UUID, node_id: UUID) -> list[User]:
        """List active users assigned at or below a node.

        Args:
            tenant_id: The tenant scope
            node_id: The node whose subtree to search

        Returns:
            Users ordered by email
        """
        stmt = (
            select(User)
            .where(
                User.tenant_id == tenant_id,
                User.is_active == True,  # noqa: E712
                User.entity_id_path.contains(id_path_fragment(node_id), autoescape=True),
            )
            .order_by(User.email)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_active_in_node(self, tenant_id: UUID, node_id: UUID) -> int:
        """Count active users whose ancestor chain contains a node."""
        stmt = select(func.count()).select_from(User).where(
            User.tenant_id == tenant_id,
            User.is_active == True,  # noqa: E712
            User.entity_id_path.contains(id_path_fragment(node_id), autoescape=True),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_active(self, tenant_id: UUID) -> int:
        """Count a tenant's active users."""
        stmt = select(func.count()).select_from(User).where(
            User.tenant_id == tenant_id,
            User.is_active == True,  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()


# Type alias for dependency injection
UserRepo = Annotated[UserRepository, Depends(UserRepository)]
