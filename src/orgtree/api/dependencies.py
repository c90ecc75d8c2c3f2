"""Shared API dependencies."""

from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree.core.constants import MAX_ACTOR_LENGTH
from orgtree.core.database import get_db


# Type alias for database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]


@dataclass(frozen=True)
class Caller:
    """Identity of the caller as asserted by the upstream gateway."""

    actor: str
    tenant_id: UUID | None


def _bind_caller(request: Request, caller: Caller) -> Caller:
    request.state.actor = caller.actor
    request.state.tenant_id = caller.tenant_id
    structlog.contextvars.bind_contextvars(
        actor=caller.actor,
        tenant_id=str(caller.tenant_id) if caller.tenant_id else None,
    )
    return caller


async def get_caller(
    request: Request,
    x_actor_id: Annotated[str, Header(min_length=1, max_length=MAX_ACTOR_LENGTH)],
    x_tenant_id: Annotated[UUID | None, Header()] = None,
) -> Caller:
    """Read the caller identity; the tenant is optional.

    Only founding a new tenant may omit the tenant header.
    """
    return _bind_caller(request, Caller(actor=x_actor_id, tenant_id=x_tenant_id))


async def get_tenant_caller(
    request: Request,
    x_actor_id: Annotated[str, Header(min_length=1, max_length=MAX_ACTOR_LENGTH)],
    x_tenant_id: Annotated[UUID, Header()],
) -> Caller:
    """Read the caller identity, requiring a tenant."""
    return _bind_caller(request, Caller(actor=x_actor_id, tenant_id=x_tenant_id))


CurrentCaller = Annotated[Caller, Depends(get_caller)]
TenantCaller = Annotated[Caller, Depends(get_tenant_caller)]
