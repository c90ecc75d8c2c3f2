"""User API routes."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from orgtree.api.dependencies import TenantCaller
from orgtree.modules.users.models import User
from orgtree.modules.users.schemas import UserCreate, UserListResponse, UserResponse
from orgtree.modules.users.services import UserSvc


router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign a new user to a node",
)
async def create_user(data: UserCreate, caller: TenantCaller, service: UserSvc) -> User:
    return await service.create_user(data, caller.tenant_id)


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users at or below a node",
)
async def list_users(
    caller: TenantCaller,
    service: UserSvc,
    node_id: UUID = Query(..., description="Node whose subtree to search"),
) -> UserListResponse:
    users = await service.list_users(caller.tenant_id, node_id)
    return UserListResponse(
        items=[UserResponse.model_validate(user) for user in users],
        total=len(users),
    )


@router.post(
    "/{user_id}/deactivate",
    response_model=UserResponse,
    summary="Deactivate a user",
)
async def deactivate_user(user_id: UUID, caller: TenantCaller, service: UserSvc) -> User:
    return await service.deactivate_user(user_id, caller.tenant_id)
