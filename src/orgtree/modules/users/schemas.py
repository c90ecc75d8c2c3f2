"""Pydantic schemas for user operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from orgtree.core.constants import MAX_NAME_LENGTH


class UserCreate(BaseModel):
    """Schema for assigning a new user to a node."""

    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    entity_id: UUID


class UserResponse(BaseModel):
    """Schema for user response data."""

    id: UUID
    tenant_id: UUID
    email: EmailStr
    full_name: str
    is_active: bool
    entity_id: UUID
    entity_ancestor_ids: list[UUID]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserListResponse(BaseModel):
    """Schema for listing users."""

    items: list[UserResponse]
    total: int
