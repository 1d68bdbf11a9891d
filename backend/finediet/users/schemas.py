from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from finediet.users.models import normalize_role

Role = Literal["user", "editor", "admin"]


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str | None = Field(None, max_length=255)


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: str | None
    role: Role
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value):
        return normalize_role(value)


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int


class RoleUpdate(BaseModel):
    role: Role
