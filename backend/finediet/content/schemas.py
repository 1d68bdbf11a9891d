from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

ContentStatus = Literal["draft", "published"]


class ContentRowResponse(BaseModel):
    id: UUID
    key: str
    status: ContentStatus
    data: dict[str, Any]
    updated_by: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ContentListResponse(BaseModel):
    items: list[ContentRowResponse]
    total: int


class ProductCreate(BaseModel):
    slug: str = Field(..., pattern=r"^[a-z0-9-]+$", max_length=200)
    title: str = Field(..., min_length=1, max_length=500)


class ProductSummary(BaseModel):
    slug: str
    title: str
    updated_at: datetime


class ProductListResponse(BaseModel):
    items: list[ProductSummary]
    total: int
