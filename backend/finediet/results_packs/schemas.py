from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class ResultsPackCreate(BaseModel):
    assessment_type: str = Field(..., min_length=1, max_length=100)
    results_version: str = Field(..., min_length=1, max_length=20)
    level_id: str = Field(..., min_length=1, max_length=50)


class ResultsPackResponse(BaseModel):
    id: UUID
    assessment_type: str
    results_version: str
    level_id: str
    slug: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PackPointerResponse(BaseModel):
    published_revision_id: UUID | None
    preview_revision_id: UUID | None
    updated_by: UUID | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class ResultsPackSummary(BaseModel):
    pack: ResultsPackResponse
    pointer: PackPointerResponse | None
    latest_revision_number: int | None


class ResultsPackListResponse(BaseModel):
    items: list[ResultsPackSummary]
    total: int


class ResultsPackCreateResponse(BaseModel):
    pack: ResultsPackResponse
    created: bool


class PackRevisionCreate(BaseModel):
    content_json: dict[str, Any]
    change_summary: str | None = None


class PackRevisionSummary(BaseModel):
    id: UUID
    pack_id: UUID
    revision_number: int
    status: str
    schema_version: str
    content_hash: str
    change_summary: str | None
    validation_errors: list | None
    created_by: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PackRevisionResponse(PackRevisionSummary):
    content_json: dict[str, Any]


class PackRevisionCreateResponse(BaseModel):
    revision: PackRevisionResponse
    warnings: list[str]


class ResultsPackDetailResponse(BaseModel):
    pack: ResultsPackResponse
    pointer: PackPointerResponse | None
    revisions: list[PackRevisionSummary]


class PackPointerUpdate(BaseModel):
    revision_id: UUID


class PublishedPackResponse(BaseModel):
    pack_id: UUID
    revision_id: UUID
    revision_number: int
    content_hash: str
    schema_version: str
    published_at: datetime
    content_json: dict[str, Any]


class ResultsPackRef(BaseModel):
    source: str
    pack_id: str | None = None
    published_revision_id: str | None = None
    preview_revision_id: str | None = None
    content_hash: str | None = None
    resolved_at: str


class ResultsPackResolveResponse(BaseModel):
    pack: dict[str, Any]
    source: str
    content_hash: str | None
    schema_version: str | None
    published_at: datetime | None
    is_preview: bool
    results_pack_ref: ResultsPackRef
