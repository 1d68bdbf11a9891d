from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class QuestionSetCreate(BaseModel):
    assessment_type: str = Field(..., min_length=1, max_length=100)
    assessment_version: str = Field(..., min_length=1, max_length=20)
    locale: str | None = Field(None, max_length=20)


class QuestionSetResponse(BaseModel):
    id: UUID
    assessment_type: str
    assessment_version: str
    locale: str | None
    status: str
    slug: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PointerResponse(BaseModel):
    published_revision_id: UUID | None
    preview_revision_id: UUID | None
    updated_by: UUID | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class QuestionSetSummary(BaseModel):
    question_set: QuestionSetResponse
    pointer: PointerResponse | None
    latest_revision_number: int | None


class QuestionSetListResponse(BaseModel):
    items: list[QuestionSetSummary]
    total: int


class QuestionSetCreateResponse(BaseModel):
    question_set: QuestionSetResponse
    created: bool


class RevisionCreate(BaseModel):
    content_json: dict[str, Any]
    notes: str | None = None


class RevisionSummary(BaseModel):
    id: UUID
    question_set_id: UUID
    revision_number: int
    status: str
    schema_version: str
    content_hash: str
    notes: str | None
    validation_errors: list | None
    created_by: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class RevisionResponse(RevisionSummary):
    content_json: dict[str, Any]


class RevisionCreateResponse(BaseModel):
    revision: RevisionResponse
    warnings: list[str]


class QuestionSetDetailResponse(BaseModel):
    question_set: QuestionSetResponse
    pointer: PointerResponse | None
    revisions: list[RevisionSummary]


class PointerUpdate(BaseModel):
    revision_id: UUID


class DeleteResponse(BaseModel):
    success: bool
    warning: str | None = None


class CsvImportResponse(BaseModel):
    question_set_id: UUID
    revision_id: UUID
    revision_number: int
    created_question_set: bool
    warnings: list[str]


class QuestionSetRef(BaseModel):
    source: str
    question_set_id: str | None = None
    published_revision_id: str | None = None
    preview_revision_id: str | None = None
    content_hash: str | None = None
    resolved_at: str


class ResolveResponse(BaseModel):
    question_set: dict[str, Any]
    source: str
    content_hash: str | None
    schema_version: str | None
    published_at: datetime | None
    is_preview: bool
    question_set_ref: QuestionSetRef
