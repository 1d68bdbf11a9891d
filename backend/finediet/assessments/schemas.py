from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator

SessionStatus = Literal["started", "abandoned", "completed"]


class AnswerItem(BaseModel):
    question_id: str
    option_id: str

    model_config = {"extra": "allow"}


class SubmitRequest(BaseModel):
    submission_id: UUID
    assessment_type: str = Field(..., min_length=1, max_length=100)
    assessment_version: int = Field(1, ge=1)
    session_id: str = Field(..., min_length=1, max_length=255)
    user_id: UUID | None = None
    email: str | None = None
    answers: list[dict[str, Any]] = Field(..., min_length=1)
    score_map: dict[str, Any] = Field(default_factory=dict)
    normalized_score_map: dict[str, Any] = Field(default_factory=dict)
    primary_avatar: str = Field(..., min_length=1, max_length=100)
    secondary_avatar: str | None = None
    confidence_score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SubmitResponse(BaseModel):
    success: bool
    submission_id: UUID


class ScoreRequest(BaseModel):
    assessment_type: str = "gut-check"
    assessment_version: int = Field(2, ge=1)
    locale: str | None = None
    answers: list[AnswerItem] = Field(..., min_length=1)


class ScoreResponse(BaseModel):
    assessment_version: int
    result: dict[str, Any]
    primary_avatar: str
    avatar_key: str
    question_set_source: str | None = None


class EmailCaptureRequest(BaseModel):
    session_id: str = Field(..., min_length=1)
    assessment_type: str = Field(..., min_length=1)
    assessment_version: int = Field(..., ge=1)
    email: EmailStr
    submission_id: UUID | None = None
    results_version: str | None = None
    level_id: str | None = None
    email_type: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("email", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class SuccessResponse(BaseModel):
    success: bool


class SessionUpdate(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=255)
    assessment_type: str = Field(..., min_length=1, max_length=100)
    assessment_version: int = Field(1, ge=1)
    status: SessionStatus
    last_question_index: int = Field(0, ge=0)


class SessionUpdateResponse(BaseModel):
    success: bool
    assessment_version: int


class EventItem(BaseModel):
    assessment_type: str = Field(..., min_length=1)
    assessment_version: int = 1
    session_id: str = Field(..., min_length=1)
    event_type: str = Field(..., min_length=1)
    primary_avatar: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class EventBatch(BaseModel):
    events: list[EventItem] = Field(..., min_length=1)


class EventBatchResponse(BaseModel):
    success: bool
    inserted: int


class ClaimRequest(BaseModel):
    claim_token: str = Field(..., min_length=1)


class UpdatePackRefRequest(BaseModel):
    submission_id: UUID
    results_pack_ref: dict[str, Any]


class SubmissionResponse(BaseModel):
    id: UUID
    assessment_type: str
    assessment_version: int
    session_id: str
    user_id: UUID | None
    email: str | None
    answers: list
    score_map: dict
    normalized_score_map: dict
    primary_avatar: str
    secondary_avatar: str | None
    confidence_score: float | None
    metadata: dict | None = Field(None, validation_alias=AliasChoices("meta", "metadata"))
    created_at: datetime

    model_config = {"from_attributes": True}


class SubmissionListResponse(BaseModel):
    items: list[SubmissionResponse]
    total: int


class LevelIds(BaseModel):
    level1: UUID | None = None
    level2: UUID | None = None
    level3: UUID | None = None
    level4: UUID | None = None


class AssessmentIndexEntry(BaseModel):
    assessment_type: str
    assessment_version: str
    locale: str | None
    question_set_id: UUID | None
    results_pack_ids: LevelIds


class AssessmentIndexResponse(BaseModel):
    items: list[AssessmentIndexEntry]
    total: int


class ScaffoldQuestionsRequest(BaseModel):
    assessment_type: str = Field(..., min_length=1, max_length=100)
    assessment_version: str = Field(..., min_length=1, max_length=20)
    locale: str | None = None

    @field_validator("assessment_version", mode="before")
    @classmethod
    def _coerce_version(cls, value):
        return str(value) if isinstance(value, int) else value


class ScaffoldQuestionsResponse(BaseModel):
    question_set_id: UUID
    created: bool


class ScaffoldResultsRequest(BaseModel):
    assessment_type: str = Field(..., min_length=1, max_length=100)
    results_version: str = Field(..., min_length=1, max_length=20)

    @field_validator("results_version", mode="before")
    @classmethod
    def _coerce_version(cls, value):
        return str(value) if isinstance(value, int) else value


class ScaffoldResultsResponse(BaseModel):
    packs: dict[str, UUID]
    created: dict[str, bool]


class ScaffoldDraftsRequest(BaseModel):
    question_set_id: UUID | None = None
    results_pack_ids: LevelIds | None = None


class DraftRef(BaseModel):
    revision_id: UUID
    revision_number: int


class ScaffoldDraftsCreated(BaseModel):
    question_draft: DraftRef | None = None
    results_drafts: dict[str, DraftRef] | None = None


class ScaffoldDraftsSkipped(BaseModel):
    question_set: bool | None = None
    results_packs: list[str] | None = None


class ScaffoldDraftsResponse(BaseModel):
    created: ScaffoldDraftsCreated
    skipped: ScaffoldDraftsSkipped
