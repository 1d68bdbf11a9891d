from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel


class DispatchResponse(BaseModel):
    success: bool
    processed: int
    sent: int
    failed: int


class MarkSentRequest(BaseModel):
    submission_id: UUID
    status: Literal["sent", "failed"]
    target: str = "n8n"
    error_message: str = "Webhook execution failed"


class MarkSentResponse(BaseModel):
    success: bool
    rows_updated: int


class OutboxRowResponse(BaseModel):
    id: UUID
    submission_id: UUID
    target: str
    webhook_url: str
    payload: dict[str, Any]
    status: str
    attempts: int
    last_attempt_at: datetime | None
    error_message: str | None
    created_at: datetime
    sent_at: datetime | None

    model_config = {"from_attributes": True}


class OutboxListResponse(BaseModel):
    items: list[OutboxRowResponse]
    total: int
    counts: dict[str, int]


class OutboxMetricsDay(BaseModel):
    date: str
    submissions: int
    sent: int
    failed: int
    pending: int


class OutboxMetricsResponse(BaseModel):
    days: list[OutboxMetricsDay]
    totals: dict[str, int]
