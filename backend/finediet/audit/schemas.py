from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field


class AuditEntryResponse(BaseModel):
    id: UUID
    actor_id: UUID | None
    action: str
    entity_type: str
    entity_id: UUID | None
    metadata: dict | None = Field(None, validation_alias=AliasChoices("details", "metadata"))
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditListResponse(BaseModel):
    items: list[AuditEntryResponse]
    total: int
