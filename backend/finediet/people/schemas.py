from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, EmailStr, Field

Goal = Literal["Energy", "Digestion", "Weight", "Clarity", "Sleep", "Other"]


class NewsletterSignup(BaseModel):
    email: EmailStr
    first_name: str | None = None
    source: str = "footer_newsletter"
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None


class WaitlistJoin(BaseModel):
    email: EmailStr
    name: str | None = None
    goal: Goal | None = None
    source: str = "journal_waitlist"
    program_slug: str | None = None
    phone: str | None = None
    sms_opt_in: bool = False


class LegacyWaitlistSignup(BaseModel):
    email: EmailStr
    name: str | None = None
    goal: Goal | Literal[""] | None = None


class OkResponse(BaseModel):
    ok: bool


class LegacyWaitlistResponse(BaseModel):
    success: bool
    message: str


class PersonResponse(BaseModel):
    id: UUID
    email: str
    first_name: str | None
    last_name: str | None
    phone: str | None
    status: str
    primary_source: str | None
    last_source: str | None
    utm_source: str | None
    utm_medium: str | None
    utm_campaign: str | None
    email_marketing_opt_in: bool
    email_opt_in_at: datetime | None
    sms_marketing_opt_in: bool
    sms_opt_in_at: datetime | None
    user_id: UUID | None
    metadata: dict | None = Field(None, validation_alias=AliasChoices("meta", "metadata"))
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PersonListResponse(BaseModel):
    items: list[PersonResponse]
    total: int


class WaitlistSignupResponse(BaseModel):
    id: UUID
    email: str
    name: str | None
    goal: str | None
    source: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class WaitlistSignupListResponse(BaseModel):
    items: list[WaitlistSignupResponse]
    total: int
