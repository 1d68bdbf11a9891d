import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from finediet.models.base import Base, CreatedAtMixin, TimestampMixin, generate_uuid

STATUS_PRIORITY = {
    "marketing_only": 1,
    "inactive_user": 2,
    "waitlist": 3,
    "active_user": 4,
    "unsubscribed": 5,
    "blocked": 6,
}

SUBSCRIPTION_TYPES = ("email_marketing", "product_updates", "program_waitlist")

EVENT_TYPES = (
    "newsletter_signup",
    "waitlist_join",
    "status_change",
    "profile_update",
    "email_sent",
    "sms_sent",
    "unsubscribed",
    "other",
)


class Person(TimestampMixin, Base):
    __tablename__ = "people"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    first_name: Mapped[str | None] = mapped_column(String(255))
    last_name: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="marketing_only", index=True)
    primary_source: Mapped[str | None] = mapped_column(String(100))
    last_source: Mapped[str | None] = mapped_column(String(100))
    utm_source: Mapped[str | None] = mapped_column(String(255))
    utm_medium: Mapped[str | None] = mapped_column(String(255))
    utm_campaign: Mapped[str | None] = mapped_column(String(255))
    email_marketing_opt_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_opt_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    sms_marketing_opt_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sms_opt_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)
    meta: Mapped[dict | None] = mapped_column("metadata", JSON, default=dict)


class Subscription(TimestampMixin, Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("person_id", "subscription_type", "program_slug", name="uq_subscriptions_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    person_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("people.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    subscription_type: Mapped[str] = mapped_column(String(50), nullable=False)
    program_slug: Mapped[str | None] = mapped_column(String(100))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class PeopleEvent(CreatedAtMixin, Base):
    __tablename__ = "people_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    person_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("people.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    source: Mapped[str | None] = mapped_column(String(100))
    channel: Mapped[str | None] = mapped_column(String(50))
    meta: Mapped[dict | None] = mapped_column("metadata", JSON, default=dict)


class WaitlistSignup(CreatedAtMixin, Base):
    """Signups from the original journal waitlist form."""

    __tablename__ = "waitlist_signups"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255))
    goal: Mapped[str | None] = mapped_column(String(50))
    source: Mapped[str | None] = mapped_column(Text, default="journal")
