import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from finediet.models.base import Base, CreatedAtMixin, generate_uuid

OUTBOX_STATUSES = ("pending", "sent", "failed")

TARGET_N8N = "n8n"
TARGET_EMAIL_CAPTURE = "n8n_email_capture"


class WebhookOutbox(CreatedAtMixin, Base):
    __tablename__ = "webhook_outbox"
    __table_args__ = (
        UniqueConstraint("submission_id", "target", name="uq_webhook_outbox_submission_target"),
        Index("ix_webhook_outbox_dispatch", "target", "status", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    submission_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    target: Mapped[str] = mapped_column(String(100), nullable=False)
    webhook_url: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    error_message: Mapped[str | None] = mapped_column(Text)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
