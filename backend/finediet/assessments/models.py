import uuid

from sqlalchemy import JSON, Float, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from finediet.models.base import Base, CreatedAtMixin, TimestampMixin, generate_uuid

SESSION_STATUSES = ("started", "abandoned", "completed")


class AssessmentSubmission(CreatedAtMixin, Base):
    __tablename__ = "assessment_submissions"
    __table_args__ = (
        Index("ix_assessment_submissions_session", "session_id", "assessment_type", "assessment_version"),
    )

    # Supplied by the client so retried submits are idempotent
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    assessment_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    assessment_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    session_id: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)
    email: Mapped[str | None] = mapped_column(String(255))
    answers: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    score_map: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    normalized_score_map: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    primary_avatar: Mapped[str] = mapped_column(String(100), nullable=False)
    secondary_avatar: Mapped[str | None] = mapped_column(String(100))
    confidence_score: Mapped[float | None] = mapped_column(Float)
    meta: Mapped[dict | None] = mapped_column("metadata", JSON, default=dict)


class AssessmentSession(TimestampMixin, Base):
    __tablename__ = "assessment_sessions"
    __table_args__ = (
        UniqueConstraint("session_id", "assessment_type", "assessment_version", name="uq_assessment_sessions_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    session_id: Mapped[str] = mapped_column(String(255), nullable=False)
    assessment_type: Mapped[str] = mapped_column(String(100), nullable=False)
    assessment_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="started")
    last_question_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class AssessmentEvent(CreatedAtMixin, Base):
    __tablename__ = "assessment_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    assessment_type: Mapped[str] = mapped_column(String(100), nullable=False)
    assessment_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    session_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    primary_avatar: Mapped[str | None] = mapped_column(String(100))
    properties: Mapped[dict | None] = mapped_column(JSON, default=dict)
