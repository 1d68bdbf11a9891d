import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from finediet.models.base import Base, CreatedAtMixin, TimestampMixin, generate_uuid, utcnow

SET_STATUSES = ("active", "archived")
REVISION_STATUSES = ("draft", "published", "archived")


class QuestionSet(TimestampMixin, Base):
    __tablename__ = "question_sets"
    __table_args__ = (
        UniqueConstraint("assessment_type", "assessment_version", "locale", name="uq_question_sets_identity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    assessment_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    assessment_version: Mapped[str] = mapped_column(String(20), nullable=False)
    locale: Mapped[str | None] = mapped_column(String(20))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    @property
    def slug(self) -> str:
        return f"{self.assessment_type}:{self.assessment_version}:{self.locale or 'default'}"


class QuestionSetRevision(CreatedAtMixin, Base):
    """Immutable once written; only status moves."""

    __tablename__ = "question_set_revisions"
    __table_args__ = (
        UniqueConstraint("question_set_id", "revision_number", name="uq_question_set_revisions_number"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    question_set_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("question_sets.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    revision_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    schema_version: Mapped[str] = mapped_column(String(50), nullable=False)
    content_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    validation_errors: Mapped[list | None] = mapped_column(JSON)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)


class QuestionSetPointer(Base):
    __tablename__ = "question_set_pointers"

    question_set_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("question_sets.id", ondelete="CASCADE"), primary_key=True,
    )
    published_revision_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("question_set_revisions.id", ondelete="SET NULL"),
    )
    preview_revision_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("question_set_revisions.id", ondelete="SET NULL"),
    )
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
