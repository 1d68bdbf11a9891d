import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from finediet.models.base import Base, CreatedAtMixin, TimestampMixin, generate_uuid, utcnow

LEVEL_IDS = ("level1", "level2", "level3", "level4")


class ResultsPack(TimestampMixin, Base):
    __tablename__ = "results_packs"
    __table_args__ = (
        UniqueConstraint("assessment_type", "results_version", "level_id", name="uq_results_packs_identity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    assessment_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    results_version: Mapped[str] = mapped_column(String(20), nullable=False)
    level_id: Mapped[str] = mapped_column(String(50), nullable=False)

    @property
    def slug(self) -> str:
        return f"{self.assessment_type}:{self.results_version}:{self.level_id}"


class ResultsPackRevision(CreatedAtMixin, Base):
    __tablename__ = "results_pack_revisions"
    __table_args__ = (
        UniqueConstraint("pack_id", "revision_number", name="uq_results_pack_revisions_number"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    pack_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("results_packs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    revision_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    schema_version: Mapped[str] = mapped_column(String(50), nullable=False)
    content_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    change_summary: Mapped[str | None] = mapped_column(Text)
    validation_errors: Mapped[list | None] = mapped_column(JSON)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)


class ResultsPackPointer(Base):
    __tablename__ = "results_pack_pointers"

    pack_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("results_packs.id", ondelete="CASCADE"), primary_key=True,
    )
    published_revision_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("results_pack_revisions.id", ondelete="SET NULL"),
    )
    preview_revision_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("results_pack_revisions.id", ondelete="SET NULL"),
    )
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
