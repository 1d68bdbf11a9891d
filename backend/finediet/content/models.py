import uuid

from sqlalchemy import JSON, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from finediet.models.base import Base, TimestampMixin, generate_uuid

CONTENT_STATUSES = ("draft", "published")


class SiteContent(TimestampMixin, Base):
    __tablename__ = "site_content"
    __table_args__ = (UniqueConstraint("key", "status", name="uq_site_content_key_status"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="published")
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
