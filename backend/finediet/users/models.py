import uuid

from sqlalchemy import Boolean, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from finediet.models.base import Base, TimestampMixin, generate_uuid

ROLES = ("user", "editor", "admin")
CONTENT_ROLES = ("editor", "admin")


def normalize_role(value: str | None) -> str:
    """Anything outside the known roles is treated as a plain user."""
    if value in ROLES:
        return value
    return "user"


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), default="user", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    @property
    def effective_role(self) -> str:
        return normalize_role(self.role)

    @property
    def can_edit_content(self) -> bool:
        return self.effective_role in CONTENT_ROLES
