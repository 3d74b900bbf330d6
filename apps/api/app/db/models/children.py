"""Child model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.db.models import Sponsorship


class Child(Base):
    """A sponsored child. Soft-deleted via archived_at."""

    __tablename__ = "children"
    __table_args__ = (
        Index("idx_children_archived_at", "archived_at"),
        CheckConstraint("gender IN ('boy', 'girl')", name="gender_valid"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)

    archived_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    sponsorships: Mapped[list["Sponsorship"]] = relationship(back_populates="child")

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None
