"""Donor model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.db.models import Donation, Sponsorship


class Donor(Base):
    """
    A person or organization that gives.

    Soft-deleted via archived_at. Email is unique (case-insensitive) among
    non-archived donors; archived and merged-away donors keep their email.
    """

    __tablename__ = "donors"
    __table_args__ = (
        Index("idx_donors_archived_at", "archived_at"),
        Index("idx_donors_merged_into", "merged_into_id"),
        Index("idx_donors_name", "name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Mailing address
    address_line1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address_line2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(
        String(100), server_default=text("'US'"), default="US", nullable=True
    )

    # Newest external transaction that touched this record
    last_updated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Soft delete / merge tracking
    archived_at: Mapped[datetime | None] = mapped_column(nullable=True)
    merged_into_id: Mapped[int | None] = mapped_column(
        ForeignKey("donors.id", ondelete="SET NULL"), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    donations: Mapped[list["Donation"]] = relationship(back_populates="donor")
    sponsorships: Mapped[list["Sponsorship"]] = relationship(back_populates="donor")

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def is_merged(self) -> bool:
        return self.merged_into_id is not None

    def __repr__(self) -> str:
        return f"<Donor(id={self.id}, archived={self.is_archived})>"


# Partial unique index: one non-archived donor per email (case-insensitive)
Index(
    "uq_donors_email_active",
    func.lower(Donor.email),
    unique=True,
    postgresql_where=Donor.archived_at.is_(None),
    sqlite_where=Donor.archived_at.is_(None),
)
