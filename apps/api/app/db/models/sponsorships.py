"""Sponsorship model."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.db.models import Child, Donation, Donor, Project


class Sponsorship(Base):
    """
    A recurring monthly pledge from one donor to one child.

    Active while end_date is null. Amount changes create a new row; the
    table is an append-only history of pledge periods.
    """

    __tablename__ = "sponsorships"
    __table_args__ = (
        Index("idx_sponsorships_donor", "donor_id"),
        Index("idx_sponsorships_child", "child_id"),
        Index("idx_sponsorships_project", "project_id"),
        Index("idx_sponsorships_end_date", "end_date"),
        # At most one active pledge per (donor, child, amount)
        Index(
            "uq_sponsorships_active_pledge",
            "donor_id",
            "child_id",
            "monthly_amount",
            unique=True,
            postgresql_where=text("end_date IS NULL"),
            sqlite_where=text("end_date IS NULL"),
        ),
        CheckConstraint("monthly_amount > 0", name="monthly_amount_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    donor_id: Mapped[int] = mapped_column(
        ForeignKey("donors.id", ondelete="RESTRICT"), nullable=False
    )
    child_id: Mapped[int] = mapped_column(
        ForeignKey("children.id", ondelete="RESTRICT"), nullable=False
    )
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False
    )

    # Integer cents
    monthly_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    donor: Mapped["Donor"] = relationship(back_populates="sponsorships")
    child: Mapped["Child"] = relationship(back_populates="sponsorships")
    project: Mapped["Project"] = relationship(back_populates="sponsorships")
    donations: Mapped[list["Donation"]] = relationship(back_populates="sponsorship")

    @property
    def active(self) -> bool:
        return self.end_date is None
