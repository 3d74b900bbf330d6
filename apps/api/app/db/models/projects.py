"""Project model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import ProjectType

if TYPE_CHECKING:
    from app.db.models import Donation, Sponsorship


class Project(Base):
    """
    Destination of a donation: a general fund, a campaign, or one sponsorship.

    System projects (the general fund) can never be hard-deleted.
    """

    __tablename__ = "projects"
    __table_args__ = (
        Index("idx_projects_archived_at", "archived_at"),
        Index("idx_projects_type", "project_type"),
        Index("idx_projects_title", "title"),
        # The general fund is the only system project
        Index(
            "uq_projects_system_fund",
            "system",
            unique=True,
            postgresql_where=text("system IS TRUE"),
            sqlite_where=text("system = 1"),
        ),
        CheckConstraint(
            "project_type IN ('general', 'campaign', 'sponsorship')",
            name="project_type_valid",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    project_type: Mapped[str] = mapped_column(
        String(20),
        server_default=text(f"'{ProjectType.GENERAL.value}'"),
        default=ProjectType.GENERAL.value,
        nullable=False,
    )
    system: Mapped[bool] = mapped_column(
        Boolean, server_default=text("FALSE"), default=False, nullable=False
    )

    archived_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    donations: Mapped[list["Donation"]] = relationship(back_populates="project")
    sponsorships: Mapped[list["Sponsorship"]] = relationship(back_populates="project")

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def is_sponsorship_project(self) -> bool:
        return self.project_type == ProjectType.SPONSORSHIP.value
