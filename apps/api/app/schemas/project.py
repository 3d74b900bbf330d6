"""Pydantic schemas for projects."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.db.enums import ProjectType


class ProjectCreate(BaseModel):
    """Request to create a project (sponsorship projects come with their sponsorship)."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    project_type: Literal["general", "campaign"] = "general"


class ProjectRead(BaseModel):
    id: int
    title: str
    description: str | None
    project_type: ProjectType
    system: bool
    archived_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}
