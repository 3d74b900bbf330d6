"""Pydantic schemas for children."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.db.enums import ChildGender


class ChildCreate(BaseModel):
    """Request to create a child."""

    name: str = Field(..., min_length=1, max_length=255)
    gender: ChildGender | None = None


class ChildRead(BaseModel):
    id: int
    name: str
    gender: ChildGender | None
    archived_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}
