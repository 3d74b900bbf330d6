"""Pydantic schemas for sponsorships."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class SponsorshipCreate(BaseModel):
    """Request to open a sponsorship pledge."""

    donor_id: int
    child_id: int
    monthly_amount: int = Field(..., gt=0, description="Integer cents")
    start_date: date | None = None


class SponsorshipEnd(BaseModel):
    end_date: date | None = None


class SponsorshipRead(BaseModel):
    id: int
    donor_id: int
    child_id: int
    project_id: int
    monthly_amount: int
    start_date: date | None
    end_date: date | None
    active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
