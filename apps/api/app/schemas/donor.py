"""Pydantic schemas for donors."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.services.donor_identity import DonorIdentityHints


class DonorHints(BaseModel):
    """Raw donor attributes; every field optional (fallbacks fill the gaps)."""

    name: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=320)
    phone: str | None = Field(None, max_length=50)
    address_line1: str | None = Field(None, max_length=255)
    address_line2: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    zip_code: str | None = Field(None, max_length=20)
    country: str | None = Field(None, max_length=100)

    def to_hints(self) -> DonorIdentityHints:
        return DonorIdentityHints(**self.model_dump())


class DonorCreate(DonorHints):
    """Request to create a donor."""


class DonorUpdate(DonorHints):
    """Request to update a donor (blank fields are left unchanged)."""


class DonorRead(BaseModel):
    """Donor response."""

    id: int
    name: str
    email: str
    phone: str | None
    address_line1: str | None
    address_line2: str | None
    city: str | None
    state: str | None
    zip_code: str | None
    country: str | None
    archived_at: datetime | None
    merged_into_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}
