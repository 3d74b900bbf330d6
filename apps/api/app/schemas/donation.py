"""Pydantic schemas for donations."""

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from app.db.enums import DonationStatus, PaymentMethod
from app.schemas.donor import DonorHints
from app.services.donation_service import DonationParams


class DonationCreate(BaseModel):
    """
    Request to record a donation.

    Identify the donor by donor_id, or pass raw donor attributes to resolve
    (and create if needed) by email.
    """

    amount: int = Field(..., gt=0, description="Integer cents")
    date: date
    payment_method: PaymentMethod
    status: DonationStatus = DonationStatus.SUCCEEDED
    donor_id: int | None = None
    donor: DonorHints | None = None
    project_id: int | None = None
    child_id: int | None = None
    description: str | None = Field(None, max_length=5000)
    external_subscription_id: str | None = Field(None, max_length=255)
    external_invoice_id: str | None = Field(None, max_length=255)
    external_charge_id: str | None = Field(None, max_length=255)
    external_customer_id: str | None = Field(None, max_length=255)

    @model_validator(mode="after")
    def require_donor(self):
        if self.donor_id is None and self.donor is None:
            raise ValueError("donor_id or donor is required")
        return self

    def to_params(self) -> DonationParams:
        data = self.model_dump(exclude={"donor"})
        return DonationParams(**data, donor=self.donor.to_hints() if self.donor else None)


class DonationRead(BaseModel):
    id: int
    donor_id: int
    project_id: int
    sponsorship_id: int | None
    child_id: int | None
    invoice_id: int | None
    amount: int
    date: date
    payment_method: PaymentMethod
    status: DonationStatus
    needs_review: bool
    description: str | None
    external_subscription_id: str | None
    external_invoice_id: str | None
    external_charge_id: str | None
    external_customer_id: str | None
    duplicate_subscription_detected: bool
    needs_attention_reason: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
