"""Pydantic schemas for payment record imports."""

from datetime import date

from pydantic import BaseModel, Field

from app.db.enums import PaymentMethod
from app.schemas.donor import DonorHints
from app.services.payment_import_service import PaymentRecord


class PaymentRecordIn(BaseModel):
    """A payment already parsed out of the provider's export or webhook."""

    amount_cents: int = Field(..., gt=0)
    date: date
    payment_method: PaymentMethod
    donor: DonorHints = Field(default_factory=DonorHints)
    child_ids: list[int] = Field(default_factory=list)
    project_id: int | None = None
    status: str | None = Field(
        None, description="Exact donation status; other values fail the row"
    )
    description: str | None = None
    external_subscription_id: str | None = None
    external_invoice_id: str | None = None
    external_charge_id: str | None = None
    external_customer_id: str | None = None

    def to_record(self) -> PaymentRecord:
        data = self.model_dump(exclude={"donor"})
        return PaymentRecord(**data, donor=self.donor.to_hints())


class PaymentBatchRequest(BaseModel):
    records: list[PaymentRecordIn] = Field(..., min_length=1)


class ImportRowError(BaseModel):
    row: int
    message: str


class PaymentBatchResult(BaseModel):
    succeeded_count: int
    failed_count: int
    needs_attention_count: int
    skipped_count: int
    errors: list[ImportRowError]

    model_config = {"from_attributes": True}
