"""Pydantic schemas for donor merges."""

from pydantic import BaseModel, Field

from app.db.enums import MergeField
from app.schemas.donor import DonorRead


class DonorMergeRequest(BaseModel):
    """
    Merge donors into donor_ids[0].

    field_selections maps name/email/phone/address to the donor whose value wins.
    """

    donor_ids: list[int] = Field(..., min_length=2)
    field_selections: dict[MergeField, int] = Field(default_factory=dict)


class DonorMergeResponse(BaseModel):
    donor: DonorRead
    donations_reassigned: int
    sponsorships_reassigned: int
    merged_donor_ids: list[int]

    model_config = {"from_attributes": True}
