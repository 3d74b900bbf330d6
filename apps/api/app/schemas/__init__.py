"""Pydantic schemas for API request/response models."""

from app.schemas.child import ChildCreate, ChildRead
from app.schemas.donation import DonationCreate, DonationRead
from app.schemas.donor import DonorCreate, DonorHints, DonorRead, DonorUpdate
from app.schemas.imports import (
    ImportRowError,
    PaymentBatchRequest,
    PaymentBatchResult,
    PaymentRecordIn,
)
from app.schemas.merge import DonorMergeRequest, DonorMergeResponse
from app.schemas.project import ProjectCreate, ProjectRead
from app.schemas.sponsorship import SponsorshipCreate, SponsorshipEnd, SponsorshipRead

__all__ = [
    "ChildCreate",
    "ChildRead",
    "DonationCreate",
    "DonationRead",
    "DonorCreate",
    "DonorHints",
    "DonorRead",
    "DonorUpdate",
    "ImportRowError",
    "PaymentBatchRequest",
    "PaymentBatchResult",
    "PaymentRecordIn",
    "DonorMergeRequest",
    "DonorMergeResponse",
    "ProjectCreate",
    "ProjectRead",
    "SponsorshipCreate",
    "SponsorshipEnd",
    "SponsorshipRead",
]
