"""Donations router."""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.schemas.donation import DonationCreate, DonationRead
from app.services import donation_service

router = APIRouter()


@router.get("", response_model=list[DonationRead])
def list_donations(
    view: Literal["pending_review", "active"] | None = Query(None),
    subscription_id: str | None = Query(None),
    db: Session = Depends(get_db),
):
    """List donations through a named view, optionally for one subscription."""
    return donation_service.list_donations(
        db, view=view, external_subscription_id=subscription_id
    )


@router.post("", response_model=DonationRead, status_code=201)
def create_donation(data: DonationCreate, db: Session = Depends(get_db)):
    """
    Record a donation.

    Naming a child matches or opens the donor's sponsorship for that child
    at this amount; without a child the general fund is used by default.
    """
    return donation_service.create_donation(db, data.to_params())


@router.get("/{donation_id}", response_model=DonationRead)
def get_donation(donation_id: int, db: Session = Depends(get_db)):
    return donation_service.get_donation(db, donation_id)
