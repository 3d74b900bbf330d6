"""Sponsorships router."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.schemas.sponsorship import SponsorshipCreate, SponsorshipEnd, SponsorshipRead
from app.services import sponsorship_service

router = APIRouter()


@router.get("", response_model=list[SponsorshipRead])
def list_sponsorships(
    donor_id: int | None = Query(None),
    child_id: int | None = Query(None),
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    return sponsorship_service.list_sponsorships(
        db, donor_id=donor_id, child_id=child_id, active_only=active_only
    )


@router.post("", response_model=SponsorshipRead, status_code=201)
def create_sponsorship(data: SponsorshipCreate, db: Session = Depends(get_db)):
    """Open a pledge; restores an archived donor or child."""
    return sponsorship_service.create_sponsorship(
        db,
        donor_id=data.donor_id,
        child_id=data.child_id,
        monthly_amount=data.monthly_amount,
        start_date=data.start_date,
    )


@router.post("/{sponsorship_id}/end", response_model=SponsorshipRead)
def end_sponsorship(
    sponsorship_id: int,
    data: SponsorshipEnd | None = None,
    db: Session = Depends(get_db),
):
    end_date = data.end_date if data else None
    return sponsorship_service.end_sponsorship(db, sponsorship_id, end_date)
