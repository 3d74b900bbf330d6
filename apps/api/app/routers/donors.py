"""Donors router - CRUD, lifecycle, and merge endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.db.enums import EntityType
from app.routers.lifecycle import build_lifecycle_router
from app.schemas.donor import DonorCreate, DonorRead, DonorUpdate
from app.schemas.merge import DonorMergeRequest, DonorMergeResponse
from app.services import donor_merge_service, donor_service

router = APIRouter()


@router.get("", response_model=list[DonorRead])
def list_donors(
    include_archived: bool = Query(False),
    db: Session = Depends(get_db),
):
    """List donors; merged-away donors are never listed."""
    return donor_service.list_donors(db, include_archived=include_archived)


@router.post("", response_model=DonorRead, status_code=201)
def create_donor(data: DonorCreate, db: Session = Depends(get_db)):
    return donor_service.create_donor(db, data.to_hints())


@router.post("/merge", response_model=DonorMergeResponse)
def merge_donors(data: DonorMergeRequest, db: Session = Depends(get_db)):
    """Merge donors into the first id, copying the selected field values."""
    result = donor_merge_service.merge_donors(db, data.donor_ids, data.field_selections)
    return DonorMergeResponse.model_validate(result)


@router.get("/{donor_id}", response_model=DonorRead)
def get_donor(donor_id: int, db: Session = Depends(get_db)):
    return donor_service.get_donor(db, donor_id)


@router.patch("/{donor_id}", response_model=DonorRead)
def update_donor(donor_id: int, data: DonorUpdate, db: Session = Depends(get_db)):
    return donor_service.update_donor(db, donor_id, data.to_hints())


router.include_router(build_lifecycle_router(EntityType.DONOR, DonorRead))
