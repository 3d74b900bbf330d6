"""Children router."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.db.enums import EntityType
from app.routers.lifecycle import build_lifecycle_router
from app.schemas.child import ChildCreate, ChildRead
from app.services import child_service

router = APIRouter()


@router.get("", response_model=list[ChildRead])
def list_children(include_archived: bool = Query(False), db: Session = Depends(get_db)):
    return child_service.list_children(db, include_archived=include_archived)


@router.post("", response_model=ChildRead, status_code=201)
def create_child(data: ChildCreate, db: Session = Depends(get_db)):
    return child_service.create_child(db, name=data.name, gender=data.gender)


@router.get("/{child_id}", response_model=ChildRead)
def get_child(child_id: int, db: Session = Depends(get_db)):
    return child_service.get_child(db, child_id)


router.include_router(build_lifecycle_router(EntityType.CHILD, ChildRead))
