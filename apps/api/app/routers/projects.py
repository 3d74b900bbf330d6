"""Projects router."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.db.enums import EntityType, ProjectType
from app.routers.lifecycle import build_lifecycle_router
from app.schemas.project import ProjectCreate, ProjectRead
from app.services import project_service

router = APIRouter()


@router.get("", response_model=list[ProjectRead])
def list_projects(
    include_archived: bool = Query(False),
    project_type: ProjectType | None = Query(None),
    db: Session = Depends(get_db),
):
    return project_service.list_projects(
        db, include_archived=include_archived, project_type=project_type
    )


@router.post("", response_model=ProjectRead, status_code=201)
def create_project(data: ProjectCreate, db: Session = Depends(get_db)):
    return project_service.create_project(
        db,
        title=data.title,
        project_type=data.project_type,
        description=data.description,
    )


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(project_id: int, db: Session = Depends(get_db)):
    return project_service.get_project(db, project_id)


router.include_router(build_lifecycle_router(EntityType.PROJECT, ProjectRead))
