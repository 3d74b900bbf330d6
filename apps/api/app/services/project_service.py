"""Project service - campaigns, the general fund, and sponsorship projects."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.structured_logging import build_log_context
from app.db.enums import ProjectType
from app.db.models import Project
from app.db.session import atomic
from app.services import visibility
from app.utils.normalization import clean_text
from app.utils.validation import parse_choice

logger = logging.getLogger(__name__)


def get_project(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


def list_projects(
    db: Session,
    *,
    include_archived: bool = False,
    project_type: ProjectType | None = None,
) -> list[Project]:
    query = db.query(Project).filter(visibility.listable_projects(include_archived))
    if project_type is not None:
        query = query.filter(Project.project_type == ProjectType(project_type).value)
    return query.order_by(Project.title.asc(), Project.id.asc()).all()


def find_general_fund(db: Session) -> Project | None:
    """The system general-fund project, archived or not."""
    return (
        db.query(Project)
        .filter(
            Project.system.is_(True),
            Project.project_type == ProjectType.GENERAL.value,
        )
        .order_by(Project.id.asc())
        .first()
    )


def get_or_create_general_fund(db: Session) -> Project:
    """
    Return the system general-fund project, creating it on first use.

    Looks up archived rows too; callers restore it when it receives a donation.
    Concurrent first donations race on uq_projects_system_fund; the loser
    reuses the winner's row.

    Raises:
        ConflictError: insert collided but no general fund is visible
    """
    project = find_general_fund(db)
    if project is not None:
        return project

    project = Project(
        title=settings.GENERAL_FUND_PROJECT_TITLE,
        project_type=ProjectType.GENERAL.value,
        system=True,
    )
    try:
        with db.begin_nested():
            db.add(project)
    except IntegrityError as exc:
        project = find_general_fund(db)
        if project is None:
            raise ConflictError(f"General fund insert failed: {exc.orig}") from exc
        logger.info(
            "Reused concurrently created general fund",
            extra=build_log_context(project_id=project.id),
        )
        return project

    logger.info("Created general fund project", extra=build_log_context(project_id=project.id))
    return project


def create_project(
    db: Session,
    *,
    title: str,
    project_type: ProjectType | str = ProjectType.GENERAL,
    description: str | None = None,
) -> Project:
    """
    Create a general or campaign project.

    Sponsorship projects are only created by the sponsorship allocator.
    """
    project_type = parse_choice(ProjectType, project_type, "project_type")
    cleaned_title = clean_text(title)
    if cleaned_title is None:
        raise ValidationError("can't be blank", field="title")
    if project_type is ProjectType.SPONSORSHIP:
        raise ValidationError(
            "sponsorship projects are created with their sponsorship", field="project_type"
        )

    with atomic(db):
        project = Project(
            title=cleaned_title,
            project_type=project_type.value,
            description=clean_text(description),
            system=False,
        )
        db.add(project)
        db.flush()
    db.refresh(project)
    logger.info("Created project", extra=build_log_context(project_id=project.id))
    return project
