"""Child service."""

import logging

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.core.structured_logging import build_log_context
from app.db.enums import ChildGender
from app.db.models import Child
from app.db.session import atomic
from app.services import visibility
from app.utils.normalization import normalize_name
from app.utils.validation import parse_choice

logger = logging.getLogger(__name__)


def get_child(db: Session, child_id: int) -> Child:
    child = db.get(Child, child_id)
    if child is None:
        raise NotFoundError("Child", child_id)
    return child


def list_children(db: Session, *, include_archived: bool = False) -> list[Child]:
    return (
        db.query(Child)
        .filter(visibility.listable_children(include_archived))
        .order_by(Child.name.asc(), Child.id.asc())
        .all()
    )


def create_child(db: Session, *, name: str, gender: ChildGender | str | None = None) -> Child:
    """
    Raises:
        ValidationError: blank name
    """
    cleaned_name = normalize_name(name)
    if cleaned_name is None:
        raise ValidationError("can't be blank", field="name")

    with atomic(db):
        child = Child(
            name=cleaned_name,
            gender=parse_choice(ChildGender, gender, "gender").value if gender else None,
        )
        db.add(child)
        db.flush()
    db.refresh(child)
    logger.info("Created child", extra=build_log_context(child_id=child.id))
    return child
