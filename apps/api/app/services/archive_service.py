"""Archive/restore cascade guard for donors, children, and projects.

Every rule that the soft-delete lifecycle depends on lives here as an
explicit step the calling use case invokes inside its own transaction:

- archive is blocked while the record owns an active sponsorship
- hard delete is blocked once any donation or sponsorship exists
- new activity on an archived record restores it
"""

import logging
from datetime import datetime, timezone
from typing import Union

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.core.structured_logging import build_log_context
from app.db.enums import EntityType
from app.db.models import Child, Donation, Donor, Project, Sponsorship
from app.db.session import atomic
from app.services import visibility

logger = logging.getLogger(__name__)

ArchivableRecord = Union[Donor, Child, Project]

_MODELS: dict[EntityType, type] = {
    EntityType.DONOR: Donor,
    EntityType.CHILD: Child,
    EntityType.PROJECT: Project,
}


def entity_type_for(record: ArchivableRecord) -> EntityType:
    for entity_type, model in _MODELS.items():
        if isinstance(record, model):
            return entity_type
    raise TypeError(f"{type(record).__name__} does not support archiving")


def get_record(db: Session, entity_type: EntityType | str, entity_id: int) -> ArchivableRecord:
    """Load a donor/child/project by id regardless of archive state."""
    entity_type = EntityType(entity_type)
    record = db.get(_MODELS[entity_type], entity_id)
    if record is None:
        raise NotFoundError(entity_type.value.capitalize(), entity_id)
    return record


# =============================================================================
# Ownership queries
# =============================================================================

def _sponsorship_owner_column(entity_type: EntityType):
    return {
        EntityType.DONOR: Sponsorship.donor_id,
        EntityType.CHILD: Sponsorship.child_id,
        EntityType.PROJECT: Sponsorship.project_id,
    }[entity_type]


def _donation_owner_column(entity_type: EntityType):
    return {
        EntityType.DONOR: Donation.donor_id,
        EntityType.CHILD: Donation.child_id,
        EntityType.PROJECT: Donation.project_id,
    }[entity_type]


def has_active_sponsorships(db: Session, record: ArchivableRecord) -> bool:
    column = _sponsorship_owner_column(entity_type_for(record))
    return (
        db.query(Sponsorship.id)
        .filter(column == record.id, Sponsorship.end_date.is_(None))
        .first()
        is not None
    )


def has_history(db: Session, record: ArchivableRecord) -> bool:
    """True when any donation or sponsorship (ended or not) references the record."""
    entity_type = entity_type_for(record)
    sponsorship = (
        db.query(Sponsorship.id)
        .filter(_sponsorship_owner_column(entity_type) == record.id)
        .first()
    )
    if sponsorship is not None:
        return True
    donation = (
        db.query(Donation.id)
        .filter(_donation_owner_column(entity_type) == record.id)
        .first()
    )
    return donation is not None


def can_be_deleted(db: Session, record: ArchivableRecord) -> bool:
    if isinstance(record, Project) and record.system:
        return False
    return not has_history(db, record)


# =============================================================================
# Transaction steps (no commit; callers own the transaction)
# =============================================================================

def archive_record(db: Session, record: ArchivableRecord) -> ArchivableRecord:
    """
    Soft delete a record.

    Raises:
        ValidationError: record owns an active sponsorship
    """
    if record.archived_at is not None:
        return record

    entity_type = entity_type_for(record)
    if has_active_sponsorships(db, record):
        raise ValidationError(f"Cannot archive {entity_type.label} with active sponsorships")

    record.archived_at = datetime.now(timezone.utc)
    db.flush()
    return record


def restore_record(db: Session, record: ArchivableRecord) -> ArchivableRecord:
    """
    Clear archived_at.

    Raises:
        ValidationError: a restored donor's email is already used by a kept donor
    """
    if record.archived_at is None:
        return record

    if isinstance(record, Donor):
        _ensure_email_available(db, record)

    record.archived_at = None
    db.flush()
    return record


def restore_for_activity(db: Session, *records: ArchivableRecord | None) -> list[ArchivableRecord]:
    """
    Restore every archived record that is receiving a new donation or sponsorship.

    Returns the records that were actually restored.
    """
    restored = []
    for record in records:
        if record is None or record.archived_at is None:
            continue
        restore_record(db, record)
        restored.append(record)
        logger.info(
            "Restored archived %s on new activity",
            entity_type_for(record).value,
            extra=log_context_for(record),
        )
    return restored


def reassign_donor_history(db: Session, from_donor_ids: list[int], to_donor_id: int) -> tuple[int, int]:
    """
    Move every donation and sponsorship owned by from_donor_ids to to_donor_id.

    Returns (donations_reassigned, sponsorships_reassigned).
    """
    if not from_donor_ids:
        return 0, 0

    donations = db.execute(
        update(Donation)
        .where(Donation.donor_id.in_(from_donor_ids))
        .values(donor_id=to_donor_id)
        .execution_options(synchronize_session="fetch")
    )
    sponsorships = db.execute(
        update(Sponsorship)
        .where(Sponsorship.donor_id.in_(from_donor_ids))
        .values(donor_id=to_donor_id)
        .execution_options(synchronize_session="fetch")
    )
    db.flush()
    return donations.rowcount or 0, sponsorships.rowcount or 0


def _ensure_email_available(db: Session, donor: Donor) -> None:
    clash = (
        db.query(Donor.id)
        .filter(
            func.lower(Donor.email) == donor.email.lower(),
            visibility.kept(Donor),
            Donor.id != donor.id,
        )
        .first()
    )
    if clash is not None:
        raise ValidationError("has already been taken", field="email")


# =============================================================================
# Use cases (one transaction each)
# =============================================================================

def archive(db: Session, entity_type: EntityType | str, entity_id: int) -> ArchivableRecord:
    """Archive a donor, child, or project by id."""
    with atomic(db):
        record = get_record(db, entity_type, entity_id)
        archive_record(db, record)
    db.refresh(record)
    logger.info("Archived %s %s", entity_type_for(record).value, entity_id, extra=log_context_for(record))
    return record


def restore(db: Session, entity_type: EntityType | str, entity_id: int) -> ArchivableRecord:
    """Restore an archived donor, child, or project by id."""
    with atomic(db):
        record = get_record(db, entity_type, entity_id)
        restore_record(db, record)
    db.refresh(record)
    logger.info("Restored %s %s", entity_type_for(record).value, entity_id, extra=log_context_for(record))
    return record


def hard_delete(db: Session, entity_type: EntityType | str, entity_id: int) -> None:
    """
    Permanently delete a record with no history.

    Raises:
        ValidationError: system project, or donations/sponsorships exist
    """
    with atomic(db):
        record = get_record(db, entity_type, entity_id)
        entity_type = entity_type_for(record)
        if isinstance(record, Project) and record.system:
            raise ValidationError("Cannot delete system projects")
        if has_history(db, record):
            raise ValidationError(
                f"Cannot delete {entity_type.label} with existing donations or sponsorships"
            )
        db.delete(record)
    logger.info("Deleted %s %s", entity_type.value, entity_id)


def log_context_for(record: ArchivableRecord) -> dict:
    entity_type = entity_type_for(record)
    if entity_type is EntityType.DONOR:
        return build_log_context(donor_id=record.id)
    if entity_type is EntityType.CHILD:
        return build_log_context(child_id=record.id)
    return build_log_context(project_id=record.id)
