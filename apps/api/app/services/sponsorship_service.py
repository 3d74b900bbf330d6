"""Sponsorship matcher/allocator.

A donation naming a child is matched to the donor's active pledge for that
child at the same monthly amount, or a new pledge is opened. Ended pledges
are history and are never matched again.

Concurrent allocators race on the partial unique index
uq_sponsorships_active_pledge; the loser's insert is rolled back to its
savepoint and the winner's row is reused.
"""

import logging
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.structured_logging import build_log_context
from app.db.enums import ProjectType
from app.db.models import Child, Donor, Project, Sponsorship
from app.db.session import atomic
from app.services import archive_service, donor_service

logger = logging.getLogger(__name__)


def get_sponsorship(db: Session, sponsorship_id: int) -> Sponsorship:
    sponsorship = db.get(Sponsorship, sponsorship_id)
    if sponsorship is None:
        raise NotFoundError("Sponsorship", sponsorship_id)
    return sponsorship


def find_active_match(db: Session, donor_id: int, child_id: int, monthly_amount: int) -> Sponsorship | None:
    """Active pledge for exactly (donor, child, amount), if any."""
    return (
        db.query(Sponsorship)
        .filter(
            Sponsorship.donor_id == donor_id,
            Sponsorship.child_id == child_id,
            Sponsorship.monthly_amount == monthly_amount,
            Sponsorship.end_date.is_(None),
        )
        .first()
    )


def list_sponsorships(
    db: Session,
    *,
    donor_id: int | None = None,
    child_id: int | None = None,
    active_only: bool = False,
) -> list[Sponsorship]:
    """List sponsorships newest first, optionally filtered by donor/child."""
    query = db.query(Sponsorship).options(
        joinedload(Sponsorship.donor), joinedload(Sponsorship.child)
    )
    if donor_id is not None:
        query = query.filter(Sponsorship.donor_id == donor_id)
    if child_id is not None:
        query = query.filter(Sponsorship.child_id == child_id)
    if active_only:
        query = query.filter(Sponsorship.end_date.is_(None))
    return query.order_by(Sponsorship.created_at.desc(), Sponsorship.id.desc()).all()


def validate_monthly_amount(monthly_amount) -> int:
    if monthly_amount is None:
        raise ValidationError("can't be blank", field="monthly_amount")
    if isinstance(monthly_amount, bool) or not isinstance(monthly_amount, int):
        raise ValidationError("must be an integer", field="monthly_amount")
    if monthly_amount <= 0:
        raise ValidationError("must be greater than 0", field="monthly_amount")
    return monthly_amount


# =============================================================================
# Transaction steps
# =============================================================================

def insert_sponsorship(
    db: Session,
    donor: Donor,
    child: Child,
    monthly_amount: int,
    start_date: date | None = None,
) -> Sponsorship:
    """
    Open a new pledge together with its dedicated sponsorship project.

    Raises:
        ConflictError: an identical active pledge was inserted concurrently
    """
    try:
        with db.begin_nested():
            project = Project(
                title=f"Sponsor {child.name}",
                project_type=ProjectType.SPONSORSHIP.value,
                system=False,
            )
            sponsorship = Sponsorship(
                donor_id=donor.id,
                child_id=child.id,
                project=project,
                monthly_amount=monthly_amount,
                start_date=start_date or date.today(),
            )
            db.add(sponsorship)
    except IntegrityError as exc:
        raise ConflictError(f"Active sponsorship already exists: {exc.orig}") from exc

    logger.info(
        "Opened sponsorship",
        extra=build_log_context(
            sponsorship_id=sponsorship.id,
            donor_id=donor.id,
            child_id=child.id,
            project_id=sponsorship.project_id,
        ),
    )
    return sponsorship


def allocate_for_donation(
    db: Session,
    donor: Donor,
    child: Child,
    amount: int,
    start_date: date | None = None,
) -> tuple[Sponsorship, bool]:
    """
    Match or open the pledge a child donation belongs to.

    Returns (sponsorship, created).
    """
    match = find_active_match(db, donor.id, child.id, amount)
    if match is not None:
        return match, False

    try:
        return insert_sponsorship(db, donor, child, amount, start_date), True
    except ConflictError:
        match = find_active_match(db, donor.id, child.id, amount)
        if match is None:
            raise
        logger.info(
            "Reused concurrently opened sponsorship",
            extra=build_log_context(sponsorship_id=match.id),
        )
        return match, False


# =============================================================================
# Use cases
# =============================================================================

def create_sponsorship(
    db: Session,
    *,
    donor_id: int,
    child_id: int,
    monthly_amount: int,
    start_date: date | None = None,
) -> Sponsorship:
    """
    Explicitly open a pledge.

    Archived donor or child is restored in the same transaction; a merged-away
    donor resolves to its merge survivor.

    Raises:
        NotFoundError: unknown donor or child
        ValidationError: invalid amount, or identical active pledge exists
    """
    with atomic(db):
        monthly_amount = validate_monthly_amount(monthly_amount)
        donor = donor_service.get_donor_for_activity(db, donor_id)
        child = archive_service.get_record(db, "child", child_id)

        if find_active_match(db, donor.id, child.id, monthly_amount) is not None:
            raise ValidationError(f"{child.name} is already actively sponsored by {donor.name}")

        archive_service.restore_for_activity(db, donor, child)
        try:
            sponsorship = insert_sponsorship(db, donor, child, monthly_amount, start_date)
        except ConflictError as exc:
            raise ValidationError(
                f"{child.name} is already actively sponsored by {donor.name}"
            ) from exc
    db.refresh(sponsorship)
    return sponsorship


def end_sponsorship(db: Session, sponsorship_id: int, end_date: date | None = None) -> Sponsorship:
    """
    Close a pledge. Ending an already ended pledge leaves it unchanged.

    Raises:
        NotFoundError: unknown sponsorship
        ValidationError: end_date before start_date
    """
    with atomic(db):
        sponsorship = get_sponsorship(db, sponsorship_id)
        if sponsorship.end_date is None:
            end_date = end_date or date.today()
            if sponsorship.start_date is not None and end_date < sponsorship.start_date:
                raise ValidationError("must be on or after the start date", field="end_date")
            sponsorship.end_date = end_date
            db.flush()
            logger.info("Ended sponsorship", extra=build_log_context(sponsorship_id=sponsorship.id))
    db.refresh(sponsorship)
    return sponsorship
