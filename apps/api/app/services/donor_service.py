"""Donor service - explicit donor CRUD and find-or-update by email."""

import logging
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.structured_logging import build_log_context
from app.db.models import Donor
from app.db.session import atomic
from app.services import visibility
from app.services.donor_identity import (
    DonorIdentityHints,
    ResolvedDonorIdentity,
    resolve_donor_identity,
)
from app.utils.normalization import is_blank

logger = logging.getLogger(__name__)

# Guard against a corrupt merged_into_id cycle
MAX_MERGE_HOPS = 10


# =============================================================================
# Lookups
# =============================================================================

def get_donor(db: Session, donor_id: int) -> Donor:
    """Get a donor by id (archived or not)."""
    donor = db.get(Donor, donor_id)
    if donor is None:
        raise NotFoundError("Donor", donor_id)
    return donor


def get_kept_donor_by_email(db: Session, email: str) -> Donor | None:
    """Case-insensitive lookup among non-archived donors."""
    return (
        db.query(Donor)
        .filter(func.lower(Donor.email) == email.strip().lower(), visibility.kept(Donor))
        .first()
    )


def get_archived_donor_by_email(db: Session, email: str) -> Donor | None:
    """Most recently archived donor with this email, following merges to the survivor."""
    donor = (
        db.query(Donor)
        .filter(func.lower(Donor.email) == email.strip().lower(), visibility.archived(Donor))
        .order_by(Donor.archived_at.desc(), Donor.id.desc())
        .first()
    )
    if donor is None:
        return None
    return resolve_merge_survivor(db, donor)


def resolve_merge_survivor(db: Session, donor: Donor) -> Donor:
    """Follow merged_into_id links to the donor that absorbed this one."""
    hops = 0
    while donor.merged_into_id is not None and hops < MAX_MERGE_HOPS:
        donor = get_donor(db, donor.merged_into_id)
        hops += 1
    return donor


def get_donor_for_activity(db: Session, donor_id: int) -> Donor:
    """
    Donor that new donations and sponsorships for donor_id belong to.

    A merged-away donor resolves to its merge survivor.

    Raises:
        NotFoundError: unknown donor
    """
    donor = get_donor(db, donor_id)
    survivor = resolve_merge_survivor(db, donor)
    if survivor.id != donor.id:
        logger.info(
            "Redirected activity from merged donor %s to survivor",
            donor.id,
            extra=build_log_context(donor_id=survivor.id),
        )
    return survivor


def list_donors(db: Session, *, include_archived: bool = False) -> list[Donor]:
    """
    List donors ordered by name.

    Merged-away donors never appear, even with include_archived.
    """
    return (
        db.query(Donor)
        .filter(visibility.listable_donors(include_archived))
        .order_by(Donor.name.asc(), Donor.id.asc())
        .all()
    )


def ensure_email_available(db: Session, email: str, exclude_donor_id: int | None = None) -> None:
    """
    Raises:
        ValidationError: a kept donor already uses this email
    """
    existing = get_kept_donor_by_email(db, email)
    if existing is not None and existing.id != exclude_donor_id:
        raise ValidationError("has already been taken", field="email")


# =============================================================================
# Transaction steps
# =============================================================================

def insert_donor(db: Session, identity: ResolvedDonorIdentity, *, last_updated_at: datetime | None = None) -> Donor:
    """
    Insert a donor inside a savepoint.

    Raises:
        ConflictError: another writer inserted a kept donor with this email first
    """
    attrs = {key: value for key, value in identity.as_attributes().items() if value is not None}
    donor = Donor(**attrs, last_updated_at=last_updated_at)
    try:
        with db.begin_nested():
            db.add(donor)
    except IntegrityError as exc:
        raise ConflictError(f"Donor email collided: {exc.orig}") from exc
    return donor


def find_or_update_by_email(
    db: Session,
    hints: DonorIdentityHints,
    transaction_at: datetime,
) -> tuple[Donor, bool]:
    """
    Resolve raw donor hints to a donor row, creating one when unknown.

    An existing donor is only updated when transaction_at is newer than its
    last_updated_at, and blank hints never overwrite stored values.

    Returns (donor, created).
    """
    identity = resolve_donor_identity(hints)

    donor = get_kept_donor_by_email(db, identity.email) or get_archived_donor_by_email(
        db, identity.email
    )
    if donor is None:
        try:
            donor = insert_donor(db, identity, last_updated_at=transaction_at)
            logger.info("Created donor from identity hints", extra=build_log_context(donor_id=donor.id))
            return donor, True
        except ConflictError:
            donor = get_kept_donor_by_email(db, identity.email)
            if donor is None:
                raise

    _apply_newer_hints(donor, hints, identity, transaction_at)
    db.flush()
    return donor, False


def _apply_newer_hints(
    donor: Donor,
    hints: DonorIdentityHints,
    identity: ResolvedDonorIdentity,
    transaction_at: datetime,
) -> None:
    last_updated = donor.last_updated_at or datetime.fromtimestamp(0, tz=timezone.utc)
    if last_updated.tzinfo is None:
        last_updated = last_updated.replace(tzinfo=timezone.utc)
    if transaction_at.tzinfo is None:
        transaction_at = transaction_at.replace(tzinfo=timezone.utc)
    if transaction_at <= last_updated:
        return

    if not is_blank(hints.name):
        donor.name = identity.name
    for attr in ("phone", "address_line1", "address_line2", "city", "state", "zip_code", "country"):
        value = getattr(identity, attr)
        if value is not None:
            setattr(donor, attr, value)
    donor.last_updated_at = transaction_at


# =============================================================================
# Use cases
# =============================================================================

def create_donor(db: Session, hints: DonorIdentityHints) -> Donor:
    """
    Create a donor explicitly.

    Raises:
        ValidationError: malformed email, or email used by a kept donor
    """
    with atomic(db):
        identity = resolve_donor_identity(hints)
        ensure_email_available(db, identity.email)
        try:
            donor = insert_donor(db, identity, last_updated_at=datetime.now(timezone.utc))
        except ConflictError as exc:
            raise ValidationError("has already been taken", field="email") from exc
    db.refresh(donor)
    logger.info("Created donor", extra=build_log_context(donor_id=donor.id))
    return donor


def update_donor(db: Session, donor_id: int, hints: DonorIdentityHints) -> Donor:
    """
    Update donor fields supplied in hints; blank fields are left unchanged.

    Raises:
        NotFoundError: unknown donor
        ValidationError: malformed or taken email
    """
    with atomic(db):
        donor = get_donor(db, donor_id)
        merged = DonorIdentityHints(
            name=hints.name if not is_blank(hints.name) else donor.name,
            email=hints.email if not is_blank(hints.email) else donor.email,
            phone=hints.phone if not is_blank(hints.phone) else donor.phone,
            address_line1=hints.address_line1 if not is_blank(hints.address_line1) else donor.address_line1,
            address_line2=hints.address_line2 if not is_blank(hints.address_line2) else donor.address_line2,
            city=hints.city if not is_blank(hints.city) else donor.city,
            state=hints.state if not is_blank(hints.state) else donor.state,
            zip_code=hints.zip_code if not is_blank(hints.zip_code) else donor.zip_code,
            country=hints.country if not is_blank(hints.country) else donor.country,
        )
        identity = resolve_donor_identity(merged)
        if donor.archived_at is None:
            ensure_email_available(db, identity.email, exclude_donor_id=donor.id)
        for attr, value in identity.as_attributes().items():
            setattr(donor, attr, value)
        donor.last_updated_at = datetime.now(timezone.utc)
        db.flush()
    db.refresh(donor)
    return donor
