"""Donor merge engine.

Merges N donor records into the first one, field group by field group:

1. validate ids and field selections, load every donor
2. close loser pledges that duplicate an active pledge the survivor will own
3. reassign all donations and sponsorships to the survivor
4. archive the losers and stamp merged_into_id
5. copy the selected field values onto the survivor

Everything runs in one transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.core.structured_logging import build_log_context
from app.db.enums import MergeField
from app.db.models import Donor, Sponsorship
from app.db.session import atomic
from app.services import archive_service, donor_service
from app.services.donor_identity import ADDRESS_FIELDS

logger = logging.getLogger(__name__)

# Donor attributes copied for each selectable field group
MERGE_FIELD_ATTRIBUTES: dict[MergeField, tuple[str, ...]] = {
    MergeField.NAME: ("name",),
    MergeField.EMAIL: ("email",),
    MergeField.PHONE: ("phone",),
    MergeField.ADDRESS: ADDRESS_FIELDS,
}


@dataclass
class MergeResult:
    donor: Donor
    donations_reassigned: int = 0
    sponsorships_reassigned: int = 0
    merged_donor_ids: list[int] = field(default_factory=list)


def _normalize_donor_ids(donor_ids: list[int]) -> list[int]:
    ordered = list(dict.fromkeys(donor_ids))
    if len(ordered) < 2:
        raise ValidationError("must include at least 2 donors", field="donor_ids")
    return ordered


def _normalize_selections(
    field_selections: dict[MergeField | str, int] | None,
    donor_ids: list[int],
) -> dict[MergeField, int]:
    """Resolve every field group to a donor id; unselected groups keep the survivor's values."""
    selections = {merge_field: donor_ids[0] for merge_field in MergeField}
    for key, donor_id in (field_selections or {}).items():
        try:
            merge_field = MergeField(key)
        except ValueError as exc:
            raise ValidationError("is not included in the list", field="field_selections") from exc
        if donor_id not in donor_ids:
            raise ValidationError(
                f"Invalid donor ID in field selections: {donor_id}", field="field_selections"
            )
        selections[merge_field] = donor_id
    return selections


def _close_colliding_pledges(db: Session, survivor: Donor, losers: list[Donor]) -> list[int]:
    """
    End loser pledges that would duplicate an active (child, amount) pledge after reassignment.

    Returns the ids of the ended sponsorships.
    """
    taken = {
        (s.child_id, s.monthly_amount)
        for s in db.query(Sponsorship).filter(
            Sponsorship.donor_id == survivor.id, Sponsorship.end_date.is_(None)
        )
    }
    ended = []
    loser_pledges = (
        db.query(Sponsorship)
        .filter(
            Sponsorship.donor_id.in_([loser.id for loser in losers]),
            Sponsorship.end_date.is_(None),
        )
        .order_by(Sponsorship.id.asc())
        .all()
    )
    for sponsorship in loser_pledges:
        key = (sponsorship.child_id, sponsorship.monthly_amount)
        if key in taken:
            sponsorship.end_date = date.today()
            ended.append(sponsorship.id)
        else:
            taken.add(key)
    db.flush()
    return ended


def _apply_selections(survivor: Donor, donors_by_id: dict[int, Donor], selections: dict[MergeField, int]) -> None:
    for merge_field, donor_id in selections.items():
        source = donors_by_id[donor_id]
        for attr in MERGE_FIELD_ATTRIBUTES[merge_field]:
            setattr(survivor, attr, getattr(source, attr))


def merge_donors(
    db: Session,
    donor_ids: list[int],
    field_selections: dict[MergeField | str, int] | None = None,
) -> MergeResult:
    """
    Merge donors into donor_ids[0].

    Raises:
        ValidationError: fewer than 2 distinct ids, bad selection, or the
            selected email belongs to another kept donor
        NotFoundError: an id does not exist
    """
    donor_ids = _normalize_donor_ids(donor_ids)
    selections = _normalize_selections(field_selections, donor_ids)

    with atomic(db):
        donors_by_id = {donor_id: donor_service.get_donor(db, donor_id) for donor_id in donor_ids}
        survivor = donors_by_id[donor_ids[0]]
        losers = [donors_by_id[donor_id] for donor_id in donor_ids[1:]]
        loser_ids = [loser.id for loser in losers]

        ended = _close_colliding_pledges(db, survivor, losers)
        donations_count, sponsorships_count = archive_service.reassign_donor_history(
            db, loser_ids, survivor.id
        )

        for loser in losers:
            archive_service.archive_record(db, loser)
            loser.merged_into_id = survivor.id
        db.flush()

        _apply_selections(survivor, donors_by_id, selections)
        donor_service.ensure_email_available(db, survivor.email, exclude_donor_id=survivor.id)
        archive_service.restore_for_activity(db, survivor)
        db.flush()

    db.refresh(survivor)
    logger.info(
        "Merged %d donors (%d donations, %d sponsorships reassigned, %d duplicate pledges ended)",
        len(losers),
        donations_count,
        sponsorships_count,
        len(ended),
        extra=build_log_context(donor_id=survivor.id),
    )
    return MergeResult(
        donor=survivor,
        donations_reassigned=donations_count,
        sponsorships_reassigned=sponsorships_count,
        merged_donor_ids=loser_ids,
    )
