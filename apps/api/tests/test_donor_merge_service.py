"""Tests for the donor merge engine."""

from datetime import date

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.db.models import Donation, Donor, Sponsorship
from app.services import archive_service, donation_service, donor_service, sponsorship_service
from app.services.donation_service import DonationParams
from app.services.donor_identity import DonorIdentityHints
from app.services.donor_merge_service import merge_donors


def _give(db, donor, amount=1000, **extra):
    return donation_service.create_donation(
        db,
        DonationParams(amount=amount, date=date.today(), payment_method="check", donor_id=donor.id, **extra),
    )


@pytest.fixture
def duplicates(make_donor):
    first = make_donor("John Smith", "john@old.example.com", phone="555-0100")
    second = make_donor("Johnny Smith", "john@new.example.com", phone="555-0199")
    return first, second


def test_merge_selects_fields_and_archives_loser(db, duplicates):
    first, second = duplicates
    donation = _give(db, second, amount=2000)

    result = merge_donors(db, [first.id, second.id], {"name": first.id, "email": second.id})

    survivor = result.donor
    assert survivor.id == first.id
    assert survivor.name == "John Smith"
    assert survivor.email == "john@new.example.com"
    assert survivor.phone == "555-0100"
    assert result.merged_donor_ids == [second.id]
    assert result.donations_reassigned == 1

    db.refresh(second)
    assert second.archived_at is not None
    assert second.merged_into_id == first.id
    assert db.get(Donation, donation.id).donor_id == first.id

    assert second.id not in [d.id for d in donor_service.list_donors(db)]
    assert second.id not in [d.id for d in donor_service.list_donors(db, include_archived=True)]


def test_merge_without_selections_keeps_survivor_values(db, duplicates):
    first, second = duplicates

    result = merge_donors(db, [first.id, second.id])

    assert result.donor.name == "John Smith"
    assert result.donor.email == "john@old.example.com"


def test_merge_address_moves_as_a_group(db, make_donor):
    first = make_donor("Ann Lee", "ann@example.com", address_line1="1 Old Rd", city="Boston", state="MA")
    second = make_donor("Ann Lee", "ann.lee@example.com", address_line1="9 New Ave", city="Denver")

    survivor = merge_donors(db, [first.id, second.id], {"address": second.id}).donor

    assert survivor.address_line1 == "9 New Ave"
    assert survivor.city == "Denver"
    assert survivor.state is None


def test_merge_three_donors(db, make_donor):
    donors = [make_donor(f"Donor {n}", f"d{n}@example.com") for n in range(3)]
    for d in donors[1:]:
        _give(db, d)

    result = merge_donors(db, [d.id for d in donors], {"phone": donors[2].id})

    assert result.donations_reassigned == 2
    assert sorted(result.merged_donor_ids) == [donors[1].id, donors[2].id]
    assert db.query(Donation).filter(Donation.donor_id == donors[0].id).count() == 2


def test_merge_reassigns_sponsorships_and_ends_duplicate_pledge(db, duplicates, child, make_child):
    first, second = duplicates
    other_child = make_child("Ana")
    kept_pledge = sponsorship_service.create_sponsorship(
        db, donor_id=first.id, child_id=child.id, monthly_amount=3000
    )
    duplicate_pledge = sponsorship_service.create_sponsorship(
        db, donor_id=second.id, child_id=child.id, monthly_amount=3000
    )
    other_pledge = sponsorship_service.create_sponsorship(
        db, donor_id=second.id, child_id=other_child.id, monthly_amount=3000
    )

    result = merge_donors(db, [first.id, second.id])

    assert result.sponsorships_reassigned == 2
    active = (
        db.query(Sponsorship)
        .filter(Sponsorship.donor_id == first.id, Sponsorship.end_date.is_(None))
        .all()
    )
    assert {s.id for s in active} == {kept_pledge.id, other_pledge.id}
    db.refresh(duplicate_pledge)
    assert duplicate_pledge.donor_id == first.id
    assert duplicate_pledge.end_date == date.today()


def test_merge_loser_with_active_pledge_is_archived(db, duplicates, child):
    first, second = duplicates
    sponsorship_service.create_sponsorship(
        db, donor_id=second.id, child_id=child.id, monthly_amount=3000
    )

    merge_donors(db, [first.id, second.id])

    db.refresh(second)
    assert second.archived_at is not None


def test_merge_restores_archived_survivor(db, duplicates):
    first, second = duplicates
    archive_service.archive(db, "donor", first.id)

    result = merge_donors(db, [first.id, second.id])

    assert result.donor.archived_at is None


def test_merge_duplicate_ids_collapse(db, duplicates):
    first, _ = duplicates

    with pytest.raises(ValidationError) as exc_info:
        merge_donors(db, [first.id, first.id])

    assert exc_info.value.errors == {"donor_ids": ["must include at least 2 donors"]}


def test_merge_rejects_selection_outside_donor_ids(db, duplicates, make_donor):
    first, second = duplicates
    outsider = make_donor("Outsider", "out@example.com")

    with pytest.raises(ValidationError) as exc_info:
        merge_donors(db, [first.id, second.id], {"email": outsider.id})

    assert exc_info.value.message == f"Invalid donor ID in field selections: {outsider.id}"


def test_merge_rejects_unknown_field(db, duplicates):
    first, second = duplicates

    with pytest.raises(ValidationError) as exc_info:
        merge_donors(db, [first.id, second.id], {"birthday": second.id})

    assert exc_info.value.field == "field_selections"


def test_merge_unknown_donor_rolls_back(db, duplicates):
    first, second = duplicates

    with pytest.raises(NotFoundError):
        merge_donors(db, [first.id, second.id, 9999])

    db.refresh(second)
    assert second.archived_at is None
    assert second.merged_into_id is None


def test_merge_email_collision_rolls_back(db, duplicates, make_donor):
    first, second = duplicates
    donation = _give(db, second)
    make_donor("Someone Else", "taken@example.com")
    second_email = "taken@example.com"
    # loser picks up the taken address while archived so the merge copies it over
    archive_service.archive(db, "donor", second.id)
    db.refresh(second)
    second.email = second_email
    db.commit()

    with pytest.raises(ValidationError, match="Email has already been taken"):
        merge_donors(db, [first.id, second.id], {"email": second.id})

    assert db.get(Donation, donation.id).donor_id == second.id
    assert db.get(Donor, second.id).merged_into_id is None


# =============================================================================
# Activity on merged-away donors
# =============================================================================

def test_donation_for_merged_donor_lands_on_survivor(db, duplicates):
    first, second = duplicates
    merge_donors(db, [first.id, second.id], {"name": first.id, "email": second.id})

    donation = _give(db, second, amount=2500)

    assert donation.donor_id == first.id
    db.refresh(second)
    assert second.archived_at is not None
    assert second.merged_into_id == first.id
    assert [d.id for d in donor_service.list_donors(db)] == [first.id]


def test_donation_for_merged_donor_without_selections(db, duplicates):
    first, second = duplicates
    merge_donors(db, [first.id, second.id])

    donation = _give(db, second)

    assert donation.donor_id == first.id
    assert db.get(Donor, first.id).email == "john@old.example.com"
    assert db.query(Donor).filter(Donor.archived_at.is_(None)).count() == 1


def test_donation_by_merged_donor_email_lands_on_survivor(db, duplicates):
    first, second = duplicates
    merge_donors(db, [first.id, second.id])

    donation = donation_service.create_donation(
        db,
        DonationParams(
            amount=1500,
            date=date.today(),
            payment_method="check",
            donor=DonorIdentityHints(name="Johnny Smith", email="john@new.example.com"),
        ),
    )

    assert donation.donor_id == first.id
    assert db.query(Donor).count() == 2


def test_sponsorship_for_merged_donor_lands_on_survivor(db, duplicates, child):
    first, second = duplicates
    merge_donors(db, [first.id, second.id], {"email": second.id})

    sponsorship = sponsorship_service.create_sponsorship(
        db, donor_id=second.id, child_id=child.id, monthly_amount=3000
    )

    assert sponsorship.donor_id == first.id
    assert db.get(Donor, second.id).archived_at is not None
    assert [d.id for d in donor_service.list_donors(db)] == [first.id]


def test_child_donation_for_merged_donor_reuses_survivor_pledge(db, duplicates, child):
    first, second = duplicates
    pledge = sponsorship_service.create_sponsorship(
        db, donor_id=first.id, child_id=child.id, monthly_amount=3000
    )
    merge_donors(db, [first.id, second.id])

    donation = _give(db, second, amount=3000, child_id=child.id)

    assert donation.sponsorship_id == pledge.id
    assert db.query(Sponsorship).count() == 1
