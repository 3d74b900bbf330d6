"""Tests for donation validation, classification, duplicate guard, and views."""

from datetime import date, timedelta

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.db.enums import DonationStatus, PaymentMethod, ProjectType
from app.db.models import Donation, Donor, Project, Sponsorship
from app.services import archive_service, donation_service, sponsorship_service
from app.services.donation_service import DonationParams
from app.services.donor_identity import DonorIdentityHints


def _params(donor, **overrides) -> DonationParams:
    values = dict(
        amount=2500,
        date=date.today(),
        payment_method=PaymentMethod.CHECK,
        donor_id=donor.id,
    )
    values.update(overrides)
    return DonationParams(**values)


# =============================================================================
# Validation
# =============================================================================

@pytest.mark.parametrize(
    "overrides, field, message",
    [
        ({"amount": 0}, "amount", "must be greater than 0"),
        ({"amount": -5}, "amount", "must be greater than 0"),
        ({"amount": None}, "amount", "can't be blank"),
        ({"amount": 10.5}, "amount", "must be an integer"),
        ({"date": None}, "date", "can't be blank"),
        ({"date": date.today() + timedelta(days=1)}, "date", "cannot be in the future"),
        ({"payment_method": None}, "payment_method", "can't be blank"),
        ({"payment_method": "paypal"}, "payment_method", "is not included in the list"),
        ({"status": "pending"}, "status", "is not included in the list"),
    ],
)
def test_invalid_attributes_are_rejected(db, donor, overrides, field, message):
    with pytest.raises(ValidationError) as exc_info:
        donation_service.create_donation(db, _params(donor, **overrides))

    assert exc_info.value.errors == {field: [message]}
    assert db.query(Donation).count() == 0


def test_status_defaults_to_succeeded(db, donor):
    donation = donation_service.create_donation(db, _params(donor))

    assert donation.status == DonationStatus.SUCCEEDED.value
    assert donation.needs_review is False


@pytest.mark.parametrize(
    "status",
    [DonationStatus.FAILED, DonationStatus.REFUNDED, DonationStatus.CANCELED, DonationStatus.NEEDS_ATTENTION],
)
def test_non_succeeded_statuses_need_review(db, donor, status):
    donation = donation_service.create_donation(db, _params(donor, status=status))
    assert donation.needs_review is True


def test_payment_method_accepts_exact_literal(db, donor):
    donation = donation_service.create_donation(db, _params(donor, payment_method="bank_transfer"))
    assert donation.payment_method == PaymentMethod.BANK_TRANSFER.value


def test_donor_is_required(db):
    with pytest.raises(ValidationError, match="Donor must exist"):
        donation_service.create_donation(
            db, DonationParams(amount=100, date=date.today(), payment_method="cash")
        )


def test_unknown_donor_is_not_found(db):
    with pytest.raises(NotFoundError):
        donation_service.create_donation(
            db, DonationParams(amount=100, date=date.today(), payment_method="cash", donor_id=404)
        )


# =============================================================================
# Project allocation
# =============================================================================

def test_donation_without_project_goes_to_general_fund(db, donor):
    first = donation_service.create_donation(db, _params(donor))
    second = donation_service.create_donation(db, _params(donor))

    fund = db.get(Project, first.project_id)
    assert fund.title == "General Donation"
    assert fund.system is True
    assert fund.project_type == ProjectType.GENERAL.value
    assert second.project_id == fund.id
    assert db.query(Project).count() == 1


def test_donation_to_explicit_project(db, donor, make_project):
    project = make_project("Clean Water")
    donation = donation_service.create_donation(db, _params(donor, project_id=project.id))

    assert donation.project_id == project.id
    assert donation.sponsorship_id is None


def test_sponsorship_project_requires_sponsorship(db, donor, child):
    sponsorship = sponsorship_service.create_sponsorship(
        db, donor_id=donor.id, child_id=child.id, monthly_amount=5000
    )

    with pytest.raises(ValidationError) as exc_info:
        donation_service.create_donation(db, _params(donor, project_id=sponsorship.project_id))

    assert exc_info.value.field == "sponsorship"


def test_child_donation_uses_sponsorship_project(db, donor, child, make_project):
    campaign = make_project("Ignored Campaign")
    donation = donation_service.create_donation(
        db, _params(donor, child_id=child.id, project_id=campaign.id)
    )

    sponsorship = db.get(Sponsorship, donation.sponsorship_id)
    assert donation.project_id == sponsorship.project_id
    assert donation.child_id == child.id


def test_donation_resolves_donor_from_hints(db):
    donation = donation_service.create_donation(
        db,
        DonationParams(
            amount=1000,
            date=date.today(),
            payment_method="cash",
            donor=DonorIdentityHints(name="Walk In"),
        ),
    )

    donor = db.get(Donor, donation.donor_id)
    assert donor.name == "Walk In"
    assert donor.email == "WalkIn@mailinator.com"


# =============================================================================
# Implicit restore
# =============================================================================

def test_donation_restores_archived_donor(db, donor):
    archive_service.archive(db, "donor", donor.id)
    db.refresh(donor)
    assert donor.archived_at is not None

    donation_service.create_donation(db, _params(donor))

    db.refresh(donor)
    assert donor.archived_at is None


def test_donation_restores_archived_project(db, donor, make_project):
    project = make_project("Old Campaign")
    archive_service.archive(db, "project", project.id)

    donation_service.create_donation(db, _params(donor, project_id=project.id))

    db.refresh(project)
    assert project.archived_at is None


def test_failed_donation_leaves_archived_donor_archived(db, donor):
    archive_service.archive(db, "donor", donor.id)

    with pytest.raises(ValidationError):
        donation_service.create_donation(db, _params(donor, date=date.today() + timedelta(days=3)))

    db.refresh(donor)
    assert donor.archived_at is not None


def test_rolled_back_restore_when_duplicate_guard_fails(db, donor, child):
    donation_service.create_donation(
        db, _params(donor, child_id=child.id, external_subscription_id="sub_1")
    )
    sponsorship_service.end_sponsorship(db, db.query(Sponsorship).one().id)
    archive_service.archive(db, "donor", donor.id)

    with pytest.raises(ValidationError):
        donation_service.create_donation(
            db, _params(donor, child_id=child.id, external_subscription_id="sub_1")
        )

    db.refresh(donor)
    assert donor.archived_at is not None
    assert db.query(Sponsorship).count() == 1


# =============================================================================
# Duplicate guard
# =============================================================================

def test_same_subscription_and_child_cannot_repeat(db, donor, child):
    donation_service.create_donation(
        db, _params(donor, child_id=child.id, external_subscription_id="sub_123")
    )

    with pytest.raises(ValidationError) as exc_info:
        donation_service.create_donation(
            db, _params(donor, child_id=child.id, external_subscription_id="sub_123")
        )

    assert exc_info.value.field == "external_subscription_id"
    assert db.query(Donation).count() == 1


def test_same_subscription_with_other_or_no_child_is_allowed(db, donor, child, make_child):
    other = make_child("Ana")
    donation_service.create_donation(
        db, _params(donor, child_id=child.id, external_subscription_id="sub_123")
    )
    second = donation_service.create_donation(
        db, _params(donor, child_id=other.id, external_subscription_id="sub_123")
    )
    third = donation_service.create_donation(db, _params(donor, external_subscription_id="sub_123"))

    assert db.query(Donation).count() == 3
    assert second.duplicate_subscription_detected is True
    assert third.duplicate_subscription_detected is False


def test_null_subscription_ids_are_exempt(db, donor, child):
    donation_service.create_donation(db, _params(donor, child_id=child.id))
    donation_service.create_donation(db, _params(donor, child_id=child.id))

    assert db.query(Donation).count() == 2


# =============================================================================
# Views
# =============================================================================

def test_views(db, donor):
    ok = donation_service.create_donation(db, _params(donor, external_subscription_id="sub_a"))
    failed = donation_service.create_donation(
        db, _params(donor, status="failed", external_subscription_id="sub_a")
    )
    refunded = donation_service.create_donation(db, _params(donor, status="refunded"))

    assert {d.id for d in donation_service.pending_review(db)} == {failed.id, refunded.id}
    assert [d.id for d in donation_service.active(db)] == [ok.id]
    assert {d.id for d in donation_service.for_subscription(db, "sub_a")} == {ok.id, failed.id}
    assert [
        d.id
        for d in donation_service.list_donations(
            db, view="pending_review", external_subscription_id="sub_a"
        )
    ] == [failed.id]


def test_unknown_view_is_rejected(db):
    with pytest.raises(ValidationError, match="View is not included in the list"):
        donation_service.list_donations(db, view="everything")
