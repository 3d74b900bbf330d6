"""Donation service - validation, classification, duplicate guard, and views.

create_donation orchestrates one transaction:

1. validate amount/date/payment method/status
2. resolve the donor (by id, or from raw identity hints)
3. match or open a sponsorship when a child is named
4. default the project to the general fund
5. guard (external_subscription_id, child_id) uniqueness
6. restore archived donor/child/project receiving the donation
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import NotFoundError, ValidationError
from app.core.structured_logging import build_log_context
from app.db.enums import DEFAULT_DONATION_STATUS, DonationStatus, PaymentMethod
from app.db.models import Donation, Donor, Project, Sponsorship
from app.db.session import atomic
from app.services import (
    archive_service,
    child_service,
    donor_service,
    project_service,
    sponsorship_service,
)
from app.services.donor_identity import DonorIdentityHints
from app.utils.validation import parse_choice

logger = logging.getLogger(__name__)

PENDING_REVIEW_VIEW = "pending_review"
ACTIVE_VIEW = "active"
DONATION_VIEWS = (PENDING_REVIEW_VIEW, ACTIVE_VIEW)


@dataclass
class DonationParams:
    """Attributes for a new donation. Either donor_id or donor hints is required."""

    amount: int | None
    date: date | None
    payment_method: PaymentMethod | str | None
    donor_id: int | None = None
    donor: DonorIdentityHints | None = None
    project_id: int | None = None
    child_id: int | None = None
    status: DonationStatus | str | None = None
    description: str | None = None
    external_subscription_id: str | None = None
    external_invoice_id: str | None = None
    external_charge_id: str | None = None
    external_customer_id: str | None = None
    invoice_id: int | None = None
    needs_attention_reason: str | None = None


@dataclass(frozen=True)
class ValidatedDonation:
    amount: int
    date: date
    payment_method: PaymentMethod
    status: DonationStatus


# =============================================================================
# Validation and classification
# =============================================================================

def validate_donation_attributes(params: DonationParams) -> ValidatedDonation:
    """
    Raises:
        ValidationError: first failing attribute
    """
    amount = params.amount
    if amount is None:
        raise ValidationError("can't be blank", field="amount")
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("must be an integer", field="amount")
    if amount <= 0:
        raise ValidationError("must be greater than 0", field="amount")

    if params.date is None:
        raise ValidationError("can't be blank", field="date")
    if params.date > date.today():
        raise ValidationError("cannot be in the future", field="date")

    payment_method = parse_choice(PaymentMethod, params.payment_method, "payment_method")
    status = (
        DEFAULT_DONATION_STATUS
        if params.status is None
        else parse_choice(DonationStatus, params.status, "status")
    )
    return ValidatedDonation(amount=amount, date=params.date, payment_method=payment_method, status=status)


def ensure_subscription_child_available(
    db: Session,
    external_subscription_id: str | None,
    child_id: int | None,
    exclude_donation_id: int | None = None,
) -> None:
    """
    Raises:
        ValidationError: a kept donation already has this (subscription, child)
    """
    if external_subscription_id is None or child_id is None:
        return
    query = db.query(Donation.id).filter(
        Donation.external_subscription_id == external_subscription_id,
        Donation.child_id == child_id,
    )
    if exclude_donation_id is not None:
        query = query.filter(Donation.id != exclude_donation_id)
    if query.first() is not None:
        raise ValidationError("has already been taken for this child", field="external_subscription_id")


def subscription_used_for_other_child(
    db: Session,
    external_subscription_id: str | None,
    child_id: int | None,
    external_invoice_id: str | None = None,
) -> bool:
    """True when the subscription already paid for a different child on another invoice."""
    if external_subscription_id is None or child_id is None:
        return False
    query = db.query(Donation.id).filter(
        Donation.external_subscription_id == external_subscription_id,
        Donation.child_id.is_not(None),
        Donation.child_id != child_id,
    )
    if external_invoice_id is not None:
        query = query.filter(
            or_(
                Donation.external_invoice_id.is_(None),
                Donation.external_invoice_id != external_invoice_id,
            )
        )
    return query.first() is not None


# =============================================================================
# Transaction steps
# =============================================================================

def transaction_timestamp(donation_date: date) -> datetime:
    return datetime.combine(donation_date, time.min, tzinfo=timezone.utc)


def _resolve_donor(db: Session, params: DonationParams, donation_date: date) -> Donor:
    if params.donor_id is not None:
        return donor_service.get_donor_for_activity(db, params.donor_id)
    if params.donor is not None:
        donor, _ = donor_service.find_or_update_by_email(
            db, params.donor, transaction_timestamp(donation_date)
        )
        return donor
    raise ValidationError("must exist", field="donor")


def _resolve_project(db: Session, project_id: int | None) -> Project:
    if project_id is None:
        return project_service.get_or_create_general_fund(db)
    return project_service.get_project(db, project_id)


def record_donation(db: Session, params: DonationParams) -> Donation:
    """
    Validate, allocate, and insert one donation without committing.

    Raises:
        ValidationError: invalid attributes or duplicate (subscription, child)
        NotFoundError: unknown donor, child, or project
    """
    validated = validate_donation_attributes(params)
    donor = _resolve_donor(db, params, validated.date)

    child = None
    sponsorship: Sponsorship | None = None
    if params.child_id is not None:
        child = child_service.get_child(db, params.child_id)
        sponsorship, _ = sponsorship_service.allocate_for_donation(
            db, donor, child, validated.amount, validated.date
        )
        project = sponsorship.project
    else:
        project = _resolve_project(db, params.project_id)
        if project.is_sponsorship_project:
            raise ValidationError("must be present for sponsorship projects", field="sponsorship")

    ensure_subscription_child_available(db, params.external_subscription_id, params.child_id)
    duplicate_subscription = subscription_used_for_other_child(
        db, params.external_subscription_id, params.child_id, params.external_invoice_id
    )

    archive_service.restore_for_activity(db, donor, child, project)

    donation = Donation(
        donor_id=donor.id,
        project_id=project.id,
        sponsorship_id=sponsorship.id if sponsorship is not None else None,
        child_id=child.id if child is not None else None,
        invoice_id=params.invoice_id,
        amount=validated.amount,
        date=validated.date,
        payment_method=validated.payment_method.value,
        status=validated.status.value,
        description=params.description,
        external_subscription_id=params.external_subscription_id,
        external_invoice_id=params.external_invoice_id,
        external_charge_id=params.external_charge_id,
        external_customer_id=params.external_customer_id,
        duplicate_subscription_detected=duplicate_subscription,
        needs_attention_reason=params.needs_attention_reason,
    )
    try:
        with db.begin_nested():
            db.add(donation)
    except IntegrityError as exc:
        raise ValidationError(
            "has already been taken for this child", field="external_subscription_id"
        ) from exc

    if duplicate_subscription:
        logger.warning(
            "Subscription already used for another child",
            extra=build_log_context(donation_id=donation.id, child_id=donation.child_id),
        )
    return donation


# =============================================================================
# Use cases
# =============================================================================

def create_donation(db: Session, params: DonationParams) -> Donation:
    """Create a donation in one transaction (see module docstring)."""
    with atomic(db):
        donation = record_donation(db, params)
    db.refresh(donation)
    logger.info(
        "Created donation",
        extra=build_log_context(
            donation_id=donation.id,
            donor_id=donation.donor_id,
            sponsorship_id=donation.sponsorship_id,
            project_id=donation.project_id,
        ),
    )
    return donation


def get_donation(db: Session, donation_id: int) -> Donation:
    donation = db.get(Donation, donation_id)
    if donation is None:
        raise NotFoundError("Donation", donation_id)
    return donation


# =============================================================================
# Query views
# =============================================================================

def _base_query(db: Session):
    return db.query(Donation).options(joinedload(Donation.donor), joinedload(Donation.project))


def pending_review(db: Session) -> list[Donation]:
    return (
        _base_query(db)
        .filter(Donation.status.in_(DonationStatus.review_statuses()))
        .order_by(Donation.date.desc(), Donation.id.desc())
        .all()
    )


def active(db: Session) -> list[Donation]:
    return (
        _base_query(db)
        .filter(Donation.status == DonationStatus.SUCCEEDED.value)
        .order_by(Donation.date.desc(), Donation.id.desc())
        .all()
    )


def for_subscription(db: Session, external_subscription_id: str) -> list[Donation]:
    return (
        _base_query(db)
        .filter(Donation.external_subscription_id == external_subscription_id)
        .order_by(Donation.date.asc(), Donation.id.asc())
        .all()
    )


def list_donations(
    db: Session,
    *,
    view: str | None = None,
    external_subscription_id: str | None = None,
) -> list[Donation]:
    """Combine a named view with an optional subscription filter."""
    query = _base_query(db)
    if view == PENDING_REVIEW_VIEW:
        query = query.filter(Donation.status.in_(DonationStatus.review_statuses()))
    elif view == ACTIVE_VIEW:
        query = query.filter(Donation.status == DonationStatus.SUCCEEDED.value)
    elif view is not None:
        raise ValidationError("is not included in the list", field="view")
    if external_subscription_id is not None:
        query = query.filter(Donation.external_subscription_id == external_subscription_id)
    return query.order_by(Donation.date.desc(), Donation.id.desc()).all()
