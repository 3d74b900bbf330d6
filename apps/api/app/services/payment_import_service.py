"""Idempotent ingestion of pre-parsed provider payment records.

Each record becomes one invoice row plus one donation per child (or a single
project donation when no child is named). Re-importing a record updates the
donations it produced instead of duplicating them:

- invoice key: external_invoice_id, falling back to external_charge_id
- donation key: (invoice key, child_id), or (invoice key, project_id) without a child

Records carry exact donation status literals; translating provider-specific
statuses happens before a record reaches this module.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, DonationTrackerError, ValidationError
from app.core.structured_logging import build_log_context
from app.db.enums import DonationStatus, PaymentMethod
from app.db.models import Donation, Invoice
from app.db.session import atomic
from app.services import (
    archive_service,
    donation_service,
    donor_service,
    project_service,
    sponsorship_service,
)
from app.services.donation_service import ValidatedDonation
from app.services.donor_identity import DonorIdentityHints
from app.utils.normalization import clean_text

logger = logging.getLogger(__name__)

DUPLICATE_CHILD_REASON = "Duplicate child in same invoice"


@dataclass
class PaymentRecord:
    """One provider payment, already parsed out of its transport format."""

    amount_cents: int
    date: date
    payment_method: PaymentMethod | str | None
    donor: DonorIdentityHints = field(default_factory=DonorIdentityHints)
    child_ids: list[int] = field(default_factory=list)
    project_id: int | None = None
    status: DonationStatus | str | None = None
    description: str | None = None
    external_subscription_id: str | None = None
    external_invoice_id: str | None = None
    external_charge_id: str | None = None
    external_customer_id: str | None = None

    @property
    def invoice_key(self) -> str | None:
        return clean_text(self.external_invoice_id) or clean_text(self.external_charge_id)


@dataclass
class PaymentImportResult:
    donations: list[Donation] = field(default_factory=list)
    skipped: bool = False


@dataclass
class BatchImportResult:
    succeeded_count: int = 0
    failed_count: int = 0
    needs_attention_count: int = 0
    skipped_count: int = 0
    errors: list[dict] = field(default_factory=list)  # [{row: int, message: str}]

    def count(self, donation: Donation) -> None:
        if donation.status == DonationStatus.SUCCEEDED.value:
            self.succeeded_count += 1
        elif donation.status == DonationStatus.FAILED.value:
            self.failed_count += 1
        else:
            self.needs_attention_count += 1


def validate_record(record: PaymentRecord) -> ValidatedDonation:
    """
    Apply donation validation to a record before anything is written.

    A missing status means the default status; any other value must be an
    exact status literal.

    Raises:
        ValidationError: invalid amount, date, payment method, or status
    """
    return donation_service.validate_donation_attributes(
        donation_service.DonationParams(
            amount=record.amount_cents,
            date=record.date,
            payment_method=record.payment_method,
            status=record.status,
        )
    )


# =============================================================================
# Transaction steps
# =============================================================================

def get_invoice(db: Session, invoice_key: str) -> Invoice | None:
    return db.query(Invoice).filter(Invoice.external_invoice_id == invoice_key).first()


def upsert_invoice(db: Session, record: PaymentRecord) -> tuple[Invoice, bool]:
    """
    Find or create the invoice for a record.

    Returns (invoice, created).
    """
    invoice_key = record.invoice_key
    invoice = get_invoice(db, invoice_key)
    if invoice is not None:
        return invoice, False

    invoice = Invoice(
        external_invoice_id=invoice_key,
        external_charge_id=clean_text(record.external_charge_id),
        external_customer_id=clean_text(record.external_customer_id),
        external_subscription_id=clean_text(record.external_subscription_id),
        total_amount_cents=record.amount_cents,
        invoice_date=record.date,
    )
    try:
        with db.begin_nested():
            db.add(invoice)
    except IntegrityError as exc:
        invoice = get_invoice(db, invoice_key)
        if invoice is None:
            raise ConflictError(f"Invoice upsert failed: {exc.orig}") from exc
        return invoice, False
    return invoice, True


def find_imported_donation(
    db: Session,
    invoice_key: str,
    *,
    child_id: int | None = None,
    project_id: int | None = None,
) -> Donation | None:
    query = db.query(Donation).filter(Donation.external_invoice_id == invoice_key)
    if child_id is not None:
        query = query.filter(Donation.child_id == child_id)
    else:
        query = query.filter(Donation.child_id.is_(None), Donation.project_id == project_id)
    return query.order_by(Donation.id.asc()).first()


def _reallocate_sponsorship(db: Session, donation: Donation, validated: ValidatedDonation) -> None:
    """Point a child donation at the active pledge for its new amount."""
    archive_service.restore_for_activity(db, donation.donor, donation.child)
    sponsorship, _ = sponsorship_service.allocate_for_donation(
        db, donation.donor, donation.child, validated.amount, validated.date
    )
    donation.sponsorship_id = sponsorship.id
    donation.project_id = sponsorship.project_id
    logger.info(
        "Moved re-imported donation to the pledge for its new amount",
        extra=build_log_context(donation_id=donation.id, sponsorship_id=sponsorship.id),
    )


def _update_imported_donation(
    db: Session,
    donation: Donation,
    validated: ValidatedDonation,
    status: DonationStatus,
    reason: str | None,
) -> bool:
    """Apply re-imported values; returns True when anything changed."""
    changed = False
    if donation.child_id is not None and donation.amount != validated.amount:
        _reallocate_sponsorship(db, donation, validated)
        changed = True

    changes = {
        "amount": validated.amount,
        "date": validated.date,
        "status": status.value,
        "needs_attention_reason": reason,
    }
    for attr, value in changes.items():
        if getattr(donation, attr) != value:
            setattr(donation, attr, value)
            changed = True
    return changed


def _donation_params(
    record: PaymentRecord,
    donor_id: int,
    invoice: Invoice,
    status: DonationStatus,
    *,
    child_id: int | None = None,
    project_id: int | None = None,
    reason: str | None = None,
) -> donation_service.DonationParams:
    return donation_service.DonationParams(
        amount=record.amount_cents,
        date=record.date,
        payment_method=record.payment_method,
        donor_id=donor_id,
        child_id=child_id,
        project_id=project_id,
        status=status,
        description=clean_text(record.description),
        external_subscription_id=clean_text(record.external_subscription_id),
        external_invoice_id=invoice.external_invoice_id,
        external_charge_id=clean_text(record.external_charge_id),
        external_customer_id=clean_text(record.external_customer_id),
        invoice_id=invoice.id,
        needs_attention_reason=reason,
    )


def _import_child_donations(db, record, donor, invoice, validated) -> tuple[list[Donation], bool]:
    donations: list[Donation] = []
    changed = False
    seen: dict[int, Donation] = {}

    for child_id in record.child_ids:
        if child_id in seen:
            duplicate = seen[child_id]
            if duplicate.status != DonationStatus.NEEDS_ATTENTION.value:
                duplicate.status = DonationStatus.NEEDS_ATTENTION.value
                changed = True
            if duplicate.needs_attention_reason != DUPLICATE_CHILD_REASON:
                duplicate.needs_attention_reason = DUPLICATE_CHILD_REASON
                changed = True
            logger.warning(
                "Same child appears twice in one invoice",
                extra=build_log_context(
                    donation_id=duplicate.id,
                    child_id=child_id,
                    external_invoice_id=invoice.external_invoice_id,
                ),
            )
            continue

        reason = DUPLICATE_CHILD_REASON if record.child_ids.count(child_id) > 1 else None
        child_status = DonationStatus.NEEDS_ATTENTION if reason else validated.status

        donation = find_imported_donation(db, invoice.external_invoice_id, child_id=child_id)
        if donation is not None:
            changed = (
                _update_imported_donation(db, donation, validated, child_status, reason) or changed
            )
        else:
            donation = donation_service.record_donation(
                db,
                _donation_params(
                    record, donor.id, invoice, child_status, child_id=child_id, reason=reason
                ),
            )
            changed = True
        seen[child_id] = donation
        donations.append(donation)

    return donations, changed


def _import_project_donation(db, record, donor, invoice, validated) -> tuple[list[Donation], bool]:
    if record.project_id is not None:
        project = project_service.get_project(db, record.project_id)
    else:
        project = project_service.get_or_create_general_fund(db)

    donation = find_imported_donation(db, invoice.external_invoice_id, project_id=project.id)
    if donation is not None:
        return [donation], _update_imported_donation(db, donation, validated, validated.status, None)

    donation = donation_service.record_donation(
        db, _donation_params(record, donor.id, invoice, validated.status, project_id=project.id)
    )
    return [donation], True


# =============================================================================
# Use cases
# =============================================================================

def import_payment(db: Session, record: PaymentRecord) -> PaymentImportResult:
    """
    Import one payment record in its own transaction.

    A record whose invoice already exists and whose donations are unchanged
    is reported as skipped.

    Raises:
        ValidationError: missing invoice/charge id, invalid donation
            attributes, or a status that is not an exact status literal
        NotFoundError: unknown child or project
    """
    if record.invoice_key is None:
        raise ValidationError("can't be blank", field="external_invoice_id")
    validated = validate_record(record)

    with atomic(db):
        invoice, invoice_created = upsert_invoice(db, record)
        donor, _ = donor_service.find_or_update_by_email(
            db, record.donor, donation_service.transaction_timestamp(validated.date)
        )

        if record.child_ids:
            donations, changed = _import_child_donations(db, record, donor, invoice, validated)
        else:
            donations, changed = _import_project_donation(db, record, donor, invoice, validated)

        if invoice.total_amount_cents != validated.amount:
            invoice.total_amount_cents = validated.amount
            changed = True
        db.flush()

    skipped = not invoice_created and not changed
    logger.info(
        "Imported payment record (skipped=%s, donations=%d)",
        skipped,
        len(donations),
        extra=build_log_context(donor_id=donor.id, external_invoice_id=invoice.external_invoice_id),
    )
    return PaymentImportResult(donations=donations, skipped=skipped)


def import_batch(db: Session, records: list[PaymentRecord]) -> BatchImportResult:
    """
    Import records one by one; a failing record is reported and the batch continues.

    Rows are numbered from 1 in input order.
    """
    result = BatchImportResult()

    for row_num, record in enumerate(records, start=1):
        try:
            imported = import_payment(db, record)
        except DonationTrackerError as e:
            result.errors.append({"row": row_num, "message": str(e)})
            continue
        except Exception as e:
            logger.exception("Unexpected error importing payment row %d", row_num)
            result.errors.append({"row": row_num, "message": str(e)})
            continue

        if imported.skipped:
            result.skipped_count += 1
            continue
        for donation in imported.donations:
            result.count(donation)

    logger.info(
        "Payment batch finished: %d succeeded, %d failed, %d need attention, %d skipped, %d errors",
        result.succeeded_count,
        result.failed_count,
        result.needs_attention_count,
        result.skipped_count,
        len(result.errors),
    )
    return result
