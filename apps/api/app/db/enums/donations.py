"""Donation-related enums."""

from enum import Enum


class DonationStatus(str, Enum):
    """
    Settlement outcome of a donation.

    Set directly by entry or external reconciliation; no transitions are
    modeled between states.
    """

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELED = "canceled"
    NEEDS_ATTENTION = "needs_attention"

    @classmethod
    def review_statuses(cls) -> list[str]:
        """Statuses that put a donation in the pending-review view."""
        return [s.value for s in cls if s is not cls.SUCCEEDED]


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    CHECK = "check"
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"


DEFAULT_DONATION_STATUS = DonationStatus.SUCCEEDED
