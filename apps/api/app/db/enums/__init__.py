"""Enum definitions for application constants."""

from app.db.enums.donations import (
    DEFAULT_DONATION_STATUS,
    DonationStatus,
    PaymentMethod,
)
from app.db.enums.entities import EntityType
from app.db.enums.people import ChildGender, MergeField
from app.db.enums.projects import ProjectType
