"""Service layer modules."""

# Import service modules (not individual functions) for cleaner access
from app.services import visibility
from app.services import donor_identity
from app.services import archive_service
from app.services import donor_service
from app.services import child_service
from app.services import project_service
from app.services import sponsorship_service
from app.services import donation_service
from app.services import payment_import_service
from app.services import donor_merge_service

__all__ = [
    "visibility",
    "donor_identity",
    "archive_service",
    "donor_service",
    "child_service",
    "project_service",
    "sponsorship_service",
    "donation_service",
    "payment_import_service",
    "donor_merge_service",
]
