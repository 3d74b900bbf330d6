"""SQLAlchemy ORM models."""

from app.db.models.children import Child
from app.db.models.donations import Donation, Invoice
from app.db.models.donors import Donor
from app.db.models.projects import Project
from app.db.models.sponsorships import Sponsorship

__all__ = ["Child", "Donation", "Donor", "Invoice", "Project", "Sponsorship"]
