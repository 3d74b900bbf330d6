"""Structured logging helpers (PII-safe)."""

import logging
from typing import Any

from app.core.config import settings


def configure_logging() -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_log_context(
    *,
    donor_id: int | None = None,
    donation_id: int | None = None,
    sponsorship_id: int | None = None,
    child_id: int | None = None,
    project_id: int | None = None,
    external_invoice_id: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict (ids only, never names or emails)."""
    context: dict[str, Any] = {}
    if donor_id is not None:
        context["donor_id"] = donor_id
    if donation_id is not None:
        context["donation_id"] = donation_id
    if sponsorship_id is not None:
        context["sponsorship_id"] = sponsorship_id
    if child_id is not None:
        context["child_id"] = child_id
    if project_id is not None:
        context["project_id"] = project_id
    if external_invoice_id:
        context["external_invoice_id"] = external_invoice_id
    return context
