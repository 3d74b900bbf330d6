"""Donation and invoice (reconciliation) models."""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import DEFAULT_DONATION_STATUS

if TYPE_CHECKING:
    from app.db.models import Child, Donor, Project, Sponsorship


class Donation(Base):
    """
    A single gift, entered by hand or reconciled from a payment provider.

    Amounts are integer cents. Donations are never soft-deleted, so every
    row counts as kept for the (subscription, child) duplicate guard.
    """

    __tablename__ = "donations"
    __table_args__ = (
        Index("idx_donations_donor", "donor_id"),
        Index("idx_donations_project_date", "project_id", "date"),
        Index("idx_donations_sponsorship", "sponsorship_id"),
        Index("idx_donations_child", "child_id"),
        Index("idx_donations_status", "status"),
        Index("idx_donations_date", "date"),
        Index("idx_donations_external_invoice", "external_invoice_id"),
        Index("idx_donations_external_charge", "external_charge_id"),
        # One kept donation per (subscription, child)
        Index(
            "uq_donations_subscription_child",
            "external_subscription_id",
            "child_id",
            unique=True,
            postgresql_where=text(
                "external_subscription_id IS NOT NULL AND child_id IS NOT NULL"
            ),
            sqlite_where=text(
                "external_subscription_id IS NOT NULL AND child_id IS NOT NULL"
            ),
        ),
        CheckConstraint("amount > 0", name="amount_positive"),
        CheckConstraint(
            "status IN ('succeeded', 'failed', 'refunded', 'canceled', 'needs_attention')",
            name="status_valid",
        ),
        CheckConstraint(
            "payment_method IN ('stripe', 'check', 'cash', 'bank_transfer')",
            name="payment_method_valid",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    donor_id: Mapped[int] = mapped_column(
        ForeignKey("donors.id", ondelete="RESTRICT"), nullable=False
    )
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False
    )
    sponsorship_id: Mapped[int | None] = mapped_column(
        ForeignKey("sponsorships.id", ondelete="RESTRICT"), nullable=True
    )
    child_id: Mapped[int | None] = mapped_column(
        ForeignKey("children.id", ondelete="RESTRICT"), nullable=True
    )
    invoice_id: Mapped[int | None] = mapped_column(
        ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True
    )

    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        server_default=text(f"'{DEFAULT_DONATION_STATUS.value}'"),
        default=DEFAULT_DONATION_STATUS.value,
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # External reconciliation identifiers
    external_subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    external_invoice_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    external_charge_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    external_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Advisory flags for operators
    duplicate_subscription_detected: Mapped[bool] = mapped_column(
        Boolean, server_default=text("FALSE"), default=False, nullable=False
    )
    needs_attention_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    donor: Mapped["Donor"] = relationship(back_populates="donations")
    project: Mapped["Project"] = relationship(back_populates="donations")
    sponsorship: Mapped["Sponsorship | None"] = relationship(back_populates="donations")
    child: Mapped["Child | None"] = relationship()
    invoice: Mapped["Invoice | None"] = relationship(back_populates="donations")

    @property
    def needs_review(self) -> bool:
        return self.status != DEFAULT_DONATION_STATUS.value


class Invoice(Base):
    """
    Provider invoice that one or more donations were reconciled from.

    A multi-child sponsorship charge produces one invoice and one donation
    per child.
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index("uq_invoices_external_invoice_id", "external_invoice_id", unique=True),
        Index("idx_invoices_external_charge", "external_charge_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_invoice_id: Mapped[str] = mapped_column(String(255), nullable=False)
    external_charge_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    external_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    external_subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    total_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    donations: Mapped[list["Donation"]] = relationship(back_populates="invoice")
