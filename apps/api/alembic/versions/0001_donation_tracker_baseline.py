"""Baseline migration - donors, children, projects, sponsorships, donations, invoices

Revision ID: 0001_donation_tracker_baseline
Revises:
Create Date: 2026-10-16

Portable across PostgreSQL and SQLite. Partial unique indexes carry both
postgresql_where and sqlite_where.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_donation_tracker_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create donation tracker tables."""

    # ==========================================================================
    # Donors
    # ==========================================================================
    op.create_table(
        'donors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address_line1', sa.String(255), nullable=True),
        sa.Column('address_line2', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(100), nullable=True),
        sa.Column('zip_code', sa.String(20), nullable=True),
        sa.Column('country', sa.String(100), server_default=sa.text("'US'"), nullable=True),
        sa.Column('last_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'merged_into_id',
            sa.Integer(),
            sa.ForeignKey('donors.id', name=op.f('fk_donors_merged_into_id_donors'), ondelete='SET NULL'),
            nullable=True,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_donors')),
    )
    op.create_index('idx_donors_archived_at', 'donors', ['archived_at'])
    op.create_index('idx_donors_merged_into', 'donors', ['merged_into_id'])
    op.create_index('idx_donors_name', 'donors', ['name'])
    op.create_index(
        'uq_donors_email_active',
        'donors',
        [sa.text('lower(email)')],
        unique=True,
        postgresql_where=sa.text('archived_at IS NULL'),
        sqlite_where=sa.text('archived_at IS NULL'),
    )

    # ==========================================================================
    # Children
    # ==========================================================================
    op.create_table(
        'children',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('gender', sa.String(10), nullable=True),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_children')),
        sa.CheckConstraint("gender IN ('boy', 'girl')", name=op.f('ck_children_gender_valid')),
    )
    op.create_index('idx_children_archived_at', 'children', ['archived_at'])

    # ==========================================================================
    # Projects
    # ==========================================================================
    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('project_type', sa.String(20), server_default=sa.text("'general'"), nullable=False),
        sa.Column('system', sa.Boolean(), server_default=sa.text('FALSE'), nullable=False),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_projects')),
        sa.CheckConstraint(
            "project_type IN ('general', 'campaign', 'sponsorship')",
            name=op.f('ck_projects_project_type_valid'),
        ),
    )
    op.create_index('idx_projects_archived_at', 'projects', ['archived_at'])
    op.create_index('idx_projects_type', 'projects', ['project_type'])
    op.create_index('idx_projects_title', 'projects', ['title'])
    op.create_index(
        'uq_projects_system_fund',
        'projects',
        ['system'],
        unique=True,
        postgresql_where=sa.text('system IS TRUE'),
        sqlite_where=sa.text('system = 1'),
    )

    # ==========================================================================
    # Sponsorships
    # ==========================================================================
    op.create_table(
        'sponsorships',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column(
            'donor_id',
            sa.Integer(),
            sa.ForeignKey('donors.id', name=op.f('fk_sponsorships_donor_id_donors'), ondelete='RESTRICT'),
            nullable=False,
        ),
        sa.Column(
            'child_id',
            sa.Integer(),
            sa.ForeignKey('children.id', name=op.f('fk_sponsorships_child_id_children'), ondelete='RESTRICT'),
            nullable=False,
        ),
        sa.Column(
            'project_id',
            sa.Integer(),
            sa.ForeignKey('projects.id', name=op.f('fk_sponsorships_project_id_projects'), ondelete='RESTRICT'),
            nullable=False,
        ),
        sa.Column('monthly_amount', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_sponsorships')),
        sa.CheckConstraint('monthly_amount > 0', name=op.f('ck_sponsorships_monthly_amount_positive')),
    )
    op.create_index('idx_sponsorships_donor', 'sponsorships', ['donor_id'])
    op.create_index('idx_sponsorships_child', 'sponsorships', ['child_id'])
    op.create_index('idx_sponsorships_project', 'sponsorships', ['project_id'])
    op.create_index('idx_sponsorships_end_date', 'sponsorships', ['end_date'])
    op.create_index(
        'uq_sponsorships_active_pledge',
        'sponsorships',
        ['donor_id', 'child_id', 'monthly_amount'],
        unique=True,
        postgresql_where=sa.text('end_date IS NULL'),
        sqlite_where=sa.text('end_date IS NULL'),
    )

    # ==========================================================================
    # Invoices
    # ==========================================================================
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('external_invoice_id', sa.String(255), nullable=False),
        sa.Column('external_charge_id', sa.String(255), nullable=True),
        sa.Column('external_customer_id', sa.String(255), nullable=True),
        sa.Column('external_subscription_id', sa.String(255), nullable=True),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('invoice_date', sa.Date(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_invoices')),
    )
    op.create_index('uq_invoices_external_invoice_id', 'invoices', ['external_invoice_id'], unique=True)
    op.create_index('idx_invoices_external_charge', 'invoices', ['external_charge_id'])

    # ==========================================================================
    # Donations
    # ==========================================================================
    op.create_table(
        'donations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column(
            'donor_id',
            sa.Integer(),
            sa.ForeignKey('donors.id', name=op.f('fk_donations_donor_id_donors'), ondelete='RESTRICT'),
            nullable=False,
        ),
        sa.Column(
            'project_id',
            sa.Integer(),
            sa.ForeignKey('projects.id', name=op.f('fk_donations_project_id_projects'), ondelete='RESTRICT'),
            nullable=False,
        ),
        sa.Column(
            'sponsorship_id',
            sa.Integer(),
            sa.ForeignKey('sponsorships.id', name=op.f('fk_donations_sponsorship_id_sponsorships'), ondelete='RESTRICT'),
            nullable=True,
        ),
        sa.Column(
            'child_id',
            sa.Integer(),
            sa.ForeignKey('children.id', name=op.f('fk_donations_child_id_children'), ondelete='RESTRICT'),
            nullable=True,
        ),
        sa.Column(
            'invoice_id',
            sa.Integer(),
            sa.ForeignKey('invoices.id', name=op.f('fk_donations_invoice_id_invoices'), ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('payment_method', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), server_default=sa.text("'succeeded'"), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('external_subscription_id', sa.String(255), nullable=True),
        sa.Column('external_invoice_id', sa.String(255), nullable=True),
        sa.Column('external_charge_id', sa.String(255), nullable=True),
        sa.Column('external_customer_id', sa.String(255), nullable=True),
        sa.Column('duplicate_subscription_detected', sa.Boolean(), server_default=sa.text('FALSE'), nullable=False),
        sa.Column('needs_attention_reason', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_donations')),
        sa.CheckConstraint('amount > 0', name=op.f('ck_donations_amount_positive')),
        sa.CheckConstraint(
            "status IN ('succeeded', 'failed', 'refunded', 'canceled', 'needs_attention')",
            name=op.f('ck_donations_status_valid'),
        ),
        sa.CheckConstraint(
            "payment_method IN ('stripe', 'check', 'cash', 'bank_transfer')",
            name=op.f('ck_donations_payment_method_valid'),
        ),
    )
    op.create_index('idx_donations_donor', 'donations', ['donor_id'])
    op.create_index('idx_donations_project_date', 'donations', ['project_id', 'date'])
    op.create_index('idx_donations_sponsorship', 'donations', ['sponsorship_id'])
    op.create_index('idx_donations_child', 'donations', ['child_id'])
    op.create_index('idx_donations_status', 'donations', ['status'])
    op.create_index('idx_donations_date', 'donations', ['date'])
    op.create_index('idx_donations_external_invoice', 'donations', ['external_invoice_id'])
    op.create_index('idx_donations_external_charge', 'donations', ['external_charge_id'])
    op.create_index(
        'uq_donations_subscription_child',
        'donations',
        ['external_subscription_id', 'child_id'],
        unique=True,
        postgresql_where=sa.text('external_subscription_id IS NOT NULL AND child_id IS NOT NULL'),
        sqlite_where=sa.text('external_subscription_id IS NOT NULL AND child_id IS NOT NULL'),
    )


def downgrade() -> None:
    """Drop donation tracker tables."""
    op.drop_table('donations')
    op.drop_table('invoices')
    op.drop_table('sponsorships')
    op.drop_table('projects')
    op.drop_table('children')
    op.drop_table('donors')
