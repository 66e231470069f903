"""Add settlement tables

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

This migration adds the following tables:
- brands: Label tenants and their platform fee settings
- artists, artist_team_members: Artists and who gets their emails
- releases, release_artists: Releases and per-category royalty splits
- earnings: Revenue recorded against a release
- recuperable_expenses: Signed recoupment ledger per release
- royalties: Artist entitlements created from earnings
- payments, payment_methods: Payouts to artists
- label_payments, label_payment_methods: Payouts to sub-labels
- events, tickets: Event sales read for sub-label balances
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _royalty_type_column(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.Enum('Revenue', 'Profit', name='royaltytype', native_enum=False),
        nullable=False,
        server_default='Revenue',
    )


def upgrade() -> None:
    # Create brands table
    op.create_table(
        'brands',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('brand_name', sa.String(255), nullable=False),
        sa.Column('parent_brand_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('brands.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('music_transaction_fixed_fee', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('music_revenue_percentage_fee', sa.Numeric(precision=5, scale=2), nullable=False, server_default='0'),
        sa.Column('music_fee_revenue_type', sa.String(10), nullable=False, server_default='net'),
        sa.Column('payment_processing_fee_for_payouts', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # Create artists table
    op.create_table(
        'artists',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('brand_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('brands.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('payout_point', sa.Numeric(precision=12, scale=2), nullable=False, server_default='1000'),
        sa.Column('hold_payouts', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()),
    )

    op.create_table(
        'artist_team_members',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('artist_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('artists.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('email_address', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
    )

    # Create releases tables
    op.create_table(
        'releases',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('brand_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('brands.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('catalog_no', sa.String(50), nullable=True, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'release_artists',
        sa.Column('release_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('releases.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('artist_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('artists.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('streaming_royalty_percentage', sa.Numeric(precision=4, scale=3), nullable=False, server_default='0.500'),
        _royalty_type_column('streaming_royalty_type'),
        sa.Column('sync_royalty_percentage', sa.Numeric(precision=4, scale=3), nullable=False, server_default='0.500'),
        _royalty_type_column('sync_royalty_type'),
        sa.Column('download_royalty_percentage', sa.Numeric(precision=4, scale=3), nullable=False, server_default='0.500'),
        _royalty_type_column('download_royalty_type'),
        sa.Column('physical_royalty_percentage', sa.Numeric(precision=4, scale=3), nullable=False, server_default='0.200'),
        _royalty_type_column('physical_royalty_type'),
        sa.CheckConstraint(
            'streaming_royalty_percentage >= 0 AND streaming_royalty_percentage <= 1 '
            'AND sync_royalty_percentage >= 0 AND sync_royalty_percentage <= 1 '
            'AND download_royalty_percentage >= 0 AND download_royalty_percentage <= 1 '
            'AND physical_royalty_percentage >= 0 AND physical_royalty_percentage <= 1',
            name='check_release_artist_percentage_range',
        ),
    )

    # Create earnings table
    op.create_table(
        'earnings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('release_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('releases.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('type', sa.String(45), nullable=False, server_default='Streaming'),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('date_recorded', sa.Date(), nullable=False, index=True),
        sa.Column('platform_fee', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('allocated_at', sa.DateTime(), nullable=True),
        sa.Column('fee_finalized_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # Create recoupment ledger
    op.create_table(
        'recuperable_expenses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('release_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('releases.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('brand_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('brands.id', ondelete='CASCADE'), nullable=False),
        sa.Column('earning_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('earnings.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('expense_description', sa.String(255), nullable=False),
        sa.Column('expense_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('date_recorded', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # Create royalties table
    op.create_table(
        'royalties',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('artist_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('artists.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('release_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('releases.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('earning_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('earnings.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('percentage_of_earning', sa.Numeric(precision=4, scale=3), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('date_recorded', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # Create payout tables
    op.create_table(
        'payments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('artist_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('artists.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('date_paid', sa.Date(), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('payment_processing_fee', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('reference_number', sa.String(100), nullable=True),
    )

    op.create_table(
        'payment_methods',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('artist_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('artists.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('type', sa.String(45), nullable=False),
        sa.Column('account_name', sa.String(255), nullable=False),
        sa.Column('account_number_or_email', sa.String(255), nullable=False),
        sa.Column('bank_code', sa.String(45), nullable=False, server_default='N/A'),
        sa.Column('is_default_for_artist', sa.Boolean(), nullable=False, server_default='false'),
    )

    op.create_table(
        'label_payments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('brand_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('brands.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('date_paid', sa.Date(), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('payment_processing_fee', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('reference_number', sa.String(100), nullable=True),
    )

    op.create_table(
        'label_payment_methods',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('brand_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('brands.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('type', sa.String(45), nullable=False),
        sa.Column('account_name', sa.String(255), nullable=False),
        sa.Column('account_number_or_email', sa.String(255), nullable=False),
        sa.Column('bank_code', sa.String(45), nullable=False, server_default='N/A'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='false'),
    )

    # Create event sales tables
    op.create_table(
        'events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('brand_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('brands.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
    )

    op.create_table(
        'tickets',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('status', sa.String(45), nullable=False, server_default='New'),
        sa.Column('price_per_ticket', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('number_of_entries', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('platform_fee', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('payment_processing_fee', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('date_paid', sa.Date(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('tickets')
    op.drop_table('events')
    op.drop_table('label_payment_methods')
    op.drop_table('label_payments')
    op.drop_table('payment_methods')
    op.drop_table('payments')
    op.drop_table('royalties')
    op.drop_table('recuperable_expenses')
    op.drop_table('earnings')
    op.drop_table('release_artists')
    op.drop_table('releases')
    op.drop_table('artist_team_members')
    op.drop_table('artists')
    op.drop_table('brands')
