"""Initial schema - users, warehouses, units, pricing, bookings, payments

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

On PostgreSQL the bookings table also gets the btree_gist based exclusion
constraint that rejects overlapping non-cancelled bookings of one unit.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == 'postgresql'

    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('phone_number', sa.String(20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'warehouses',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'warehouse_units',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('warehouse_id', sa.String(36), sa.ForeignKey('warehouses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('unit_number', sa.String(50), nullable=False),
        sa.Column('square_meters', sa.Numeric(10, 2), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('warehouse_id', 'unit_number', name='uq_warehouse_unit_number'),
    )
    op.create_index('ix_warehouse_units_warehouse_id', 'warehouse_units', ['warehouse_id'])

    op.create_table(
        'unit_pricing',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('unit_id', sa.String(36), sa.ForeignKey('warehouse_units.id', ondelete='CASCADE'), nullable=False),
        sa.Column('pricing_type', sa.String(20), nullable=False),
        sa.Column('price', sa.Numeric(18, 2), nullable=False),
        sa.Column('discount_percentage', sa.Numeric(5, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('price > 0', name='ck_unit_pricing_price_positive'),
        sa.CheckConstraint(
            'discount_percentage IS NULL OR (discount_percentage >= 0 AND discount_percentage <= 100)',
            name='ck_unit_pricing_discount_range',
        ),
        sa.CheckConstraint(
            "pricing_type IN ('hourly', 'daily', 'monthly', 'yearly')",
            name='ck_unit_pricing_type',
        ),
    )
    op.create_index('ix_unit_pricing_unit_id', 'unit_pricing', ['unit_id'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('unit_id', sa.String(36), sa.ForeignKey('warehouse_units.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('total_price', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('notes', sa.String(1000), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('end_at > start_at', name='ck_booking_window_ordered'),
    )
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])
    op.create_index('ix_booking_unit_window', 'bookings', ['unit_id', 'start_at', 'end_at'])
    op.create_index('ix_booking_unit_status', 'bookings', ['unit_id', 'status'])

    if is_postgres:
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute("""
            ALTER TABLE bookings ADD CONSTRAINT ex_booking_unit_no_overlap
            EXCLUDE USING gist (unit_id WITH =, tstzrange(start_at, end_at, '[)') WITH &&)
            WHERE (status <> 'cancelled')
        """)

    op.create_table(
        'payments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('booking_id', sa.String(36), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('payment_method', sa.String(20), nullable=False),
        sa.Column('transaction_id', sa.String(100), nullable=True),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('amount > 0', name='ck_payment_amount_positive'),
    )
    op.create_index('ix_payments_booking_id', 'payments', ['booking_id'])


def downgrade() -> None:
    op.drop_table('payments')
    op.drop_table('bookings')
    op.drop_table('unit_pricing')
    op.drop_table('warehouse_units')
    op.drop_table('warehouses')
    op.drop_table('users')
