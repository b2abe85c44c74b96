"""Loyalty tiers, rewards, transactions and customer point balance

Revision ID: 0008_loyalty
Revises: 0007_address_book_config
Create Date: 2025-02-11 13:20:00.000000

"""
import sqlalchemy as sa

from quasar.db.migration_ops import (add_column_if_missing,
                                     create_index_if_missing,
                                     create_table_if_missing,
                                     drop_column_if_exists,
                                     drop_table_if_exists, id_column,
                                     timestamp_columns)

# revision identifiers, used by Alembic.
revision = '0008_loyalty'
down_revision = '0007_address_book_config'
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        'loyalty_tiers',
        id_column(),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('min_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('benefits', sa.JSON(), nullable=True),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        *timestamp_columns(),
    )

    create_table_if_missing(
        'loyalty_rewards',
        id_column(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('points_cost', sa.Integer(), nullable=False),
        sa.Column('reward_type', sa.String(30), nullable=False, server_default='DISCOUNT_FIXED'),
        sa.Column('value', sa.Numeric(12, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamp_columns(),
        sa.CheckConstraint('points_cost > 0', name='ck_loyalty_rewards_points_cost_positive'),
    )

    create_table_if_missing(
        'loyalty_transactions',
        id_column(),
        sa.Column('customer_id', sa.Uuid(), sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('order_id', sa.Uuid(), sa.ForeignKey('orders.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reward_id', sa.Uuid(), sa.ForeignKey('loyalty_rewards.id', ondelete='SET NULL'), nullable=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('balance_after', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    create_index_if_missing('ix_loyalty_transactions_customer_id', 'loyalty_transactions', ['customer_id'])

    add_column_if_missing(
        'customers',
        sa.Column('loyalty_points', sa.Integer(), nullable=False, server_default='0'),
    )


def downgrade():
    drop_column_if_exists('customers', 'loyalty_points')
    drop_table_if_exists('loyalty_transactions')
    drop_table_if_exists('loyalty_rewards')
    drop_table_if_exists('loyalty_tiers')
