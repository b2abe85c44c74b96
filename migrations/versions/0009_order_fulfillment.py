"""Shipping providers, order fulfillments and delivery tracking

Revision ID: 0009_order_fulfillment
Revises: 0008_loyalty
Create Date: 2025-02-19 08:40:00.000000

"""
import sqlalchemy as sa

from quasar.db.migration_ops import (audit_columns, create_index_if_missing,
                                     create_table_if_missing,
                                     drop_table_if_exists, id_column,
                                     timestamp_columns)

# revision identifiers, used by Alembic.
revision = '0009_order_fulfillment'
down_revision = '0008_loyalty'
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        'shipping_providers',
        id_column(),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('tracking_url_template', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamp_columns(),
    )

    create_table_if_missing(
        'order_fulfillments',
        id_column(),
        sa.Column('fulfillment_number', sa.String(50), nullable=False, unique=True),
        sa.Column('order_id', sa.Uuid(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('shipping_provider_id', sa.Uuid(), sa.ForeignKey('shipping_providers.id', ondelete='SET NULL'),
                  nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('priority', sa.String(10), nullable=False, server_default='NORMAL'),
        sa.Column('tracking_number', sa.String(100), nullable=True),
        sa.Column('shipped_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *timestamp_columns(),
        *audit_columns(),
    )
    create_index_if_missing('ix_order_fulfillments_order_id', 'order_fulfillments', ['order_id'])

    create_table_if_missing(
        'fulfillment_items',
        id_column(),
        sa.Column('fulfillment_id', sa.Uuid(), sa.ForeignKey('order_fulfillments.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('order_item_id', sa.Uuid(), sa.ForeignKey('order_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.CheckConstraint('quantity > 0', name='ck_fulfillment_items_quantity_positive'),
    )
    create_index_if_missing('ix_fulfillment_items_fulfillment_id', 'fulfillment_items', ['fulfillment_id'])

    create_table_if_missing(
        'delivery_tracking',
        id_column(),
        sa.Column('fulfillment_id', sa.Uuid(), sa.ForeignKey('order_fulfillments.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_date', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    create_index_if_missing('ix_delivery_tracking_fulfillment_id', 'delivery_tracking', ['fulfillment_id'])


def downgrade():
    drop_table_if_exists('delivery_tracking')
    drop_table_if_exists('fulfillment_items')
    drop_table_if_exists('order_fulfillments')
    drop_table_if_exists('shipping_providers')
