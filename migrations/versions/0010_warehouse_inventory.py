"""Warehouses and per-warehouse inventory

Moves product_variants.stock_quantity into inventory_items under a default
warehouse. Downgrade restores the column and copies the quantities (summed over
warehouses) back before the inventory tables are dropped.

Revision ID: 0010_warehouse_inventory
Revises: 0009_order_fulfillment
Create Date: 2025-03-04 15:10:00.000000

"""
import uuid

import sqlalchemy as sa
from alembic import op

from quasar.db.migration_ops import (add_column_if_missing, column_exists,
                                     create_table_if_missing,
                                     drop_column_if_exists,
                                     drop_table_if_exists, id_column,
                                     insert_missing_rows, table_exists,
                                     timestamp_columns)

# revision identifiers, used by Alembic.
revision = '0010_warehouse_inventory'
down_revision = '0009_order_fulfillment'
branch_labels = None
depends_on = None

DEFAULT_WAREHOUSE_CODE = 'MAIN'

warehouses = sa.table(
    'warehouses',
    sa.column('id', sa.Uuid()),
    sa.column('code', sa.String()),
    sa.column('name', sa.String()),
    sa.column('is_active', sa.Boolean()),
    sa.column('is_default', sa.Boolean()),
)

inventory_items = sa.table(
    'inventory_items',
    sa.column('id', sa.Uuid()),
    sa.column('product_variant_id', sa.Uuid()),
    sa.column('warehouse_id', sa.Uuid()),
    sa.column('quantity', sa.Integer()),
)

product_variants = sa.table(
    'product_variants',
    sa.column('id', sa.Uuid()),
    sa.column('stock_quantity', sa.Integer()),
)


def upgrade():
    create_table_if_missing(
        'warehouses',
        id_column(),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamp_columns(),
    )

    create_table_if_missing(
        'inventory_items',
        id_column(),
        sa.Column('product_variant_id', sa.Uuid(), sa.ForeignKey('product_variants.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('warehouse_id', sa.Uuid(), sa.ForeignKey('warehouses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reserved_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('low_stock_threshold', sa.Integer(), nullable=False, server_default='5'),
        *timestamp_columns(),
        sa.UniqueConstraint('product_variant_id', 'warehouse_id', name='uq_inventory_items_variant_warehouse'),
        sa.CheckConstraint('reserved_quantity >= 0', name='ck_inventory_items_reserved_non_negative'),
    )

    if not column_exists('product_variants', 'stock_quantity'):
        return

    insert_missing_rows(
        warehouses,
        [{
            'id': uuid.uuid4(),
            'code': DEFAULT_WAREHOUSE_CODE,
            'name': 'Main warehouse',
            'is_active': True,
            'is_default': True,
        }],
        ['code'],
    )

    conn = op.get_bind()
    warehouse_id = conn.execute(
        sa.select(warehouses.c.id).where(warehouses.c.code == DEFAULT_WAREHOUSE_CODE)
    ).scalar_one()

    stock = conn.execute(sa.select(product_variants.c.id, product_variants.c.stock_quantity)).all()
    insert_missing_rows(
        inventory_items,
        [
            {
                'id': uuid.uuid4(),
                'product_variant_id': variant_id,
                'warehouse_id': warehouse_id,
                'quantity': quantity or 0,
            }
            for variant_id, quantity in stock
        ],
        ['product_variant_id', 'warehouse_id'],
    )

    drop_column_if_exists('product_variants', 'stock_quantity')


def downgrade():
    add_column_if_missing(
        'product_variants',
        sa.Column('stock_quantity', sa.Integer(), nullable=False, server_default='0'),
    )

    if table_exists('inventory_items'):
        total = (
            sa.select(sa.func.coalesce(sa.func.sum(inventory_items.c.quantity), 0))
            .where(inventory_items.c.product_variant_id == product_variants.c.id)
            .scalar_subquery()
        )
        op.execute(product_variants.update().values(stock_quantity=total))

    drop_table_if_exists('inventory_items')
    drop_table_if_exists('warehouses')
