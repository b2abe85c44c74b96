"""Categories, suppliers, products and variants

Revision ID: 0002_catalog
Revises: 0001_access_control
Create Date: 2025-01-08 10:30:00.000000

"""
import sqlalchemy as sa

from quasar.db.migration_ops import (audit_columns, create_index_if_missing,
                                     create_table_if_missing,
                                     drop_table_if_exists, id_column,
                                     soft_delete_columns, timestamp_columns)

# revision identifiers, used by Alembic.
revision = '0002_catalog'
down_revision = '0001_access_control'
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        'categories',
        id_column(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.Uuid(), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamp_columns(),
        *audit_columns(),
        *soft_delete_columns(),
    )
    create_index_if_missing('ix_categories_parent_id', 'categories', ['parent_id'])

    create_table_if_missing(
        'suppliers',
        id_column(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamp_columns(),
    )

    create_table_if_missing(
        'products',
        id_column(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('sku', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='DRAFT'),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('category_id', sa.Uuid(), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('supplier_id', sa.Uuid(), sa.ForeignKey('suppliers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('attributes', sa.JSON(), nullable=True),
        *timestamp_columns(),
        *audit_columns(),
        *soft_delete_columns(),
        sa.CheckConstraint(
            "status IN ('DRAFT', 'ACTIVE', 'INACTIVE', 'DISCONTINUED')",
            name='ck_products_status',
        ),
    )
    create_index_if_missing('ix_products_category_id', 'products', ['category_id'])

    # stock_quantity moves to inventory_items in 0010
    create_table_if_missing(
        'product_variants',
        id_column(),
        sa.Column('product_id', sa.Uuid(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sku', sa.String(100), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('compare_at_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('cost_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('weight', sa.Numeric(10, 3), nullable=True),
        sa.Column('image', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('allow_backorders', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        *timestamp_columns(),
    )
    create_index_if_missing('ix_product_variants_product_id', 'product_variants', ['product_id'])


def downgrade():
    drop_table_if_exists('product_variants')
    drop_table_if_exists('products')
    drop_table_if_exists('suppliers')
    drop_table_if_exists('categories')
