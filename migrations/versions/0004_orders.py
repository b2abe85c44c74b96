"""Payment/delivery methods, orders and order items

Revision ID: 0004_orders
Revises: 0003_customers
Create Date: 2025-01-14 11:15:00.000000

"""
import sqlalchemy as sa

from quasar.db.migration_ops import (audit_columns, create_index_if_missing,
                                     create_table_if_missing,
                                     drop_table_if_exists, id_column,
                                     soft_delete_columns, timestamp_columns)

# revision identifiers, used by Alembic.
revision = '0004_orders'
down_revision = '0003_customers'
branch_labels = None
depends_on = None

ORDER_STATUSES = ('PENDING', 'CONFIRMED', 'PROCESSING', 'SHIPPED', 'DELIVERED', 'CANCELLED', 'RETURNED', 'REFUNDED')
PAYMENT_STATUSES = ('PENDING', 'PAID', 'PARTIALLY_PAID', 'FAILED', 'REFUNDED', 'CANCELLED')
ORDER_SOURCES = ('WEBSITE', 'MOBILE_APP', 'PHONE', 'EMAIL', 'IN_STORE', 'SOCIAL_MEDIA', 'MARKETPLACE')


def _in(column, values):
    return "{} IN ({})".format(column, ", ".join(f"'{v}'" for v in values))


def upgrade():
    create_table_if_missing(
        'payment_methods',
        id_column(),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        *timestamp_columns(),
    )

    create_table_if_missing(
        'delivery_methods',
        id_column(),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('estimated_days', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        *timestamp_columns(),
    )

    create_table_if_missing(
        'orders',
        id_column(),
        sa.Column('order_number', sa.String(50), nullable=False, unique=True),
        sa.Column('customer_id', sa.Uuid(), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('source', sa.String(20), nullable=False, server_default='WEBSITE'),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('tax_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('shipping_cost', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('discount_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('billing_address', sa.JSON(), nullable=True),
        sa.Column('shipping_address', sa.JSON(), nullable=True),
        sa.Column('payment_method_id', sa.Uuid(), sa.ForeignKey('payment_methods.id', ondelete='SET NULL'),
                  nullable=True),
        sa.Column('delivery_method_id', sa.Uuid(), sa.ForeignKey('delivery_methods.id', ondelete='SET NULL'),
                  nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('customer_notes', sa.Text(), nullable=True),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        sa.Column('order_date', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('shipped_date', sa.DateTime(), nullable=True),
        sa.Column('delivered_date', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancel_reason', sa.Text(), nullable=True),
        sa.Column('refunded_at', sa.DateTime(), nullable=True),
        sa.Column('refund_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('refund_reason', sa.Text(), nullable=True),
        *timestamp_columns(),
        *audit_columns(),
        *soft_delete_columns(),
        sa.CheckConstraint(_in('status', ORDER_STATUSES), name='ck_orders_status'),
        sa.CheckConstraint(_in('payment_status', PAYMENT_STATUSES), name='ck_orders_payment_status'),
        sa.CheckConstraint(_in('source', ORDER_SOURCES), name='ck_orders_source'),
        sa.CheckConstraint('subtotal >= 0', name='ck_orders_subtotal_non_negative'),
        sa.CheckConstraint('tax_amount >= 0', name='ck_orders_tax_non_negative'),
        sa.CheckConstraint('shipping_cost >= 0', name='ck_orders_shipping_non_negative'),
        sa.CheckConstraint('discount_amount >= 0', name='ck_orders_discount_non_negative'),
        sa.CheckConstraint('total_amount >= 0', name='ck_orders_total_non_negative'),
    )
    create_index_if_missing('ix_orders_customer_id', 'orders', ['customer_id'])
    create_index_if_missing('ix_orders_status', 'orders', ['status'])
    create_index_if_missing('ix_orders_order_date', 'orders', ['order_date'])

    create_table_if_missing(
        'order_items',
        id_column(),
        sa.Column('order_id', sa.Uuid(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Uuid(), sa.ForeignKey('products.id', ondelete='SET NULL'), nullable=True),
        sa.Column('product_variant_id', sa.Uuid(), sa.ForeignKey('product_variants.id', ondelete='SET NULL'),
                  nullable=True),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('product_sku', sa.String(100), nullable=True),
        sa.Column('variant_name', sa.String(255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('tax_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('fulfilled_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('refunded_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('product_attributes', sa.JSON(), nullable=True),
        *timestamp_columns(),
        sa.CheckConstraint('quantity > 0', name='ck_order_items_quantity_positive'),
        sa.CheckConstraint('unit_price >= 0', name='ck_order_items_unit_price_non_negative'),
        sa.CheckConstraint('fulfilled_quantity >= 0', name='ck_order_items_fulfilled_non_negative'),
        sa.CheckConstraint('refunded_quantity >= 0', name='ck_order_items_refunded_non_negative'),
    )
    create_index_if_missing('ix_order_items_order_id', 'order_items', ['order_id'])


def downgrade():
    drop_table_if_exists('order_items')
    drop_table_if_exists('orders')
    drop_table_if_exists('delivery_methods')
    drop_table_if_exists('payment_methods')
