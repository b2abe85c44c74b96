"""Pricing rules and defaults for payment methods, delivery methods and shipping providers

Adds processing fees and amount bounds to payment methods, cost calculation
rules to delivery methods, and profile details to shipping providers. The
first active method of each kind (by sort order) becomes the default.

Revision ID: 0013_checkout_method_settings
Revises: 0012_seed_menu_permissions
Create Date: 2025-04-02 10:15:00.000000

"""
import sqlalchemy as sa
from alembic import op

from quasar.db.migration_ops import add_column_if_missing, drop_column_if_exists

# revision identifiers, used by Alembic.
revision = '0013_checkout_method_settings'
down_revision = '0012_seed_menu_permissions'
branch_labels = None
depends_on = None


def _payment_method_columns():
    return [
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('processing_fee', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('processing_fee_type', sa.String(20), nullable=False, server_default='FIXED'),
        sa.Column('min_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('max_amount', sa.Numeric(12, 2), nullable=True),
    ]


def _delivery_method_columns():
    return [
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('cost_calculation_type', sa.String(20), nullable=False, server_default='FIXED'),
        sa.Column('free_delivery_threshold', sa.Numeric(12, 2), nullable=True),
        sa.Column('weight_limit_kg', sa.Numeric(10, 3), nullable=True),
    ]


def _shipping_provider_columns():
    return [
        sa.Column('website', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('delivery_time_estimate', sa.Integer(), nullable=True),
        sa.Column('contact_info', sa.JSON(), nullable=True),
        sa.Column('services', sa.JSON(), nullable=True),
    ]


# Fresh Column objects per call, a Column can only be attached to one table
COLUMNS = {
    'payment_methods': _payment_method_columns,
    'delivery_methods': _delivery_method_columns,
    'shipping_providers': _shipping_provider_columns,
}


def _mark_first_active_default(table_name):
    table = sa.table(
        table_name,
        sa.column('id', sa.Uuid()),
        sa.column('is_active', sa.Boolean()),
        sa.column('is_default', sa.Boolean()),
        sa.column('sort_order', sa.Integer()),
        sa.column('code', sa.String()),
    )
    conn = op.get_bind()
    if conn.execute(sa.select(table.c.id).where(table.c.is_default.is_(True))).first():
        return
    first = conn.execute(
        sa.select(table.c.id).where(table.c.is_active.is_(True)).order_by(table.c.sort_order, table.c.code)
    ).first()
    if first:
        conn.execute(table.update().where(table.c.id == first.id).values(is_default=True))


def upgrade():
    for table, columns in COLUMNS.items():
        for column in columns():
            add_column_if_missing(table, column)
    _mark_first_active_default('payment_methods')
    _mark_first_active_default('delivery_methods')


def downgrade():
    for table, columns in COLUMNS.items():
        for column in reversed(columns()):
            drop_column_if_exists(table, column.name)
