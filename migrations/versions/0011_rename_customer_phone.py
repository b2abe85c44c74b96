"""Rename customers.phone to customers.phone_number

Revision ID: 0011_rename_customer_phone
Revises: 0010_warehouse_inventory
Create Date: 2025-03-12 10:05:00.000000

"""
from quasar.db.migration_ops import rename_column_if_needed

# revision identifiers, used by Alembic.
revision = '0011_rename_customer_phone'
down_revision = '0010_warehouse_inventory'
branch_labels = None
depends_on = None


def upgrade():
    rename_column_if_needed('customers', 'phone', 'phone_number')


def downgrade():
    rename_column_if_needed('customers', 'phone_number', 'phone')
