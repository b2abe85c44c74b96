"""Countries, customers and address book

Revision ID: 0003_customers
Revises: 0002_catalog
Create Date: 2025-01-10 14:00:00.000000

"""
import sqlalchemy as sa

from quasar.db.migration_ops import (audit_columns, create_index_if_missing,
                                     create_table_if_missing,
                                     drop_table_if_exists, id_column,
                                     soft_delete_columns, timestamp_columns)

# revision identifiers, used by Alembic.
revision = '0003_customers'
down_revision = '0002_catalog'
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        'countries',
        id_column(),
        sa.Column('code', sa.String(2), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('phone_code', sa.String(10), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamp_columns(),
    )

    # `phone` is renamed to `phone_number` in 0011
    create_table_if_missing(
        'customers',
        id_column(),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('company_name', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('customer_type', sa.String(20), nullable=False, server_default='INDIVIDUAL'),
        sa.Column('marketing_opt_in', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('total_orders', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_spent', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('last_order_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *timestamp_columns(),
        *audit_columns(),
        *soft_delete_columns(),
    )

    create_table_if_missing(
        'address_book',
        id_column(),
        sa.Column('customer_id', sa.Uuid(), sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('country_id', sa.Uuid(), sa.ForeignKey('countries.id'), nullable=False),
        sa.Column('address_type', sa.String(20), nullable=False, server_default='BOTH'),
        sa.Column('label', sa.String(100), nullable=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('company', sa.String(255), nullable=True),
        sa.Column('address_line_1', sa.String(255), nullable=False),
        sa.Column('address_line_2', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('province', sa.String(100), nullable=True),
        sa.Column('postal_code', sa.String(20), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('delivery_instructions', sa.Text(), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamp_columns(),
    )
    create_index_if_missing('ix_address_book_customer_id', 'address_book', ['customer_id'])


def downgrade():
    drop_table_if_exists('address_book')
    drop_table_if_exists('customers')
    drop_table_if_exists('countries')
