"""Per-country address book configuration

Creates address_book_config, links address_book rows to it and inserts the
default rule set for every country that does not have it yet.

Revision ID: 0007_address_book_config
Revises: 0006_notifications_mail
Create Date: 2025-02-03 09:30:00.000000

"""
import uuid

import sqlalchemy as sa
from alembic import op

from quasar.db.migration_ops import (add_column_if_missing,
                                     create_foreign_key_if_missing,
                                     create_table_if_missing,
                                     drop_column_if_exists,
                                     drop_constraint_if_exists,
                                     drop_table_if_exists, id_column,
                                     insert_missing_rows,
                                     timestamp_columns)

# revision identifiers, used by Alembic.
revision = '0007_address_book_config'
down_revision = '0006_notifications_mail'
branch_labels = None
depends_on = None

DEFAULT_CONFIG = [
    ('REQUIRE_POSTAL_CODE', 'FALSE', 'Whether postal code is required for addresses'),
    ('REQUIRE_PHONE', 'FALSE', 'Whether phone number is required for addresses'),
    ('REQUIRE_COMPANY', 'FALSE', 'Whether company name is required for addresses'),
    ('ALLOW_ADDRESS_LINE_2', 'TRUE', 'Whether a second address line is allowed'),
    ('REQUIRE_DELIVERY_INSTRUCTIONS', 'FALSE', 'Whether delivery instructions are required'),
    ('MAX_ADDRESS_BOOK_ENTRIES', '10', 'Maximum number of addresses per customer'),
    ('DEFAULT_ADDRESS_TYPE', 'BOTH', 'Address type used when none is given'),
    ('REQUIRE_ADMINISTRATIVE_DIVISIONS', 'TRUE', 'Whether province/state is required'),
]
CONFIG_KEYS = [key for key, _, _ in DEFAULT_CONFIG]

countries = sa.table('countries', sa.column('id', sa.Uuid()))

address_book_config = sa.table(
    'address_book_config',
    sa.column('id', sa.Uuid()),
    sa.column('country_id', sa.Uuid()),
    sa.column('config_key', sa.String()),
    sa.column('value', sa.String()),
    sa.column('description', sa.Text()),
)


def upgrade():
    create_table_if_missing(
        'address_book_config',
        id_column(),
        sa.Column('country_id', sa.Uuid(), sa.ForeignKey('countries.id', ondelete='CASCADE'), nullable=False),
        sa.Column('config_key', sa.String(60), nullable=False),
        sa.Column('value', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *timestamp_columns(),
        sa.UniqueConstraint('country_id', 'config_key', name='uq_address_book_config_country_key'),
        sa.CheckConstraint(
            "config_key IN ({})".format(", ".join(f"'{key}'" for key in CONFIG_KEYS)),
            name='ck_address_book_config_key',
        ),
    )

    add_column_if_missing('address_book', sa.Column('config_id', sa.Uuid(), nullable=True))
    create_foreign_key_if_missing(
        'fk_address_book_config_id',
        'address_book',
        'address_book_config',
        ['config_id'],
        ['id'],
        ondelete='SET NULL',
    )

    conn = op.get_bind()
    country_ids = [row.id for row in conn.execute(sa.select(countries.c.id))]
    rows = [
        {
            'id': uuid.uuid4(),
            'country_id': country_id,
            'config_key': key,
            'value': value,
            'description': description,
        }
        for country_id in country_ids
        for key, value, description in DEFAULT_CONFIG
    ]
    insert_missing_rows(address_book_config, rows, ['country_id', 'config_key'])


def downgrade():
    drop_constraint_if_exists('fk_address_book_config_id', 'address_book', 'foreignkey')
    drop_column_if_exists('address_book', 'config_id')
    drop_table_if_exists('address_book_config')
