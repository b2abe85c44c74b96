"""CMS sections, translations and component configs

Revision ID: 0005_cms
Revises: 0004_orders
Create Date: 2025-01-20 16:45:00.000000

"""
import sqlalchemy as sa

from quasar.db.migration_ops import (audit_columns, create_index_if_missing,
                                     create_table_if_missing,
                                     drop_table_if_exists, id_column,
                                     soft_delete_columns, timestamp_columns)

# revision identifiers, used by Alembic.
revision = '0005_cms'
down_revision = '0004_orders'
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        'sections',
        id_column(),
        sa.Column('page', sa.String(100), nullable=False),
        sa.Column('type', sa.String(100), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('config', sa.JSON(), nullable=True),
        *timestamp_columns(),
        *audit_columns(),
        *soft_delete_columns(),
    )
    create_index_if_missing('ix_sections_page_position', 'sections', ['page', 'position'])

    create_table_if_missing(
        'section_translations',
        id_column(),
        sa.Column('section_id', sa.Uuid(), sa.ForeignKey('sections.id', ondelete='CASCADE'), nullable=False),
        sa.Column('locale', sa.String(10), nullable=False),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('subtitle', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('hero_image_url', sa.String(500), nullable=True),
        sa.Column('config_override', sa.JSON(), nullable=True),
        *timestamp_columns(),
        sa.UniqueConstraint('section_id', 'locale', name='uq_section_translations_section_locale'),
    )

    create_table_if_missing(
        'component_configs',
        id_column(),
        sa.Column('component_key', sa.String(150), nullable=False, unique=True),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('component_type', sa.String(20), nullable=False, server_default='composite'),
        sa.Column('category', sa.String(50), nullable=False, server_default='storefront'),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('default_config', sa.JSON(), nullable=True),
        sa.Column('config_schema', sa.JSON(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('allowed_child_keys', sa.JSON(), nullable=True),
        sa.Column('preview_media_url', sa.String(500), nullable=True),
        sa.Column('slot_key', sa.String(100), nullable=True),
        sa.Column('parent_id', sa.Uuid(), sa.ForeignKey('component_configs.id', ondelete='CASCADE'),
                  nullable=True),
        *timestamp_columns(),
        *audit_columns(),
        *soft_delete_columns(),
    )
    create_index_if_missing('ix_component_configs_parent_id', 'component_configs', ['parent_id'])


def downgrade():
    drop_table_if_exists('component_configs')
    drop_table_if_exists('section_translations')
    drop_table_if_exists('sections')
