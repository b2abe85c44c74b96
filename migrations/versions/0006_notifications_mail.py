"""Notifications, notification preferences, mail providers and templates

Revision ID: 0006_notifications_mail
Revises: 0005_cms
Create Date: 2025-01-27 10:00:00.000000

"""
import sqlalchemy as sa

from quasar.db.migration_ops import (audit_columns, create_index_if_missing,
                                     create_table_if_missing,
                                     drop_table_if_exists, id_column,
                                     soft_delete_columns, timestamp_columns)

# revision identifiers, used by Alembic.
revision = '0006_notifications_mail'
down_revision = '0005_cms'
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        'notifications',
        id_column(),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(30), nullable=False, server_default='INFO'),
        sa.Column('priority', sa.String(10), nullable=False, server_default='MEDIUM'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('action_url', sa.String(500), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        *timestamp_columns(),
    )
    create_index_if_missing('ix_notifications_user_read', 'notifications', ['user_id', 'is_read'])

    create_table_if_missing(
        'notification_preferences',
        id_column(),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('in_app', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('email', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('push', sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamp_columns(),
        sa.UniqueConstraint('user_id', 'type', name='uq_notification_preferences_user_type'),
    )

    create_table_if_missing(
        'mail_providers',
        id_column(),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('provider_type', sa.String(30), nullable=False, server_default='SMTP'),
        sa.Column('host', sa.String(255), nullable=True),
        sa.Column('port', sa.Integer(), nullable=True),
        sa.Column('username', sa.String(255), nullable=True),
        sa.Column('password', sa.String(255), nullable=True),
        sa.Column('from_email', sa.String(255), nullable=False),
        sa.Column('from_name', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('config', sa.JSON(), nullable=True),
        *timestamp_columns(),
    )

    create_table_if_missing(
        'mail_templates',
        id_column(),
        sa.Column('name', sa.String(150), nullable=False, unique=True),
        sa.Column('type', sa.String(50), nullable=False, server_default='CUSTOM'),
        sa.Column('subject', sa.String(500), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('variables', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('language', sa.String(10), nullable=False, server_default='en'),
        sa.Column('description', sa.Text(), nullable=True),
        *timestamp_columns(),
        *audit_columns(),
        *soft_delete_columns(),
    )


def downgrade():
    drop_table_if_exists('mail_templates')
    drop_table_if_exists('mail_providers')
    drop_table_if_exists('notification_preferences')
    drop_table_if_exists('notifications')
