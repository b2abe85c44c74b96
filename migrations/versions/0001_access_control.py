"""Users, roles, permissions and sessions

Revision ID: 0001_access_control
Revises:
Create Date: 2025-01-06 09:00:00.000000

"""
import sqlalchemy as sa

from quasar.db.migration_ops import (create_index_if_missing,
                                     create_table_if_missing,
                                     drop_table_if_exists, id_column,
                                     timestamp_columns)

# revision identifiers, used by Alembic.
revision = '0001_access_control'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        'users',
        id_column(),
        sa.Column('username', sa.String(100), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('fcm_tokens', sa.JSON(), nullable=True),
        *timestamp_columns(),
    )

    create_table_if_missing(
        'roles',
        id_column(),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamp_columns(),
    )

    create_table_if_missing(
        'permissions',
        id_column(),
        sa.Column('name', sa.String(150), nullable=False, unique=True),
        sa.Column('resource', sa.String(100), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('scope', sa.String(20), nullable=False, server_default='any'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamp_columns(),
    )

    create_table_if_missing(
        'role_permissions',
        sa.Column('role_id', sa.Uuid(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('permission_id', sa.Uuid(), sa.ForeignKey('permissions.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    create_table_if_missing(
        'user_roles',
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Uuid(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )

    create_table_if_missing(
        'user_sessions',
        id_column(),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(255), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('last_activity', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    create_index_if_missing('ix_user_sessions_user_id', 'user_sessions', ['user_id'])


def downgrade():
    drop_table_if_exists('user_sessions')
    drop_table_if_exists('user_roles')
    drop_table_if_exists('role_permissions')
    drop_table_if_exists('permissions')
    drop_table_if_exists('roles')
    drop_table_if_exists('users')
