"""Seed permissions guarding the admin menu entries

Only permissions that are missing are inserted; downgrade removes exactly this
set (and its role links) by name.

Revision ID: 0012_seed_menu_permissions
Revises: 0011_rename_customer_phone
Create Date: 2025-03-20 12:00:00.000000

"""
import uuid

import sqlalchemy as sa
from alembic import op

from quasar.db.migration_ops import insert_missing_rows

# revision identifiers, used by Alembic.
revision = '0012_seed_menu_permissions'
down_revision = '0011_rename_customer_phone'
branch_labels = None
depends_on = None

# (action, scope, resource, admin routes)
MENU_PERMISSIONS = [
    ('read', 'any', 'dashboard', '/'),
    ('read', 'any', 'analytics', '/analytics'),
    ('create', 'any', 'component_config', '/component-configs/create'),
    ('read', 'any', 'component_config', '/component-configs'),
    ('update', 'any', 'component_config', '/component-configs/:id/edit'),
    ('create', 'any', 'customer', '/customers/create'),
    ('read', 'any', 'customer', '/customers, /customers/:id'),
    ('update', 'any', 'customer', '/customers/:id/edit'),
    ('read', 'any', 'delivery_method', '/delivery-methods'),
    ('read', 'any', 'loyalty', '/loyalty, /loyalty/stats'),
    ('create', 'any', 'loyalty_reward', '/loyalty/rewards/create'),
    ('read', 'any', 'loyalty_reward', '/loyalty/rewards'),
    ('create', 'any', 'loyalty_tier', '/loyalty/tiers/create'),
    ('read', 'any', 'loyalty_tier', '/loyalty/tiers'),
    ('update', 'any', 'loyalty_tier', '/loyalty/tiers/:id/edit'),
    ('read', 'any', 'loyalty_transaction', '/loyalty/transactions'),
    ('create', 'any', 'mail_provider', '/mail-providers/create'),
    ('read', 'any', 'mail_provider', '/mail-providers'),
    ('update', 'any', 'mail_provider', '/mail-providers/:id/edit'),
    ('create', 'any', 'mail_template', '/mail-templates/create'),
    ('read', 'any', 'mail_template', '/mail-templates'),
    ('update', 'any', 'mail_template', '/mail-templates/:id'),
    ('read', 'any', 'notification', '/notifications'),
    ('update', 'any', 'notification', '/notifications/preferences'),
    ('create', 'any', 'order', '/orders/new'),
    ('read', 'any', 'order', '/orders, /orders/:id'),
    ('update', 'any', 'order', '/orders/:id/edit'),
    ('create', 'any', 'order_fulfillment', '/orders/fulfillments/new'),
    ('read', 'any', 'order_fulfillment', '/orders/fulfillments, /orders/fulfillments/:id'),
    ('update', 'any', 'order_fulfillment', '/orders/fulfillments/:id/edit'),
    ('read', 'any', 'payment_method', '/payment-methods'),
    ('create', 'any', 'product', '/products/create'),
    ('read', 'any', 'product', '/products'),
    ('update', 'any', 'product', '/products/:id/edit'),
    ('create', 'any', 'product_category', '/products/categories/create'),
    ('read', 'any', 'product_category', '/products/categories'),
    ('update', 'any', 'product_category', '/products/categories/:id/edit'),
    ('read', 'own', 'profile', '/profile'),
    ('create', 'any', 'section', '/sections/:page/create'),
    ('read', 'any', 'section', '/sections/:page'),
    ('update', 'any', 'section', '/sections/:page/:sectionId/edit'),
    ('create', 'any', 'shipping_provider', '/shipping-providers/create'),
    ('read', 'any', 'shipping_provider', '/shipping-providers'),
    ('create', 'any', 'warehouse', '/warehouses/create'),
    ('read', 'any', 'warehouse', '/warehouses'),
    ('update', 'any', 'warehouse', '/warehouses/:id'),
]

PERMISSION_NAMES = [f"{action}:{scope}:{resource}" for action, scope, resource, _ in MENU_PERMISSIONS]

permissions = sa.table(
    'permissions',
    sa.column('id', sa.Uuid()),
    sa.column('name', sa.String()),
    sa.column('resource', sa.String()),
    sa.column('action', sa.String()),
    sa.column('scope', sa.String()),
    sa.column('description', sa.Text()),
    sa.column('is_active', sa.Boolean()),
)

role_permissions = sa.table(
    'role_permissions',
    sa.column('role_id', sa.Uuid()),
    sa.column('permission_id', sa.Uuid()),
)


def upgrade():
    rows = [
        {
            'id': uuid.uuid4(),
            'name': f"{action}:{scope}:{resource}",
            'resource': resource,
            'action': action,
            'scope': scope,
            'description': f"Access to routes: {routes}",
            'is_active': True,
        }
        for action, scope, resource, routes in MENU_PERMISSIONS
    ]
    insert_missing_rows(permissions, rows, ['name'])


def downgrade():
    seeded_ids = sa.select(permissions.c.id).where(permissions.c.name.in_(PERMISSION_NAMES))
    op.execute(role_permissions.delete().where(role_permissions.c.permission_id.in_(seeded_ids)))
    op.execute(permissions.delete().where(permissions.c.name.in_(PERMISSION_NAMES)))
