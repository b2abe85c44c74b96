"""
Roles and CRUD permissions for the admin resources
"""
from sqlalchemy.orm import Session

from quasar.core.logging_config import LoggingConfig
from quasar.models.user import Permission, PermissionScope, Role, RoleCode
from quasar.seeders.base import BaseSeeder, SeedResult

logger = LoggingConfig.get_logger(__name__)

ROLES = [
    (RoleCode.SUPER_ADMIN, "Super Administrator", "Unrestricted access"),
    (RoleCode.ADMIN, "Administrator", "Manages the store"),
    (RoleCode.MANAGER, "Manager", "Handles orders and customers"),
    (RoleCode.USER, "User", "Signed-in customer account"),
    (RoleCode.GUEST, "Guest", "Anonymous visitor"),
]

ADMIN_RESOURCES = [
    "analytics",
    "component_config",
    "customer",
    "dashboard",
    "delivery_method",
    "loyalty",
    "loyalty_reward",
    "loyalty_tier",
    "loyalty_transaction",
    "mail_provider",
    "mail_template",
    "notification",
    "order",
    "order_fulfillment",
    "payment_method",
    "product",
    "product_category",
    "section",
    "shipping_provider",
    "warehouse",
]

CRUD_ACTIONS = ["create", "read", "update", "delete"]

# Roles that receive every seeded permission
FULL_ACCESS_ROLES = [RoleCode.SUPER_ADMIN.value, RoleCode.ADMIN.value]


def permission_specs():
    """(action, scope, resource) for every seeded permission"""
    specs = [
        (action, PermissionScope.ANY.value, resource)
        for resource in ADMIN_RESOURCES
        for action in CRUD_ACTIONS
    ]
    specs.append(("read", PermissionScope.OWN.value, "profile"))
    specs.append(("update", PermissionScope.OWN.value, "profile"))
    return specs


class RolesSeeder(BaseSeeder):
    name = "roles"
    description = "Built-in roles"

    def run(self, db: Session) -> SeedResult:
        result = SeedResult()
        existing = {code for (code,) in db.query(Role.code).all()}
        for code, name, description in ROLES:
            if code.value in existing:
                result.skipped += 1
                continue
            db.add(Role(code=code.value, name=name, description=description, is_active=True))
            result.created += 1
        db.flush()
        return result


class PermissionsSeeder(BaseSeeder):
    name = "permissions"
    description = "CRUD permissions linked to super_admin and admin"

    def run(self, db: Session) -> SeedResult:
        result = SeedResult()
        by_name = {permission.name: permission for permission in db.query(Permission).all()}
        for action, scope, resource in permission_specs():
            name = Permission.build_name(action, scope, resource)
            if name in by_name:
                result.skipped += 1
                continue
            permission = Permission(
                name=name,
                action=action,
                scope=scope,
                resource=resource,
                description=f"{action.capitalize()} {resource.replace('_', ' ')}",
                is_active=True,
            )
            db.add(permission)
            by_name[name] = permission
            result.created += 1
        db.flush()

        seeded = [by_name[Permission.build_name(*spec)] for spec in permission_specs()]
        for role in db.query(Role).filter(Role.code.in_(FULL_ACCESS_ROLES)).all():
            linked = {permission.id for permission in role.permissions}
            missing = [permission for permission in seeded if permission.id not in linked]
            if missing:
                role.permissions.extend(missing)
                result.updated += 1
                logger.info(f"Linked {len(missing)} permission(s) to role {role.code}")
        db.flush()
        return result
