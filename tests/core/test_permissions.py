"""
Tests for permission checks
"""
from quasar.core.permissions import has_permission
from quasar.models.user import Permission, Role, RoleCode
from quasar.services.auth_service import AuthService


def _user_with(db, *permission_names, role_active=True):
    role = Role(code="tester", name="Tester", is_active=role_active)
    for name in permission_names:
        action, scope, resource = name.split(":")
        role.permissions.append(Permission(name=name, action=action, scope=scope, resource=resource))
    db.add(role)
    db.commit()
    return AuthService(db).register_user("tester", "tester@example.com", "secret", role_codes=["tester"])


def test_exact_permission(db):
    user = _user_with(db, "read:any:order")
    assert has_permission(user, "read:any:order")
    assert not has_permission(user, "update:any:order")


def test_any_scope_implies_own(db):
    """Test that `any` grants the same action on `own`"""
    user = _user_with(db, "update:any:profile")
    assert has_permission(user, "update:own:profile")


def test_own_scope_does_not_imply_any(db):
    user = _user_with(db, "read:own:profile")
    assert has_permission(user, "read:own:profile")
    assert not has_permission(user, "read:any:profile")


def test_inactive_role_grants_nothing(db):
    user = _user_with(db, "read:any:order", role_active=False)
    assert not has_permission(user, "read:any:order")


def test_super_admin_has_everything(db, seeded_access):
    user = AuthService(db).register_user("root", "root@example.com", "secret",
                                         role_codes=[RoleCode.SUPER_ADMIN.value])
    assert has_permission(user, "delete:any:anything")


def test_inactive_user_has_nothing(db):
    user = _user_with(db, "read:any:order")
    user.is_active = False
    assert not has_permission(user, "read:any:order")
