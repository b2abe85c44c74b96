"""
Tests for AuthService
"""
from datetime import timedelta

import pytest

from quasar.core.errors import AppError
from quasar.core.utils import utcnow
from quasar.models.user import UserSession
from quasar.services.auth_service import AuthService


def test_register_and_authenticate(db, seeded_access):
    service = AuthService(db)
    user = service.register_user("kim", "kim@example.com", "s3cret")

    assert user.password_hash != "s3cret"
    assert user.role_codes == ["user"]
    assert service.authenticate("kim", "s3cret").id == user.id
    assert service.authenticate("kim@example.com", "s3cret").last_login is not None
    assert service.authenticate("kim", "wrong") is None
    assert service.authenticate("nobody", "s3cret") is None


def test_register_conflicts(db):
    service = AuthService(db)
    service.register_user("kim", "kim@example.com", "s3cret", role_codes=[])

    with pytest.raises(AppError) as exc_info:
        service.register_user("kim", "other@example.com", "s3cret", role_codes=[])
    assert exc_info.value.status_code == 409
    with pytest.raises(AppError, match="Email"):
        service.register_user("kim2", "kim@example.com", "s3cret", role_codes=[])


def test_inactive_user_cannot_log_in(db):
    service = AuthService(db)
    user = service.register_user("kim", "kim@example.com", "s3cret", role_codes=[])
    session = service.create_session(user.id)
    user.is_active = False
    db.commit()

    assert service.authenticate("kim", "s3cret") is None
    assert service.validate_session(session.token) is None


def test_expired_session_is_deleted(db):
    service = AuthService(db)
    user = service.register_user("kim", "kim@example.com", "s3cret", role_codes=[])
    session = service.create_session(user.id)
    assert service.validate_session(session.token).id == user.id

    session.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    assert service.validate_session(session.token) is None
    assert db.query(UserSession).count() == 0


def test_cleanup_expired_sessions(db):
    service = AuthService(db)
    user = service.register_user("kim", "kim@example.com", "s3cret", role_codes=[])
    stale = service.create_session(user.id)
    service.create_session(user.id)
    stale.expires_at = utcnow() - timedelta(hours=1)
    db.commit()

    assert service.cleanup_expired_sessions() == 1
    assert db.query(UserSession).count() == 1


def test_permissions_skip_inactive_entries(db, admin_user):
    permissions = AuthService.get_permissions(admin_user)
    assert "read:any:order" in permissions
    assert permissions == sorted(permissions)
