"""
Tests for NotificationService and the FCM push gateway
"""
import json

import httpx
import pytest

from quasar.core.errors import AppError
from quasar.models.notification import NotificationChannel, NotificationType
from quasar.services.auth_service import AuthService
from quasar.services.notification_service import NotificationService
from quasar.services.push_gateway import PushError, PushGateway


@pytest.fixture
def user(db):
    return AuthService(db).register_user("reader", "reader@example.com", "secret", role_codes=[])


def _fcm_transport(results, requests=None, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        success = sum(1 for result in results if "message_id" in result)
        return httpx.Response(status_code, json={
            "success": success,
            "failure": len(results) - success,
            "results": results,
        })

    return httpx.MockTransport(handler)


def test_push_skipped_without_key():
    result = PushGateway(server_key="").send(["token"], "Hi", "Body")
    assert result.skipped
    assert result.sent == 0


def test_push_skipped_without_tokens():
    assert PushGateway(server_key="key").send([], "Hi", "Body").skipped


def test_push_payload_and_invalid_tokens():
    """Test the request sent to FCM and the tokens it reports as invalid"""
    requests = []
    gateway = PushGateway(
        server_key="server-key",
        endpoint="https://fcm.test/send",
        transport=_fcm_transport(
            [{"message_id": "1"}, {"error": "NotRegistered"}, {"error": "Unavailable"}], requests
        ),
    )

    result = gateway.send(["good", "stale", "busy"], "Order shipped", "On its way", {"order": 42})

    assert result.sent == 1
    assert result.failed == 2
    assert result.invalid_tokens == ["stale"]
    request = requests[0]
    assert request.headers["Authorization"] == "key=server-key"
    payload = json.loads(request.content)
    assert payload["registration_ids"] == ["good", "stale", "busy"]
    assert payload["notification"] == {"title": "Order shipped", "body": "On its way"}
    assert payload["data"] == {"order": "42"}


def test_push_http_error_raises():
    gateway = PushGateway(server_key="key", transport=_fcm_transport([], status_code=500))
    with pytest.raises(PushError):
        gateway.send(["token"], "Hi", "Body")


@pytest.mark.parametrize("body", [
    ["not", "an", "object"],
    {"success": 1, "failure": 0, "results": "oops"},
    {"success": 1, "failure": 0, "results": ["message-1"]},
    {"success": "many", "failure": 0, "results": [{"message_id": "1"}]},
])
def test_push_malformed_response_raises(body):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
    gateway = PushGateway(server_key="key", transport=transport)
    with pytest.raises(PushError):
        gateway.send(["token"], "Hi", "Body")


def test_create_and_read(db, user):
    service = NotificationService(db)
    first = service.create_notification(user.id, {"title": "A", "message": "first"})
    service.create_notification(user.id, {"title": "B", "message": "second", "type": "ORDER"})

    assert first.type == NotificationType.INFO.value
    assert service.get_unread_count(user.id) == 2

    read = service.mark_as_read(first.id, user.id)
    assert read.is_read
    assert read.read_at is not None
    assert service.get_unread_count(user.id) == 1

    assert service.mark_all_as_read(user.id) == 1
    stats = service.get_stats(user.id)
    assert stats == {"total": 2, "unread": 0, "read": 2, "by_type": {"INFO": 1, "ORDER": 1}}


def test_other_users_notification_is_hidden(db, user):
    other = AuthService(db).register_user("other", "other@example.com", "secret", role_codes=[])
    service = NotificationService(db)
    notification = service.create_notification(other.id, {"title": "A", "message": "private"})

    with pytest.raises(AppError) as exc_info:
        service.mark_as_read(notification.id, user.id)
    assert exc_info.value.status_code == 404


def test_preferences(db, user):
    service = NotificationService(db)
    assert service.is_enabled(user.id, "ORDER", NotificationChannel.PUSH)

    preferences = service.initialize_preferences(user.id)
    assert len(preferences) == len(NotificationType)

    updated = service.update_preference(user.id, "ORDER", {"push": False, "email": None})
    assert updated.push is False
    assert updated.email is True
    assert not service.is_enabled(user.id, "ORDER", NotificationChannel.PUSH)

    with pytest.raises(AppError):
        service.update_preference(user.id, "CARRIER_PIGEON", {"push": True})


def test_send_respects_in_app_preference(db, user):
    service = NotificationService(db)
    service.update_preference(user.id, "PROMOTION", {"in_app": False})

    assert service.send_to_user(user.id, {"title": "Sale", "message": "50% off", "type": "PROMOTION"}) is None
    assert service.get_unread_count(user.id) == 0


def test_send_removes_invalid_tokens(db, user):
    """Test that tokens FCM reports as unregistered are dropped from the user"""
    service = NotificationService(db)
    service.register_fcm_token(user.id, "good")
    service.register_fcm_token(user.id, "stale")

    gateway = PushGateway(server_key="key", transport=_fcm_transport(
        [{"message_id": "1"}, {"error": "InvalidRegistration"}]
    ))
    notification = NotificationService(db, push_gateway=gateway).send_to_user(
        user.id, {"title": "Shipped", "message": "Order shipped", "type": "ORDER"}
    )

    assert notification is not None
    db.refresh(user)
    assert user.fcm_tokens == ["good"]


def test_push_failure_does_not_fail_send(db, user):
    service = NotificationService(db)
    service.register_fcm_token(user.id, "token")
    gateway = PushGateway(server_key="key", transport=_fcm_transport([], status_code=503))

    notification = NotificationService(db, push_gateway=gateway).send_to_user(
        user.id, {"title": "Hello", "message": "World"}
    )
    assert notification is not None
    db.refresh(user)
    assert user.fcm_tokens == ["token"]


def test_register_token_is_idempotent(db, user):
    service = NotificationService(db)
    service.register_fcm_token(user.id, "token")
    assert service.register_fcm_token(user.id, "token") == ["token"]


def test_cleanup(db, user):
    from datetime import timedelta

    from quasar.core.utils import utcnow

    service = NotificationService(db)
    old = service.create_notification(user.id, {"title": "Old", "message": "read long ago"})
    service.create_notification(user.id, {"title": "Expired", "message": "gone",
                                          "expires_at": utcnow() - timedelta(days=1)})
    service.create_notification(user.id, {"title": "Fresh", "message": "keep"})
    service.mark_as_read(old.id)
    old.created_at = utcnow() - timedelta(days=60)
    db.commit()

    assert service.cleanup_old(30) == 2
    _, total = service.list_notifications(user_id=user.id)
    assert total == 1

    with pytest.raises(AppError):
        service.cleanup_old(0)
