"""
Tests for the public section routes, user notifications and health checks
"""
from quasar.seeders import run_seeders
from quasar.services.notification_service import NotificationService


def test_public_home_sections(client, db):
    run_seeders(db, ["component_configs", "sections"])

    response = client.get("/api/sections/home", params={"locale": "fr"})

    assert response.status_code == 200
    sections = response.json()["data"]
    assert [s["type"] for s in sections] == ["hero_slider", "product_card", "cta_banner"]
    assert sections[0]["translation"]["locale"] == "en"
    assert sections[0]["config"]["sidebar"]["enabled"] is False


def test_unknown_page_is_empty(client):
    response = client.get("/api/sections/nowhere")
    assert response.status_code == 200
    assert response.json()["data"] == []


def test_admin_sections_require_permission(client, user_headers):
    response = client.get("/api/admin/sections", params={"page": "home"}, headers=user_headers)
    assert response.status_code == 403


def test_user_notifications(client, db, plain_user, user_headers):
    service = NotificationService(db)
    service.create_notification(plain_user.id, {"title": "Shipped", "message": "On its way", "type": "ORDER"})
    service.create_notification(plain_user.id, {"title": "Hello", "message": "Welcome"})

    response = client.get("/api/notifications/unread-count", headers=user_headers)
    assert response.json()["data"] == {"count": 2}

    listed = client.get("/api/notifications", headers=user_headers).json()
    assert listed["pagination"]["totalItems"] == 2

    assert client.post("/api/notifications/read-all", headers=user_headers).json()["data"] == {"updated": 2}
    assert client.get("/api/notifications/unread-count", headers=user_headers).json()["data"] == {"count": 0}


def test_register_fcm_token(client, user_headers):
    for _ in range(2):
        response = client.post("/api/notifications/fcm-token", json={"token": "device-1"}, headers=user_headers)
        assert response.status_code == 200
    assert response.json()["data"] == {"tokens": 1}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_detailed_health_reports_pending_migrations(client):
    """The test schema is built from the models, so the version table is empty"""
    response = client.get("/health/detailed")

    assert response.status_code == 200
    components = response.json()["components"]
    assert components["database"]["status"] == "healthy"
    assert components["migrations"]["status"] == "warning"
    assert components["migrations"]["current"] == []
    assert components["migrations"]["pending"]


def test_metrics_endpoint(client):
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "checkout-42-abc"})
    assert response.headers["X-Request-ID"] == "checkout-42-abc"

    generated = client.get("/health", headers={"X-Request-ID": "bad id!"}).headers["X-Request-ID"]
    assert generated != "bad id!"
    assert len(generated) == 36


def test_detailed_health_reports_log_counts(client):
    from quasar.core.logging_config import LoggingConfig

    LoggingConfig.reset_metrics()
    LoggingConfig.get_logger("quasar.tests").warning("disk almost full")

    logging_status = client.get("/health/detailed").json()["components"]["logging"]
    assert logging_status["counts"]["WARNING"] >= 1
    assert set(logging_status["counts"]) == {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
