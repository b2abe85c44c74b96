"""
Tests for the authentication routes
"""


def test_login_returns_session_token(client, admin_user):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "admin-password"})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["data"]["token"]
    assert body["data"]["user"]["roles"] == ["super_admin"]
    assert response.cookies.get("session_token") == body["data"]["token"]


def test_login_with_email(client, plain_user):
    response = client.post("/api/auth/login", json={"username": "shopper@example.com",
                                                    "password": "shopper-password"})
    assert response.status_code == 200
    assert response.json()["data"]["user"]["username"] == "shopper"


def test_login_wrong_password(client, plain_user):
    response = client.post("/api/auth/login", json={"username": "shopper", "password": "nope"})
    assert response.status_code == 401


def test_me(client, plain_user, user_headers):
    response = client.get("/api/auth/me", headers=user_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == "shopper@example.com"
    assert data["roles"] == ["user"]


def test_me_requires_authentication(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication required"


def test_logout_ends_session(client, user_headers):
    assert client.post("/api/auth/logout", headers=user_headers).status_code == 200
    assert client.get("/api/auth/me", headers=user_headers).status_code == 401
