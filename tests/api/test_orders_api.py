"""
Tests for the admin order routes and the error envelope
"""
from decimal import Decimal
from uuid import uuid4

from quasar.core.errors import CommonErrorCodes

ORDER = {
    "customer_email": "buyer@example.com",
    "customer_name": "Ada Buyer",
    "shipping_cost": "5.00",
    "items": [
        {"product_name": "Mug", "unit_price": "12.50", "quantity": 2},
        {"product_name": "Poster", "unit_price": "8.00", "quantity": 1},
    ],
}


def test_create_and_cancel_order(client, admin_headers):
    response = client.post("/api/admin/orders", json=ORDER, headers=admin_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "CREATED"
    order = body["data"]
    assert order["order_number"].startswith("ORD")
    assert order["status"] == "PENDING"
    assert Decimal(str(order["total_amount"])) == Decimal("38.00")
    assert len(order["items"]) == 2

    response = client.post(f"/api/admin/orders/{order['id']}/cancel", json={"reason": "customer request"},
                           headers=admin_headers)
    assert response.status_code == 200
    cancelled = response.json()["data"]
    assert cancelled["status"] == "CANCELLED"
    assert cancelled["cancel_reason"] == "customer request"


def test_list_orders_paginates(client, admin_headers):
    for _ in range(3):
        client.post("/api/admin/orders", json=ORDER, headers=admin_headers)

    response = client.get("/api/admin/orders", params={"page": 1, "limit": 2}, headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["pagination"]["totalItems"] == 3
    assert body["pagination"]["hasNextPage"] is True


def test_missing_order_returns_error_envelope(client, admin_headers):
    response = client.get(f"/api/admin/orders/{uuid4()}", headers=admin_headers)

    assert response.status_code == 404
    error = response.json()["errors"][0]
    assert error["@type"] == "ErrorInfo"
    assert error["reason"] == CommonErrorCodes.ORDER_NOT_FOUND
    assert error["message"].endswith("not found")


def test_business_rule_violation(client, admin_headers):
    order = client.post("/api/admin/orders", json=ORDER, headers=admin_headers).json()["data"]

    response = client.post(f"/api/admin/orders/{order['id']}/ship", headers=admin_headers)

    assert response.status_code == 422
    body = response.json()
    assert body["status"] == "BUSINESS_LOGIC_ERROR"
    assert body["errors"][0]["metadata"]["status"] == "PENDING"


def test_permission_denied(client, user_headers):
    response = client.get("/api/admin/orders", headers=user_headers)

    assert response.status_code == 403
    error = response.json()["errors"][0]
    assert error["reason"] == CommonErrorCodes.PERMISSION_DENIED
    assert error["metadata"] == {"permission": "read:any:order"}


def test_authentication_required(client):
    assert client.get("/api/admin/orders").status_code == 401


def test_request_validation_envelope(client, admin_headers):
    response = client.post("/api/admin/orders", json={**ORDER, "items": []}, headers=admin_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["errors"][0]["reason"] == CommonErrorCodes.VALIDATION_ERROR
    assert body["errors"][0]["metadata"]["errors"][0]["loc"] == ["body", "items"]
