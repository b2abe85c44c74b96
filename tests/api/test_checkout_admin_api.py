"""
Tests for the payment method, delivery method and shipping provider admin routes
"""


def _create(client, headers, path, payload):
    response = client.post(path, headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_payment_methods_admin(client, admin_headers):
    cod = _create(client, admin_headers, "/api/admin/payment-methods",
                  {"code": "cod", "name": "Cash on Delivery", "is_default": True, "processing_fee": "2.00"})
    card = _create(client, admin_headers, "/api/admin/payment-methods",
                   {"code": "card", "name": "Card", "processing_fee": "1.5", "processing_fee_type": "PERCENTAGE"})
    assert [cod["sort_order"], card["sort_order"]] == [0, 1]

    quote = client.post(f"/api/admin/payment-methods/{card['id']}/calculate", headers=admin_headers,
                        json={"amount": "200"}).json()["data"]
    assert quote["processing_fee"] == 3.0
    assert quote["total"] == 203.0

    response = client.post(f"/api/admin/payment-methods/{cod['id']}/toggle-active", headers=admin_headers)
    assert response.status_code == 422

    default = client.post(f"/api/admin/payment-methods/{card['id']}/default", headers=admin_headers).json()["data"]
    assert default["is_default"] is True
    methods = client.get("/api/admin/payment-methods", headers=admin_headers).json()
    assert [m["code"] for m in methods["data"] if m["is_default"]] == ["card"]
    assert methods["pagination"]["total"] == 2

    reordered = client.post("/api/admin/payment-methods/reorder", headers=admin_headers, json={
        "items": [{"id": cod["id"], "sort_order": 3}, {"id": card["id"], "sort_order": 0}],
    }).json()["data"]
    assert [m["code"] for m in reordered] == ["card", "cod"]

    assert client.delete(f"/api/admin/payment-methods/{cod['id']}", headers=admin_headers).status_code == 200
    stats = client.get("/api/admin/payment-methods/stats", headers=admin_headers).json()["data"]
    assert stats["total"] == 1


def test_payment_fee_type_is_validated(client, admin_headers):
    response = client.post("/api/admin/payment-methods", headers=admin_headers,
                           json={"code": "x", "name": "X", "processing_fee_type": "SOMETIMES"})
    assert response.status_code == 400


def test_delivery_methods_admin(client, admin_headers):
    standard = _create(client, admin_headers, "/api/admin/delivery-methods",
                       {"code": "standard", "name": "Standard", "price": "5.00", "is_default": True,
                        "free_delivery_threshold": "100.00", "estimated_days": 5})
    freight = _create(client, admin_headers, "/api/admin/delivery-methods",
                      {"code": "freight", "name": "Freight", "price": "2.00",
                       "cost_calculation_type": "WEIGHT_BASED", "weight_limit_kg": "30"})

    quote = client.post(f"/api/admin/delivery-methods/{freight['id']}/calculate", headers=admin_headers,
                        json={"order_amount": "40", "weight_kg": "2.5"}).json()["data"]
    assert quote["delivery_cost"] == 5.0

    too_heavy = client.post(f"/api/admin/delivery-methods/{freight['id']}/calculate", headers=admin_headers,
                            json={"order_amount": "40", "weight_kg": "31"})
    assert too_heavy.status_code == 422

    quotes = client.post("/api/admin/delivery-methods/quotes", headers=admin_headers,
                         json={"order_amount": "150", "weight_kg": "1"}).json()["data"]
    assert [(q["code"], q["delivery_cost"]) for q in quotes] == [("standard", 0.0), ("freight", 2.0)]

    updated = client.put(f"/api/admin/delivery-methods/{standard['id']}", headers=admin_headers,
                         json={"estimated_days": 3}).json()["data"]
    assert updated["estimated_days"] == 3

    response = client.delete(f"/api/admin/delivery-methods/{standard['id']}", headers=admin_headers)
    assert response.status_code == 422


def test_shipping_providers_admin(client, admin_headers):
    ups = _create(client, admin_headers, "/api/admin/shipping-providers", {
        "code": "ups",
        "name": "UPS",
        "tracking_url_template": "https://ups.test/track/{tracking_number}",
        "services": {"international": True},
    })
    assert ups["code"] == "UPS"
    assert ups["services"]["international"] is True

    link = client.get(f"/api/admin/shipping-providers/{ups['id']}/tracking-url", headers=admin_headers,
                      params={"tracking_number": "1Z9"}).json()["data"]
    assert link["tracking_url"] == "https://ups.test/track/1Z9"

    duplicate = client.post("/api/admin/shipping-providers", headers=admin_headers,
                            json={"code": "UPS", "name": "Again"})
    assert duplicate.status_code == 409

    bad_template = client.post("/api/admin/shipping-providers", headers=admin_headers,
                               json={"code": "dhl", "name": "DHL", "tracking_url_template": "https://dhl.test/"})
    assert bad_template.status_code == 400

    deactivated = client.post(f"/api/admin/shipping-providers/{ups['id']}/deactivate",
                              headers=admin_headers).json()["data"]
    assert deactivated["is_active"] is False
    active = client.get("/api/admin/shipping-providers", headers=admin_headers,
                        params={"is_active": True}).json()["data"]
    assert active == []

    assert client.delete(f"/api/admin/shipping-providers/{ups['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/admin/shipping-providers/{ups['id']}", headers=admin_headers).status_code == 404


def test_checkout_settings_need_permission(client, user_headers):
    response = client.get("/api/admin/payment-methods", headers=user_headers)
    assert response.status_code == 403
