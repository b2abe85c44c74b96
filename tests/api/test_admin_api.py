"""
Tests for the fulfillment, customer and CMS admin routes
"""
import pytest

from quasar.models.customer import Country


@pytest.fixture
def order(client, admin_headers):
    response = client.post("/api/admin/orders", headers=admin_headers, json={
        "customer_email": "buyer@example.com",
        "items": [
            {"product_name": "Mug", "unit_price": "10.00", "quantity": 2},
            {"product_name": "Poster", "unit_price": "5.00", "quantity": 1},
        ],
    })
    return response.json()["data"]


def test_fulfillment_flow(client, admin_headers, order):
    """Ship every item in one fulfillment and follow the order to DELIVERED"""
    items = [{"order_item_id": item["id"], "quantity": item["quantity"]} for item in order["items"]]
    response = client.post("/api/admin/fulfillments", headers=admin_headers,
                           json={"order_id": order["id"], "items": items, "priority": "HIGH"})
    assert response.status_code == 201
    fulfillment = response.json()["data"]
    assert fulfillment["fulfillment_number"].startswith("FUL")
    assert fulfillment["priority"] == "HIGH"

    tracked = client.post(f"/api/admin/fulfillments/{fulfillment['id']}/tracking", headers=admin_headers,
                          json={"tracking_number": "1Z999"}).json()["data"]
    assert tracked["status"] == "SHIPPED"

    event = client.post(f"/api/admin/fulfillments/{fulfillment['id']}/events", headers=admin_headers,
                        json={"status": "IN_TRANSIT", "location": "Hub"})
    assert event.status_code == 201

    delivered = client.post(f"/api/admin/fulfillments/{fulfillment['id']}/deliver",
                            headers=admin_headers).json()["data"]
    assert delivered["status"] == "DELIVERED"
    assert len(delivered["tracking_events"]) >= 1

    assert client.get(f"/api/admin/orders/{order['id']}", headers=admin_headers).json()["data"]["status"] \
        == "DELIVERED"


def test_fulfillment_over_quantity(client, admin_headers, order):
    item = order["items"][1]
    response = client.post("/api/admin/fulfillments", headers=admin_headers, json={
        "order_id": order["id"],
        "items": [{"order_item_id": item["id"], "quantity": item["quantity"] + 1}],
    })
    assert response.status_code == 422


def test_customer_address_book(client, db, admin_headers):
    country = Country(code="FR", name="France", phone_code="33")
    db.add(country)
    db.commit()

    response = client.post("/api/admin/customers", headers=admin_headers,
                           json={"email": "Lea@Example.com", "first_name": "Lea", "last_name": "Martin"})
    assert response.status_code == 201
    customer = response.json()["data"]
    assert customer["email"] == "lea@example.com"
    assert customer["full_name"] == "Lea Martin"

    address = {"country_id": str(country.id), "first_name": "Lea", "last_name": "Martin",
               "address_line_1": "1 rue de Rivoli", "city": "Paris"}
    first = client.post(f"/api/admin/customers/{customer['id']}/addresses", headers=admin_headers,
                        json=address).json()["data"]
    second = client.post(f"/api/admin/customers/{customer['id']}/addresses", headers=admin_headers,
                         json={**address, "city": "Lyon"}).json()["data"]
    assert first["is_default"] and not second["is_default"]

    client.post(f"/api/admin/customers/{customer['id']}/addresses/{second['id']}/default", headers=admin_headers)
    addresses = client.get(f"/api/admin/customers/{customer['id']}/addresses", headers=admin_headers).json()["data"]
    assert [a["city"] for a in addresses if a["is_default"]] == ["Lyon"]


def test_customer_email_is_validated(client, admin_headers):
    response = client.post("/api/admin/customers", headers=admin_headers,
                           json={"email": "not-an-email", "first_name": "A", "last_name": "B"})
    assert response.status_code == 400


def test_component_config_metadata_round_trip(client, admin_headers):
    response = client.post("/api/admin/component-configs", headers=admin_headers, json={
        "component_key": "promo_strip",
        "display_name": "Promo strip",
        "metadata": {"dataSource": "promotions"},
        "default_config": {"sidebar": {"enabled": True}},
    })
    assert response.status_code == 201
    component = response.json()["data"]
    assert component["metadata"] == {"dataSource": "promotions"}

    child = client.post("/api/admin/component-configs", headers=admin_headers, json={
        "component_key": "promo_strip.item",
        "display_name": "Promo item",
        "component_type": "atomic",
        "parent_id": component["id"],
    }).json()["data"]
    assert child["position"] == 0

    children = client.get(f"/api/admin/component-configs/{component['id']}/children",
                          headers=admin_headers).json()["data"]
    assert [c["component_key"] for c in children] == ["promo_strip.item"]

    by_key = client.get("/api/admin/component-configs/key/promo_strip", headers=admin_headers).json()["data"]
    assert by_key["id"] == component["id"]


def test_sections_admin_and_reorder(client, admin_headers):
    created = [
        client.post("/api/admin/sections", headers=admin_headers, json={
            "page": "landing",
            "type": section_type,
            "translations": [{"locale": "en", "title": section_type.title()}],
        }).json()["data"]
        for section_type in ("hero_slider", "cta_banner")
    ]
    assert [s["position"] for s in created] == [0, 1]

    response = client.post("/api/admin/sections/reorder", headers=admin_headers, json={
        "page": "landing",
        "positions": [{"id": created[0]["id"], "position": 1}, {"id": created[1]["id"], "position": 0}],
    })
    assert response.status_code == 200
    assert [s["type"] for s in response.json()["data"]] == ["cta_banner", "hero_slider"]

    public = client.get("/api/sections/landing").json()["data"]
    assert [s["type"] for s in public] == ["cta_banner", "hero_slider"]
