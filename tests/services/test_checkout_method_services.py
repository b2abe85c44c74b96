"""
Tests for payment methods, delivery methods and shipping providers
"""
from decimal import Decimal
from uuid import uuid4

import pytest

from quasar.core.errors import AppError
from quasar.models.order import DeliveryCostType, FeeType
from quasar.services.delivery_method_service import DeliveryMethodService
from quasar.services.fulfillment_service import FulfillmentService
from quasar.services.order_service import OrderService
from quasar.services.payment_method_service import PaymentMethodService
from quasar.services.shipping_provider_service import ShippingProviderService


def _order(db, **extra):
    return OrderService(db).create_order({
        "customer_email": "buyer@example.com",
        "items": [{"product_name": "Lamp", "unit_price": Decimal("60.00"), "quantity": 2}],
        **extra,
    })


@pytest.fixture
def payments(db):
    service = PaymentMethodService(db)
    service.create_method({"code": "cod", "name": "Cash on Delivery", "is_default": True,
                           "processing_fee": Decimal("2.00")})
    service.create_method({"code": "card", "name": "Card", "processing_fee": Decimal("1.50"),
                           "processing_fee_type": FeeType.PERCENTAGE.value,
                           "min_amount": Decimal("1.00"), "max_amount": Decimal("500.00")})
    return service


@pytest.fixture
def deliveries(db):
    service = DeliveryMethodService(db)
    service.create_method({"code": "standard", "name": "Standard", "price": Decimal("5.00"), "is_default": True,
                           "free_delivery_threshold": Decimal("100.00"), "estimated_days": 5})
    service.create_method({"code": "freight", "name": "Freight", "price": Decimal("2.00"),
                           "cost_calculation_type": DeliveryCostType.WEIGHT_BASED.value,
                           "weight_limit_kg": Decimal("30")})
    service.create_method({"code": "pickup", "name": "Pickup",
                           "cost_calculation_type": DeliveryCostType.FREE.value})
    return service


def test_create_assigns_next_sort_order(payments):
    items, total = payments.list_methods()

    assert total == 2
    assert [(m.code, m.sort_order) for m in items] == [("cod", 0), ("card", 1)]


def test_duplicate_payment_code_conflicts(payments):
    with pytest.raises(AppError) as exc_info:
        payments.create_method({"code": "cod", "name": "Again"})
    assert exc_info.value.status_code == 409


def test_only_one_default(payments):
    cod, card = payments.get_by_code("cod"), payments.get_by_code("card")

    payments.set_default(card.id)

    assert payments.get_default().code == "card"
    assert cod.is_default is False
    assert payments.get_stats() == {"total": 2, "active": 2, "inactive": 0, "default_code": "card"}


def test_default_method_is_protected(payments):
    cod = payments.get_by_code("cod")

    with pytest.raises(AppError, match="cannot be deleted"):
        payments.delete_method(cod.id)
    with pytest.raises(AppError, match="cannot be deactivated"):
        payments.toggle_active(cod.id)


def test_inactive_method_cannot_become_default(payments):
    card = payments.toggle_active(payments.get_by_code("card").id)
    assert card.is_active is False

    with pytest.raises(AppError) as exc_info:
        payments.set_default(card.id)
    assert exc_info.value.status_code == 422


def test_min_amount_above_max_is_rejected(payments):
    card = payments.get_by_code("card")
    with pytest.raises(AppError) as exc_info:
        payments.update_method(card.id, {"min_amount": Decimal("600.00")})
    assert exc_info.value.status_code == 400


def test_calculate_payment_fees(payments):
    """Test fixed and percentage processing fees and the amount bounds"""
    cod, card = payments.get_by_code("cod"), payments.get_by_code("card")

    assert payments.calculate_payment(cod.id, Decimal("40"))["total"] == Decimal("42.00")

    quote = payments.calculate_payment(card.id, Decimal("200"))
    assert quote["processing_fee"] == Decimal("3.00")
    assert quote["total"] == Decimal("203.00")

    with pytest.raises(AppError, match="between 1.00 and 500.00"):
        payments.calculate_payment(card.id, Decimal("900"))


def test_reorder_payment_methods(payments):
    cod, card = payments.get_by_code("cod"), payments.get_by_code("card")

    ordered = payments.reorder([{"id": cod.id, "sort_order": 5}, {"id": card.id, "sort_order": 1}])
    assert [m.code for m in ordered] == ["card", "cod"]

    with pytest.raises(AppError) as exc_info:
        payments.reorder([{"id": uuid4(), "sort_order": 0}])
    assert exc_info.value.status_code == 404


def test_method_used_by_orders_cannot_be_deleted(db, payments):
    card = payments.get_by_code("card")
    _order(db, payment_method_id=card.id)

    with pytest.raises(AppError, match="used by orders"):
        payments.delete_method(card.id)


def test_delivery_cost_rules(deliveries):
    standard, freight = deliveries.get_by_code("standard"), deliveries.get_by_code("freight")

    assert deliveries.calculate_delivery(standard.id, Decimal("40"))["delivery_cost"] == Decimal("5.00")
    assert deliveries.calculate_delivery(standard.id, Decimal("100"))["delivery_cost"] == Decimal("0.00")

    quote = deliveries.calculate_delivery(freight.id, Decimal("40"), Decimal("2.5"))
    assert quote["delivery_cost"] == Decimal("5.00")
    assert quote["total"] == Decimal("45.00")

    with pytest.raises(AppError, match="exceeds"):
        deliveries.calculate_delivery(freight.id, Decimal("40"), Decimal("31"))
    with pytest.raises(AppError, match="weight"):
        deliveries.calculate_delivery(freight.id, Decimal("40"))


def test_delivery_quotes_cheapest_available_first(deliveries):
    quotes = deliveries.get_quotes(Decimal("40"), Decimal("40"))

    assert [(q["code"], q["available"]) for q in quotes] == [
        ("pickup", True), ("standard", True), ("freight", False),
    ]
    assert "exceeds" in quotes[-1]["reason"]


def test_inactive_delivery_method_is_not_quoted(deliveries):
    pickup = deliveries.toggle_active(deliveries.get_by_code("pickup").id)

    assert "pickup" not in [q["code"] for q in deliveries.get_quotes(Decimal("10"))]
    with pytest.raises(AppError, match="not active"):
        deliveries.calculate_delivery(pickup.id, Decimal("10"))


def test_order_shipping_follows_delivery_rules(db, deliveries):
    standard = deliveries.get_by_code("standard")

    order = _order(db, delivery_method_id=standard.id)

    assert order.shipping_cost == Decimal("0.00")
    assert order.total_amount == Decimal("120.00")


def test_shipping_provider_codes_and_services(db):
    service = ShippingProviderService(db)
    ups = service.create_provider({"code": "ups", "name": "UPS", "services": {"express": True},
                                   "tracking_url_template": "https://ups.test/track/{tracking_number}"})

    assert ups.code == "UPS"
    assert ups.services["express"] is True
    assert ups.services["domestic"] is True
    assert service.get_by_code("ups").id == ups.id
    assert service.tracking_url(ups.id, "1Z9") == "https://ups.test/track/1Z9"

    with pytest.raises(AppError) as exc_info:
        service.create_provider({"code": "UPS", "name": "Again"})
    assert exc_info.value.status_code == 409

    with pytest.raises(AppError) as exc_info:
        service.create_provider({"code": "dhl", "name": "DHL", "tracking_url_template": "https://dhl.test/"})
    assert exc_info.value.status_code == 400


def test_shipping_provider_update_merges_services(db):
    service = ShippingProviderService(db)
    ups = service.create_provider({"code": "ups", "name": "UPS", "services": {"express": True}})

    updated = service.update_provider(ups.id, {"services": {"international": True},
                                               "contact_info": {"email": "ops@ups.test"}})

    assert updated.services["express"] is True
    assert updated.services["international"] is True
    assert updated.contact_info == {"email": "ops@ups.test"}
    stats = service.get_stats()
    assert stats["international"] == 1
    assert stats["with_tracking"] == 0


def test_provider_in_use_and_inactive_provider(db):
    service = ShippingProviderService(db)
    ups = service.create_provider({"code": "ups", "name": "UPS"})
    order = _order(db)
    fulfillments = FulfillmentService(db)
    line = {"order_item_id": order.items[0].id, "quantity": 1}
    fulfillments.create_fulfillment({"order_id": order.id, "items": [line], "shipping_provider_id": ups.id})

    with pytest.raises(AppError, match="used by fulfillments"):
        service.delete_provider(ups.id)

    service.set_active(ups.id, False)
    with pytest.raises(AppError, match="not active"):
        fulfillments.create_fulfillment({"order_id": order.id, "items": [line], "shipping_provider_id": ups.id})
