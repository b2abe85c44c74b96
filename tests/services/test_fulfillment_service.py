"""
Tests for FulfillmentService
"""
from decimal import Decimal
from uuid import uuid4

import pytest

from quasar.core.errors import AppError
from quasar.models.fulfillment import FulfillmentStatus
from quasar.models.order import OrderStatus
from quasar.services.fulfillment_service import FulfillmentService
from quasar.services.order_service import OrderService


@pytest.fixture
def order(db):
    return OrderService(db).create_order({
        "customer_email": "buyer@example.com",
        "items": [
            {"product_name": "Mug", "unit_price": Decimal("10.00"), "quantity": 2},
            {"product_name": "Poster", "unit_price": Decimal("5.00"), "quantity": 1},
        ],
    })


def _items(order, *quantities):
    return [
        {"order_item_id": item.id, "quantity": quantity}
        for item, quantity in zip(order.items, quantities) if quantity
    ]


def test_create_fulfillment(db, order):
    fulfillment = FulfillmentService(db).create_fulfillment({"order_id": order.id, "items": _items(order, 1)})

    assert fulfillment.fulfillment_number.startswith("FUL")
    assert fulfillment.fulfillment_number.endswith("0001")
    assert fulfillment.status == FulfillmentStatus.PENDING.value
    db.refresh(order)
    assert order.items[0].fulfilled_quantity == 1
    assert order.status == OrderStatus.PENDING.value


def test_cannot_exceed_remaining_quantity(db, order):
    """Test that an item cannot be fulfilled beyond what is left"""
    service = FulfillmentService(db)
    service.create_fulfillment({"order_id": order.id, "items": _items(order, 2)})

    with pytest.raises(AppError) as exc_info:
        service.create_fulfillment({"order_id": order.id, "items": _items(order, 1)})
    assert exc_info.value.status_code == 422


def test_rejected_fulfillment_leaves_quantities_untouched(db, order):
    """Test that a failing line does not leave earlier lines counted as fulfilled"""
    service = FulfillmentService(db)
    mug, poster = order.items
    with pytest.raises(AppError):
        service.create_fulfillment({"order_id": order.id, "items": [
            {"order_item_id": mug.id, "quantity": 2},
            {"order_item_id": poster.id, "quantity": 5},
        ]})
    OrderService(db).update_order(order.id, {"notes": "x"})

    db.refresh(mug)
    assert mug.fulfilled_quantity == 0


def test_unknown_provider_leaves_quantities_untouched(db, order):
    service = FulfillmentService(db)
    with pytest.raises(AppError) as exc_info:
        service.create_fulfillment({"order_id": order.id, "items": _items(order, 2),
                                    "shipping_provider_id": uuid4()})
    assert exc_info.value.status_code == 404
    OrderService(db).update_order(order.id, {"notes": "x"})

    db.refresh(order)
    assert order.items[0].fulfilled_quantity == 0
    assert service.list_fulfillments(order_id=order.id)[1] == 0


def test_repeated_lines_share_remaining_quantity(db, order):
    mug = order.items[0]
    with pytest.raises(AppError):
        FulfillmentService(db).create_fulfillment({"order_id": order.id, "items": [
            {"order_item_id": mug.id, "quantity": 1},
            {"order_item_id": mug.id, "quantity": 2},
        ]})


def test_fulfillment_sequence_continues_past_9999(db, order):
    service = FulfillmentService(db)
    first = service.create_fulfillment({"order_id": order.id, "items": _items(order, 1)})
    second = service.create_fulfillment({"order_id": order.id, "items": _items(order, 1)})
    prefix = first.fulfillment_number[:9]
    first.fulfillment_number = f"{prefix}9999"
    second.fulfillment_number = f"{prefix}10000"
    db.commit()

    assert service.generate_fulfillment_number() == f"{prefix}10001"


def test_tracking_number_ships_order(db, order):
    fulfillment = FulfillmentService(db).create_fulfillment(
        {"order_id": order.id, "items": _items(order, 1), "tracking_number": "1Z999"}
    )

    assert fulfillment.status == FulfillmentStatus.SHIPPED.value
    assert fulfillment.shipped_at is not None
    db.refresh(order)
    assert order.status == OrderStatus.SHIPPED.value


def test_partial_delivery_keeps_order_shipped(db, order):
    service = FulfillmentService(db)
    fulfillment = service.create_fulfillment({"order_id": order.id, "items": _items(order, 2)})
    service.add_tracking(fulfillment.id, "1Z999")
    service.mark_delivered(fulfillment.id)

    db.refresh(order)
    assert order.status == OrderStatus.SHIPPED.value


def test_full_delivery_delivers_order(db, order):
    """Test that the order is DELIVERED once every item is delivered"""
    service = FulfillmentService(db)
    first = service.create_fulfillment({"order_id": order.id, "items": _items(order, 2)})
    second = service.create_fulfillment({"order_id": order.id, "items": _items(order, 0, 1)})
    service.mark_delivered(first.id)

    db.refresh(order)
    assert order.status != OrderStatus.DELIVERED.value

    service.mark_delivered(second.id)
    db.refresh(order)
    assert order.status == OrderStatus.DELIVERED.value
    assert order.delivered_date is not None


def test_tracking_event_moves_status(db, order):
    service = FulfillmentService(db)
    fulfillment = service.create_fulfillment({"order_id": order.id, "items": _items(order, 1)})

    event = service.add_tracking_event(fulfillment.id, {"status": "IN_TRANSIT", "location": "Hub"})
    assert event.location == "Hub"
    db.refresh(fulfillment)
    assert fulfillment.status == FulfillmentStatus.IN_TRANSIT.value


def test_cancel_returns_quantities(db, order):
    service = FulfillmentService(db)
    fulfillment = service.create_fulfillment({"order_id": order.id, "items": _items(order, 2)})

    cancelled = service.cancel_fulfillment(fulfillment.id, "address problem")
    assert cancelled.status == FulfillmentStatus.CANCELLED.value
    db.refresh(order)
    assert order.items[0].fulfilled_quantity == 0

    with pytest.raises(AppError):
        service.add_tracking(fulfillment.id, "1Z999")


def test_cannot_cancel_delivered_fulfillment(db, order):
    service = FulfillmentService(db)
    fulfillment = service.create_fulfillment({"order_id": order.id, "items": _items(order, 1)})
    service.mark_delivered(fulfillment.id)

    with pytest.raises(AppError, match="Delivered"):
        service.cancel_fulfillment(fulfillment.id)


def test_cancelled_order_cannot_be_fulfilled(db, order):
    OrderService(db).cancel_order(order.id)
    with pytest.raises(AppError):
        FulfillmentService(db).create_fulfillment({"order_id": order.id, "items": _items(order, 1)})
