"""
Tests for the product, category and inventory services
"""
from decimal import Decimal

import pytest

from quasar.core.errors import AppError
from quasar.models.catalog import ProductStatus
from quasar.services.category_service import CategoryService
from quasar.services.inventory_service import InventoryService
from quasar.services.product_service import ProductService


@pytest.fixture
def product(db):
    return ProductService(db).create_product({
        "name": "Enamel Mug",
        "sku": "MUG-1",
        "status": ProductStatus.ACTIVE.value,
        "variants": [
            {"sku": "MUG-1-RED", "name": "Red", "price": Decimal("12.50"), "is_active": False},
            {"sku": "MUG-1-BLUE", "name": "Blue", "price": Decimal("13.00")},
        ],
    })


@pytest.fixture
def warehouse(db):
    return InventoryService(db).create_warehouse({"code": "MAIN", "name": "Main", "is_default": True})


def test_create_product_slugs_and_orders_variants(product):
    assert product.slug == "enamel-mug"
    assert [v.sku for v in product.variants] == ["MUG-1-RED", "MUG-1-BLUE"]
    assert [v.sort_order for v in product.variants] == [0, 1]


def test_duplicate_skus_conflict(db, product):
    service = ProductService(db)
    with pytest.raises(AppError) as exc_info:
        service.create_product({"name": "Other", "sku": "MUG-1"})
    assert exc_info.value.status_code == 409

    with pytest.raises(AppError, match="Variant SKU"):
        service.add_variant(product.id, {"sku": "MUG-1-BLUE", "name": "Blue again", "price": Decimal("1.00")})


def test_price_info_uses_first_active_variant(db, product):
    info = ProductService(db).get_price_info(product.id)

    assert info["product_sku"] == "MUG-1-BLUE"
    assert info["price"] == Decimal("13.00")
    assert info["is_active"] is True


def test_price_info_inactive_for_draft_products(db, product):
    service = ProductService(db)
    service.update_product(product.id, {"status": ProductStatus.DRAFT.value})
    red = product.variants[0]

    info = service.get_price_info(product.id, red.id)
    assert info["variant_name"] == "Red"
    assert info["is_active"] is False


def test_deleted_product_is_hidden(db, product):
    service = ProductService(db)
    service.delete_product(product.id)

    with pytest.raises(AppError) as exc_info:
        service.get_product(product.id)
    assert exc_info.value.status_code == 404
    assert service.list_products()[1] == 0


def test_category_tree_and_cycles(db):
    service = CategoryService(db)
    home = service.create_category({"name": "Home"})
    kitchen = service.create_category({"name": "Kitchen", "parent_id": home.id})
    service.create_category({"name": "Garden", "sort_order": 1})

    tree = service.get_tree()
    assert [node["slug"] for node in tree] == ["home", "garden"]
    assert [child["name"] for child in tree[0]["children"]] == ["Kitchen"]

    with pytest.raises(AppError, match="descendant"):
        service.update_category(home.id, {"parent_id": kitchen.id})
    with pytest.raises(AppError, match="child categories"):
        service.delete_category(home.id)


def test_category_in_use_cannot_be_deleted(db):
    categories = CategoryService(db)
    mugs = categories.create_category({"name": "Mugs"})
    ProductService(db).create_product({"name": "Mug", "sku": "M-1", "category_id": mugs.id})

    with pytest.raises(AppError) as exc_info:
        categories.delete_category(mugs.id)
    assert exc_info.value.status_code == 422


def test_stock_adjust_reserve_release(db, product, warehouse):
    service = InventoryService(db)
    blue = product.variants[1]

    service.adjust_stock(blue.id, warehouse.id, 10, reason="initial count")
    service.reserve(blue.id, 4)
    assert service.available_quantity(blue.id) == 6

    with pytest.raises(AppError) as exc_info:
        service.reserve(blue.id, 7)
    assert exc_info.value.details["available"] == 6

    service.release(blue.id, 4)
    assert service.available_quantity(blue.id) == 10


def test_negative_stock_needs_backorders(db, product, warehouse):
    service = InventoryService(db)
    blue = product.variants[1]

    with pytest.raises(AppError, match="Insufficient stock"):
        service.adjust_stock(blue.id, warehouse.id, -1)

    ProductService(db).update_variant(product.id, blue.id, {"allow_backorders": True})
    assert service.adjust_stock(blue.id, warehouse.id, -1).quantity == -1


def test_low_stock_and_default_warehouse(db, product, warehouse):
    service = InventoryService(db)
    outlet = service.create_warehouse({"code": "OUTLET", "name": "Outlet", "is_default": True})
    db.refresh(warehouse)
    assert warehouse.is_default is False
    assert service.get_default_warehouse().id == outlet.id

    service.adjust_stock(product.variants[1].id, outlet.id, 3)
    assert [item.warehouse.code for item in service.low_stock_items()] == ["OUTLET"]

    with pytest.raises(AppError, match="holds stock"):
        service.delete_warehouse(outlet.id)
