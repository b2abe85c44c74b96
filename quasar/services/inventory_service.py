"""
Warehouse and stock management
"""
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from quasar.core.errors import (AppError, ErrorLevelCode, ModuleCode,
                                OperationCode)
from quasar.core.logging_config import LoggingConfig
from quasar.models.catalog import ProductVariant
from quasar.models.inventory import InventoryItem, Warehouse
from quasar.repositories.base import BaseRepository

logger = LoggingConfig.get_logger(__name__)


def _stock_error(message: str, **details) -> AppError:
    return AppError(message, ModuleCode.INVENTORY, OperationCode.UPDATE, ErrorLevelCode.INVENTORY_ERROR, details)


class InventoryService:
    """Warehouses and per-warehouse stock levels of product variants"""

    def __init__(self, db: Session):
        self.db = db
        self.warehouses = BaseRepository(db, Warehouse)

    # Warehouses

    def list_warehouses(self, page: int = 1, limit: int = 20,
                        is_active: Optional[bool] = None) -> Tuple[List[Warehouse], int]:
        query = self.warehouses.query()
        if is_active is not None:
            query = query.filter(Warehouse.is_active == is_active)
        return self.warehouses.paginate(query.order_by(Warehouse.code), page, limit)

    def get_warehouse(self, warehouse_id: UUID) -> Warehouse:
        warehouse = self.warehouses.find_by_id(warehouse_id)
        if not warehouse:
            raise AppError.not_found(ModuleCode.INVENTORY, "Warehouse", warehouse_id)
        return warehouse

    def get_default_warehouse(self) -> Optional[Warehouse]:
        return self.db.query(Warehouse).filter(Warehouse.is_default.is_(True)).first()

    def create_warehouse(self, data: Dict[str, Any]) -> Warehouse:
        if self.warehouses.exists(code=data["code"]):
            raise AppError.conflict(ModuleCode.INVENTORY, f"Warehouse code '{data['code']}' already exists")
        if data.get("is_default"):
            self._clear_default()
        warehouse = self.warehouses.create(**data)
        self.db.commit()
        self.db.refresh(warehouse)
        logger.info(f"Created warehouse {warehouse.code}")
        return warehouse

    def update_warehouse(self, warehouse_id: UUID, data: Dict[str, Any]) -> Warehouse:
        warehouse = self.get_warehouse(warehouse_id)
        if "code" in data and data["code"] != warehouse.code and self.warehouses.exists(code=data["code"]):
            raise AppError.conflict(ModuleCode.INVENTORY, f"Warehouse code '{data['code']}' already exists",
                                    OperationCode.UPDATE)
        if data.get("is_default"):
            self._clear_default(exclude=warehouse.id)
        self.warehouses.update(warehouse, data)
        self.db.commit()
        self.db.refresh(warehouse)
        return warehouse

    def delete_warehouse(self, warehouse_id: UUID):
        warehouse = self.get_warehouse(warehouse_id)
        stocked = self.db.query(InventoryItem).filter(
            InventoryItem.warehouse_id == warehouse.id,
            InventoryItem.quantity > 0,
        ).count()
        if stocked:
            raise AppError.business(ModuleCode.INVENTORY, "Warehouse still holds stock", OperationCode.DELETE)
        self.warehouses.soft_delete(warehouse)
        self.db.commit()
        logger.info(f"Deleted warehouse {warehouse.code}")

    # Stock

    def get_stock(self, variant_id: UUID) -> List[InventoryItem]:
        return self.db.query(InventoryItem).options(joinedload(InventoryItem.warehouse)).filter(
            InventoryItem.product_variant_id == variant_id
        ).all()

    def available_quantity(self, variant_id: UUID) -> int:
        """Quantity minus reservations, summed over all warehouses"""
        value = self.db.query(
            func.coalesce(func.sum(InventoryItem.quantity - InventoryItem.reserved_quantity), 0)
        ).filter(InventoryItem.product_variant_id == variant_id).scalar()
        return int(value or 0)

    def adjust_stock(
        self,
        variant_id: UUID,
        warehouse_id: UUID,
        delta: int,
        reason: Optional[str] = None,
    ) -> InventoryItem:
        """Add `delta` (may be negative) to the stock of a variant in a warehouse"""
        variant = self._get_variant(variant_id)
        item = self._get_or_create_item(variant.id, warehouse_id)
        new_quantity = (item.quantity or 0) + delta
        if new_quantity < 0 and not variant.allow_backorders:
            raise _stock_error(
                f"Insufficient stock for {variant.sku}: have {item.quantity}, requested {-delta}",
                sku=variant.sku, available=item.quantity,
            )
        item.quantity = new_quantity
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Adjusted stock of {variant.sku} by {delta:+d} ({reason or 'no reason'})",
                    extra={"variant_id": str(variant.id), "warehouse_id": str(warehouse_id)})
        return item

    def reserve(self, variant_id: UUID, quantity: int, warehouse_id: Optional[UUID] = None) -> InventoryItem:
        if quantity <= 0:
            raise AppError.validation(ModuleCode.INVENTORY, "Quantity must be positive")
        variant = self._get_variant(variant_id)
        item = self._pick_item(variant.id, warehouse_id)
        if item.available_quantity < quantity and not variant.allow_backorders:
            raise _stock_error(
                f"Cannot reserve {quantity} of {variant.sku}: {item.available_quantity} available",
                sku=variant.sku, available=item.available_quantity,
            )
        item.reserved_quantity += quantity
        self.db.commit()
        return item

    def release(self, variant_id: UUID, quantity: int, warehouse_id: Optional[UUID] = None) -> InventoryItem:
        variant = self._get_variant(variant_id)
        query = self.db.query(InventoryItem).filter(
            InventoryItem.product_variant_id == variant.id,
            InventoryItem.reserved_quantity > 0,
        )
        if warehouse_id:
            query = query.filter(InventoryItem.warehouse_id == warehouse_id)
        item = query.order_by(InventoryItem.reserved_quantity.desc()).first()
        if not item:
            raise _stock_error(f"No reservation to release for {variant.sku}", sku=variant.sku)
        item.reserved_quantity = max(item.reserved_quantity - quantity, 0)
        self.db.commit()
        return item

    def low_stock_items(self, warehouse_id: Optional[UUID] = None) -> List[InventoryItem]:
        query = self.db.query(InventoryItem).options(
            joinedload(InventoryItem.variant), joinedload(InventoryItem.warehouse)
        ).filter(
            InventoryItem.quantity - InventoryItem.reserved_quantity <= InventoryItem.low_stock_threshold
        )
        if warehouse_id:
            query = query.filter(InventoryItem.warehouse_id == warehouse_id)
        return query.order_by(InventoryItem.quantity).all()

    def _get_variant(self, variant_id: UUID) -> ProductVariant:
        variant = self.db.query(ProductVariant).filter(ProductVariant.id == variant_id).first()
        if not variant:
            raise AppError.not_found(ModuleCode.PRODUCT, "Product variant", variant_id)
        return variant

    def _get_or_create_item(self, variant_id: UUID, warehouse_id: UUID) -> InventoryItem:
        self.get_warehouse(warehouse_id)
        item = self.db.query(InventoryItem).filter(
            InventoryItem.product_variant_id == variant_id,
            InventoryItem.warehouse_id == warehouse_id,
        ).first()
        if item is None:
            item = InventoryItem(product_variant_id=variant_id, warehouse_id=warehouse_id,
                                 quantity=0, reserved_quantity=0)
            self.db.add(item)
            self.db.flush()
        return item

    def _pick_item(self, variant_id: UUID, warehouse_id: Optional[UUID]) -> InventoryItem:
        if warehouse_id:
            return self._get_or_create_item(variant_id, warehouse_id)
        items = self.db.query(InventoryItem).filter(InventoryItem.product_variant_id == variant_id).all()
        if not items:
            default = self.get_default_warehouse()
            if default is None:
                raise _stock_error("No warehouse holds this variant", variant_id=str(variant_id))
            return self._get_or_create_item(variant_id, default.id)
        return max(items, key=lambda item: item.available_quantity)

    def _clear_default(self, exclude: Optional[UUID] = None):
        query = self.db.query(Warehouse).filter(Warehouse.is_default.is_(True))
        if exclude:
            query = query.filter(Warehouse.id != exclude)
        for warehouse in query.all():
            warehouse.is_default = False
