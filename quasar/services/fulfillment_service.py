"""
Order fulfillment service: shipments, tracking and order status derivation
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.core.utils import utcnow
from quasar.models.fulfillment import (SHIPPED_STATUSES, DeliveryTracking,
                                       FulfillmentItem, FulfillmentStatus,
                                       OrderFulfillment, ShippingProvider)
from quasar.models.order import Order, OrderItem, OrderStatus
from quasar.repositories.base import BaseRepository
from quasar.services.order_service import (OrderService, last_sequence_number,
                                           next_sequence_number)
from quasar.services.shipping_provider_service import ShippingProviderService

logger = LoggingConfig.get_logger(__name__)

FULFILLMENT_NUMBER_PREFIX = "FUL"

# Order states fulfillment never moves an order out of
_TERMINAL_ORDER_STATUSES = (
    OrderStatus.CANCELLED.value,
    OrderStatus.REFUNDED.value,
    OrderStatus.RETURNED.value,
)


class FulfillmentService:

    def __init__(self, db: Session):
        self.db = db
        self.fulfillments = BaseRepository(db, OrderFulfillment)

    def list_fulfillments(
        self,
        page: int = 1,
        limit: int = 20,
        order_id: Optional[UUID] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[OrderFulfillment], int]:
        query = self.fulfillments.query().options(selectinload(OrderFulfillment.items))
        if order_id:
            query = query.filter(OrderFulfillment.order_id == order_id)
        if status:
            query = query.filter(OrderFulfillment.status == status)
        return self.fulfillments.paginate(query.order_by(OrderFulfillment.created_at.desc()), page, limit)

    def get_fulfillment(self, fulfillment_id: UUID) -> OrderFulfillment:
        fulfillment = self.fulfillments.find_by_id(fulfillment_id)
        if not fulfillment:
            raise AppError.not_found(ModuleCode.FULFILLMENT, "Fulfillment", fulfillment_id)
        return fulfillment

    def generate_fulfillment_number(self, now: Optional[datetime] = None) -> str:
        """FUL + YYMMDD + daily sequence"""
        prefix = f"{FULFILLMENT_NUMBER_PREFIX}{(now or utcnow()):%y%m%d}"
        last = last_sequence_number(self.db, OrderFulfillment.fulfillment_number, prefix)
        return next_sequence_number(prefix, last)

    def create_fulfillment(self, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> OrderFulfillment:
        """
        Create a fulfillment for some or all of an order's items

        Each item must belong to the order and may not exceed its unfulfilled quantity.
        """
        order = OrderService(self.db).get_order(data["order_id"])
        if order.status in _TERMINAL_ORDER_STATUSES:
            raise AppError.business(ModuleCode.FULFILLMENT, f"Order in status {order.status} cannot be fulfilled",
                                    OperationCode.CREATE, status=order.status)

        requested = data.get("items") or []
        if not requested:
            raise AppError.validation(ModuleCode.FULFILLMENT, "Fulfillment must contain at least one item",
                                      OperationCode.CREATE)

        order_items = {item.id: item for item in order.items}
        pending: Dict[UUID, int] = {}
        for entry in requested:
            order_item: Optional[OrderItem] = order_items.get(entry["order_item_id"])
            if order_item is None:
                raise AppError.validation(ModuleCode.FULFILLMENT,
                                          f"Item {entry['order_item_id']} does not belong to order {order.order_number}",
                                          OperationCode.CREATE)
            quantity = int(entry["quantity"])
            # Repeated lines for one item count against the same remaining quantity
            total = pending.get(order_item.id, 0) + quantity
            if quantity <= 0 or total > order_item.remaining_quantity:
                raise AppError.business(
                    ModuleCode.FULFILLMENT,
                    f"Cannot fulfill {quantity} of {order_item.product_name}: "
                    f"{order_item.remaining_quantity - pending.get(order_item.id, 0)} remaining",
                    OperationCode.CREATE,
                    order_item_id=str(order_item.id),
                )
            pending[order_item.id] = total

        if data.get("shipping_provider_id"):
            self._get_provider(data["shipping_provider_id"])

        # Nothing is touched until every line and the provider have been validated
        fulfillment_items = []
        for order_item_id, quantity in pending.items():
            order_items[order_item_id].fulfilled_quantity += quantity
            fulfillment_items.append(FulfillmentItem(order_item_id=order_item_id, quantity=quantity))

        fulfillment = OrderFulfillment(
            fulfillment_number=self.generate_fulfillment_number(),
            order=order,
            shipping_provider_id=data.get("shipping_provider_id"),
            status=FulfillmentStatus.PENDING.value,
            priority=data.get("priority") or "NORMAL",
            notes=data.get("notes"),
            created_by=actor_id,
            updated_by=actor_id,
        )
        fulfillment.items = fulfillment_items
        try:
            self.db.add(fulfillment)
            self.db.flush()
            if data.get("tracking_number"):
                self._set_tracking(fulfillment, data["tracking_number"])
            self.sync_order_status(order)
            self.db.commit()
            self.db.refresh(fulfillment)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating fulfillment for order {order.order_number}: {e}", exc_info=True)
            raise
        logger.info(f"Created fulfillment {fulfillment.fulfillment_number} for order {order.order_number}")
        return fulfillment

    def add_tracking(self, fulfillment_id: UUID, tracking_number: str,
                     shipping_provider_id: Optional[UUID] = None) -> OrderFulfillment:
        fulfillment = self._get_open(fulfillment_id)
        if shipping_provider_id:
            self._get_provider(shipping_provider_id)
            fulfillment.shipping_provider_id = shipping_provider_id
        self._set_tracking(fulfillment, tracking_number)
        return self._save(fulfillment)

    def add_tracking_event(self, fulfillment_id: UUID, data: Dict[str, Any]) -> DeliveryTracking:
        fulfillment = self._get_open(fulfillment_id)
        event = DeliveryTracking(
            fulfillment_id=fulfillment.id,
            status=data["status"],
            location=data.get("location"),
            description=data.get("description"),
            event_date=data.get("event_date") or utcnow(),
        )
        self.db.add(event)
        if data["status"] in {s.value for s in FulfillmentStatus} and data["status"] != fulfillment.status:
            self._move(fulfillment, data["status"])
        self._save(fulfillment)
        self.db.refresh(event)
        return event

    def mark_delivered(self, fulfillment_id: UUID) -> OrderFulfillment:
        fulfillment = self._get_open(fulfillment_id)
        self._move(fulfillment, FulfillmentStatus.DELIVERED.value)
        return self._save(fulfillment)

    def cancel_fulfillment(self, fulfillment_id: UUID, reason: Optional[str] = None) -> OrderFulfillment:
        """Cancel and return the fulfilled quantities to the order items"""
        fulfillment = self.get_fulfillment(fulfillment_id)
        if fulfillment.status == FulfillmentStatus.DELIVERED.value:
            raise AppError.business(ModuleCode.FULFILLMENT, "Delivered fulfillments cannot be cancelled",
                                    OperationCode.CANCEL)
        if fulfillment.status == FulfillmentStatus.CANCELLED.value:
            return fulfillment
        for item in fulfillment.items:
            item.order_item.fulfilled_quantity = max(item.order_item.fulfilled_quantity - item.quantity, 0)
        fulfillment.status = FulfillmentStatus.CANCELLED.value
        fulfillment.cancelled_at = utcnow()
        if reason:
            fulfillment.notes = f"{fulfillment.notes}\n{reason}" if fulfillment.notes else reason
        return self._save(fulfillment)

    def sync_order_status(self, order: Order):
        """
        Derive the order status from its fulfillments

        All items fully fulfilled and every active fulfillment delivered ->
        DELIVERED; otherwise any shipped fulfillment -> SHIPPED.
        """
        if order.status in _TERMINAL_ORDER_STATUSES:
            return
        self.db.flush()
        active = [f for f in order.fulfillments if f.is_active]
        all_items_done = bool(order.items) and all(item.is_fully_fulfilled for item in order.items)
        all_delivered = bool(active) and all(f.status == FulfillmentStatus.DELIVERED.value for f in active)
        any_shipped = any(f.status in SHIPPED_STATUSES or f.status == FulfillmentStatus.DELIVERED.value
                          for f in active)

        target = None
        if all_items_done and all_delivered:
            target = OrderStatus.DELIVERED.value
        elif any_shipped:
            target = OrderStatus.SHIPPED.value
        if target and target != order.status:
            OrderService(self.db).apply_status(order, target)

    def _set_tracking(self, fulfillment: OrderFulfillment, tracking_number: str):
        fulfillment.tracking_number = tracking_number
        if fulfillment.status in (FulfillmentStatus.PENDING.value, FulfillmentStatus.PROCESSING.value):
            self._move(fulfillment, FulfillmentStatus.SHIPPED.value)

    def _move(self, fulfillment: OrderFulfillment, status: str):
        now = utcnow()
        fulfillment.status = status
        if status in SHIPPED_STATUSES:
            fulfillment.shipped_at = fulfillment.shipped_at or now
        elif status == FulfillmentStatus.DELIVERED.value:
            fulfillment.shipped_at = fulfillment.shipped_at or now
            fulfillment.delivered_at = now
        logger.info(f"Fulfillment {fulfillment.fulfillment_number} -> {status}")

    def _save(self, fulfillment: OrderFulfillment) -> OrderFulfillment:
        fulfillment.version = (fulfillment.version or 0) + 1
        try:
            self.sync_order_status(fulfillment.order)
            self.db.commit()
            self.db.refresh(fulfillment)
        except Exception:
            self.db.rollback()
            raise
        return fulfillment

    def _get_open(self, fulfillment_id: UUID) -> OrderFulfillment:
        fulfillment = self.get_fulfillment(fulfillment_id)
        if fulfillment.status == FulfillmentStatus.CANCELLED.value:
            raise AppError.business(ModuleCode.FULFILLMENT, "Fulfillment is cancelled", OperationCode.UPDATE)
        return fulfillment

    def _get_provider(self, provider_id: UUID) -> ShippingProvider:
        provider = ShippingProviderService(self.db).get_provider(provider_id)
        if not provider.is_active:
            raise AppError.business(ModuleCode.FULFILLMENT, f"Shipping provider {provider.code} is not active",
                                    OperationCode.UPDATE)
        return provider
