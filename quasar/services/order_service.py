"""
Order service: numbering, pricing, totals and status rules
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from quasar.core.config import get_settings
from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.core.metrics import order_status_transitions_total, orders_created_total
from quasar.core.utils import to_money, utcnow
from quasar.models.customer import Customer
from quasar.models.order import (Order, OrderItem, OrderSource,
                                 OrderStatus, PaymentStatus)
from quasar.repositories.base import BaseRepository
from quasar.services.delivery_method_service import DeliveryMethodService
from quasar.services.product_service import ProductService

logger = LoggingConfig.get_logger(__name__)

ORDER_NUMBER_PREFIX = "ORD"

# Orders that no longer count towards a customer's spend
_VOID_STATUSES = (OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value)

_UPDATABLE_FIELDS = (
    "customer_email", "customer_name", "customer_phone", "billing_address", "shipping_address",
    "payment_method_id", "delivery_method_id", "notes", "customer_notes", "internal_notes",
    "payment_status", "shipping_cost", "discount_amount", "tax_amount",
)


def next_sequence_number(prefix: str, last_number: Optional[str]) -> str:
    """`prefix` + four-digit sequence following `last_number` (0001 when there is none)"""
    sequence = 1
    if last_number and last_number.startswith(prefix):
        tail = last_number[len(prefix):]
        if tail.isdigit():
            sequence = int(tail) + 1
    return f"{prefix}{sequence:04d}"


def last_sequence_number(db: Session, column, prefix: str) -> Optional[str]:
    """Highest number in `column` starting with `prefix`; longer sequences sort after 9999"""
    row = db.query(column).filter(column.like(f"{prefix}%")).order_by(
        func.length(column).desc(), column.desc()
    ).first()
    return row[0] if row else None


class OrderService:
    """Service for creating orders and moving them through their lifecycle"""

    def __init__(self, db: Session):
        self.db = db
        self.orders = BaseRepository(db, Order)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_orders(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        customer_id: Optional[UUID] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Tuple[List[Order], int]:
        query = self.orders.query().options(selectinload(Order.items))
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Order.order_number.ilike(pattern),
                Order.customer_email.ilike(pattern),
                Order.customer_name.ilike(pattern),
            ))
        if status:
            query = query.filter(Order.status == status)
        if payment_status:
            query = query.filter(Order.payment_status == payment_status)
        if customer_id:
            query = query.filter(Order.customer_id == customer_id)
        if date_from:
            query = query.filter(Order.order_date >= date_from)
        if date_to:
            query = query.filter(Order.order_date <= date_to)
        return self.orders.paginate(query.order_by(Order.order_date.desc()), page, limit)

    def get_order(self, order_id: UUID) -> Order:
        order = self.orders.find_by_id(order_id)
        if not order:
            raise AppError.not_found(ModuleCode.ORDER, "Order", order_id)
        return order

    def get_by_number(self, order_number: str) -> Order:
        order = self.orders.query().filter(Order.order_number == order_number).first()
        if not order:
            raise AppError.not_found(ModuleCode.ORDER, "Order", order_number)
        return order

    def generate_order_number(self, now: Optional[datetime] = None) -> str:
        """ORD + YYMMDD + daily sequence, e.g. ORD2503150001"""
        prefix = f"{ORDER_NUMBER_PREFIX}{(now or utcnow()):%y%m%d}"
        return next_sequence_number(prefix, last_sequence_number(self.db, Order.order_number, prefix))

    def get_stats(self) -> Dict[str, Any]:
        counts = dict(
            self.db.query(Order.status, func.count(Order.id))
            .filter(Order.deleted_at.is_(None))
            .group_by(Order.status)
            .all()
        )
        paid = self.db.query(func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0)).filter(
            Order.deleted_at.is_(None),
            Order.payment_status == PaymentStatus.PAID.value,
        ).one()
        paid_count, revenue = paid[0], to_money(paid[1])
        return {
            "total_orders": sum(counts.values()),
            "by_status": {status.value: counts.get(status.value, 0) for status in OrderStatus},
            "paid_orders": paid_count,
            "total_revenue": revenue,
            "average_order_value": to_money(revenue / paid_count) if paid_count else Decimal("0.00"),
        }

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------

    def create_order(self, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> Order:
        """
        Create an order in PENDING state

        Items without `unit_price` are priced from the catalog. Totals:
        subtotal - discount + tax + shipping_cost.
        """
        items = data.get("items") or []
        if not items:
            raise AppError.validation(ModuleCode.ORDER, "Order must contain at least one item", OperationCode.CREATE)

        customer = None
        if data.get("customer_id"):
            customer = self.db.query(Customer).filter(
                Customer.id == data["customer_id"], Customer.deleted_at.is_(None)
            ).first()
            if not customer:
                raise AppError.not_found(ModuleCode.CUSTOMER, "Customer", data["customer_id"])

        order_items = [self._build_item(item) for item in items]

        shipping_cost = data.get("shipping_cost")
        if shipping_cost is None and data.get("delivery_method_id"):
            subtotal = sum((to_money(item.total_price) for item in order_items), Decimal("0.00"))
            quote = DeliveryMethodService(self.db).calculate_delivery(
                data["delivery_method_id"], subtotal, data.get("weight_kg")
            )
            shipping_cost = quote["delivery_cost"]

        order = Order(
            order_number=self.generate_order_number(),
            customer_id=customer.id if customer else None,
            customer_email=data.get("customer_email") or (customer.email if customer else None),
            customer_name=data.get("customer_name") or (customer.full_name if customer else None),
            customer_phone=data.get("customer_phone") or (customer.phone_number if customer else None),
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            source=data.get("source") or OrderSource.WEBSITE.value,
            currency=(data.get("currency") or get_settings().default_currency).upper(),
            shipping_cost=to_money(shipping_cost),
            billing_address=data.get("billing_address"),
            shipping_address=data.get("shipping_address"),
            payment_method_id=data.get("payment_method_id"),
            delivery_method_id=data.get("delivery_method_id"),
            notes=data.get("notes"),
            customer_notes=data.get("customer_notes"),
            internal_notes=data.get("internal_notes"),
            order_date=utcnow(),
            created_by=actor_id,
            updated_by=actor_id,
        )
        order.items = order_items
        self._recalculate_totals(order)

        try:
            self.db.add(order)
            self.db.flush()
            if customer:
                self.refresh_customer_aggregates(customer)
            self.db.commit()
            self.db.refresh(order)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating order: {e}", exc_info=True)
            raise

        orders_created_total.labels(source=order.source).inc()
        logger.info(
            f"Created order {order.order_number} ({len(order_items)} items, total {order.total_amount})",
            extra={"order_id": str(order.id)},
        )
        return order

    def update_order(self, order_id: UUID, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> Order:
        order = self.get_order(order_id)
        values = {key: data[key] for key in _UPDATABLE_FIELDS if key in data}
        for key in ("shipping_cost", "discount_amount", "tax_amount"):
            if key in values:
                values[key] = to_money(values[key])

        new_status = data.get("status")
        reason = data.get("reason")
        try:
            self.orders.update(order, values, actor_id)
            if {"shipping_cost", "discount_amount", "tax_amount"} & values.keys():
                order.total_amount = self._total(order)
            if new_status and new_status != order.status:
                self.apply_status(order, new_status, reason)
            if order.customer:
                self.refresh_customer_aggregates(order.customer)
            self.db.commit()
            self.db.refresh(order)
        except Exception:
            self.db.rollback()
            raise
        return order

    def update_status(self, order_id: UUID, status: str, reason: Optional[str] = None,
                      actor_id: Optional[UUID] = None) -> Order:
        return self.update_order(order_id, {"status": status, "reason": reason}, actor_id)

    def delete_order(self, order_id: UUID, actor_id: Optional[UUID] = None):
        order = self.get_order(order_id)
        self.orders.soft_delete(order, actor_id)
        if order.customer:
            self.refresh_customer_aggregates(order.customer)
        self.db.commit()
        logger.info(f"Deleted order {order.order_number}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def cancel_order(self, order_id: UUID, reason: Optional[str] = None, actor_id: Optional[UUID] = None) -> Order:
        order = self.get_order(order_id)
        if not order.can_cancel:
            raise AppError.business(ModuleCode.ORDER, f"Order in status {order.status} cannot be cancelled",
                                    OperationCode.CANCEL, status=order.status)
        return self.update_order(order_id, {"status": OrderStatus.CANCELLED.value, "reason": reason}, actor_id)

    def ship_order(self, order_id: UUID, actor_id: Optional[UUID] = None) -> Order:
        order = self.get_order(order_id)
        if not order.can_ship:
            raise AppError.business(ModuleCode.ORDER, "Only paid orders in PROCESSING can be shipped",
                                    OperationCode.PROCESS, status=order.status, payment_status=order.payment_status)
        return self.update_order(order_id, {"status": OrderStatus.SHIPPED.value}, actor_id)

    def refund_order(
        self,
        order_id: UUID,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
        actor_id: Optional[UUID] = None,
    ) -> Order:
        order = self.get_order(order_id)
        if not order.can_refund:
            raise AppError.business(ModuleCode.ORDER, "Only paid orders that are not refunded can be refunded",
                                    OperationCode.REFUND, payment_status=order.payment_status)
        refund_amount = to_money(amount if amount is not None else order.total_amount)
        if refund_amount <= 0 or refund_amount > to_money(order.total_amount):
            raise AppError.validation(ModuleCode.ORDER, "Refund amount must be between 0 and the order total",
                                      OperationCode.REFUND, amount=refund_amount)
        order.refund_amount = refund_amount
        return self.update_order(order_id, {"status": OrderStatus.REFUNDED.value, "reason": reason}, actor_id)

    def fulfill_order(self, order_id: UUID, actor_id: Optional[UUID] = None) -> Order:
        """Mark every item fully fulfilled and the order DELIVERED"""
        order = self.get_order(order_id)
        if order.status in _VOID_STATUSES or order.status == OrderStatus.RETURNED.value:
            raise AppError.business(ModuleCode.ORDER, f"Order in status {order.status} cannot be fulfilled",
                                    OperationCode.PROCESS, status=order.status)
        for item in order.items:
            item.fulfilled_quantity = item.quantity
        return self.update_order(order_id, {"status": OrderStatus.DELIVERED.value}, actor_id)

    def fulfill_item(self, order_id: UUID, item_id: UUID, quantity: int) -> OrderItem:
        item = self._get_item(order_id, item_id)
        if quantity <= 0 or item.fulfilled_quantity + quantity > item.quantity:
            raise AppError.business(
                ModuleCode.ORDER,
                f"Cannot fulfill {quantity}: {item.remaining_quantity} of {item.quantity} remaining",
                OperationCode.PROCESS,
            )
        item.fulfilled_quantity += quantity
        self.db.commit()
        self.db.refresh(item)
        return item

    def refund_item(self, order_id: UUID, item_id: UUID, quantity: int) -> OrderItem:
        item = self._get_item(order_id, item_id)
        if quantity <= 0 or item.refunded_quantity + quantity > item.quantity:
            raise AppError.business(
                ModuleCode.ORDER,
                f"Cannot refund {quantity}: {item.quantity - item.refunded_quantity} refundable",
                OperationCode.REFUND,
            )
        item.refunded_quantity += quantity
        self.db.commit()
        self.db.refresh(item)
        return item

    def refresh_customer_aggregates(self, customer: Customer):
        """Recompute total_orders / total_spent / last_order_at from the customer's orders"""
        self.db.flush()
        base = self.db.query(Order).filter(Order.customer_id == customer.id, Order.deleted_at.is_(None))
        customer.total_orders = base.count()
        spent = base.filter(Order.status.notin_(_VOID_STATUSES)).with_entities(
            func.coalesce(func.sum(Order.total_amount), 0)
        ).scalar()
        customer.total_spent = to_money(spent)
        customer.last_order_at = base.with_entities(func.max(Order.order_date)).scalar()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_item(self, item: Dict[str, Any]) -> OrderItem:
        quantity = int(item.get("quantity") or 0)
        if quantity <= 0:
            raise AppError.validation(ModuleCode.ORDER, "Item quantity must be positive", OperationCode.CREATE)

        unit_price = item.get("unit_price")
        product_name = item.get("product_name")
        product_sku = item.get("product_sku")
        variant_name = item.get("variant_name")
        variant_id = item.get("product_variant_id")
        attributes = item.get("product_attributes")

        if item.get("product_id") and (unit_price is None or not product_name):
            info = ProductService(self.db).get_price_info(item["product_id"], variant_id)
            if not info["is_active"] or info["price"] is None:
                raise AppError.conflict(
                    ModuleCode.PRODUCT,
                    f"Product {info['product_name']} is not available",
                    OperationCode.PURCHASE,
                    product_id=item["product_id"],
                )
            if unit_price is None:
                unit_price = info["price"]
            product_name = product_name or info["product_name"]
            product_sku = product_sku or info["product_sku"]
            variant_name = variant_name or info["variant_name"]
            variant_id = variant_id or info["variant_id"]
            attributes = attributes if attributes is not None else info["attributes"]

        if unit_price is None or not product_name:
            raise AppError.validation(ModuleCode.ORDER, "Item needs a product or a name and unit price",
                                      OperationCode.CREATE)

        unit_price = to_money(unit_price)
        return OrderItem(
            product_id=item.get("product_id"),
            product_variant_id=variant_id,
            product_name=product_name,
            product_sku=product_sku,
            variant_name=variant_name,
            quantity=quantity,
            unit_price=unit_price,
            total_price=to_money(unit_price * quantity),
            discount_amount=to_money(item.get("discount_amount")),
            tax_amount=to_money(item.get("tax_amount")),
            fulfilled_quantity=0,
            refunded_quantity=0,
            product_attributes=attributes,
        )

    def _recalculate_totals(self, order: Order):
        order.subtotal = to_money(sum((to_money(i.unit_price) * i.quantity for i in order.items), Decimal("0")))
        order.discount_amount = to_money(sum((to_money(i.discount_amount) for i in order.items), Decimal("0")))
        order.tax_amount = to_money(sum((to_money(i.tax_amount) for i in order.items), Decimal("0")))
        order.total_amount = self._total(order)

    @staticmethod
    def _total(order: Order) -> Decimal:
        total = (to_money(order.subtotal) - to_money(order.discount_amount)
                 + to_money(order.tax_amount) + to_money(order.shipping_cost))
        return max(to_money(total), Decimal("0.00"))

    def apply_status(self, order: Order, new_status: str, reason: Optional[str] = None):
        if new_status not in {status.value for status in OrderStatus}:
            raise AppError.validation(ModuleCode.ORDER, f"Invalid order status: {new_status}", OperationCode.UPDATE)

        now = utcnow()
        previous = order.status
        order.status = new_status

        if new_status == OrderStatus.CANCELLED.value:
            order.cancelled_at = now
            order.cancel_reason = reason
        elif new_status == OrderStatus.SHIPPED.value:
            order.shipped_date = order.shipped_date or now
        elif new_status == OrderStatus.DELIVERED.value:
            order.delivered_date = now
            order.shipped_date = order.shipped_date or now
        elif new_status == OrderStatus.REFUNDED.value:
            order.refunded_at = now
            order.refund_amount = order.refund_amount or order.total_amount
            order.refund_reason = reason
            order.payment_status = PaymentStatus.REFUNDED.value

        order_status_transitions_total.labels(from_status=previous, to_status=new_status).inc()
        logger.info(f"Order {order.order_number} status {previous} -> {new_status}")

    def _get_item(self, order_id: UUID, item_id: UUID) -> OrderItem:
        self.get_order(order_id)
        item = self.db.query(OrderItem).filter(OrderItem.id == item_id, OrderItem.order_id == order_id).first()
        if not item:
            raise AppError.not_found(ModuleCode.ORDER, "Order item", item_id)
        return item
