"""
Orders, order items, payment and delivery methods
"""
from enum import Enum

from sqlalchemy import (JSON, Boolean, CheckConstraint, Column, DateTime,
                        ForeignKey, Index, Integer, Numeric, String, Text, Uuid)
from sqlalchemy.orm import relationship

from quasar.core.database import Base
from quasar.core.utils import utcnow
from quasar.models.base import (AuditMixin, SoftDeleteMixin, TimestampMixin,
                                UUIDPrimaryKeyMixin)


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"


class OrderSource(str, Enum):
    WEBSITE = "WEBSITE"
    MOBILE_APP = "MOBILE_APP"
    PHONE = "PHONE"
    EMAIL = "EMAIL"
    IN_STORE = "IN_STORE"
    SOCIAL_MEDIA = "SOCIAL_MEDIA"
    MARKETPLACE = "MARKETPLACE"


def _in_list(column: str, enum_cls) -> str:
    return "{} IN ({})".format(column, ", ".join(f"'{member.value}'" for member in enum_cls))


ORDER_STATUS_CHECK = _in_list("status", OrderStatus)
PAYMENT_STATUS_CHECK = _in_list("payment_status", PaymentStatus)
ORDER_SOURCE_CHECK = _in_list("source", OrderSource)


class FeeType(str, Enum):
    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"


class DeliveryCostType(str, Enum):
    FIXED = "FIXED"
    WEIGHT_BASED = "WEIGHT_BASED"
    FREE = "FREE"


class PaymentMethod(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "payment_methods"

    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_default = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    # Fee charged on top of the order amount: a flat amount or a percentage of it
    processing_fee = Column(Numeric(12, 2), nullable=False, default=0)
    processing_fee_type = Column(String(20), nullable=False, default=FeeType.FIXED.value)
    min_amount = Column(Numeric(12, 2), nullable=True)
    max_amount = Column(Numeric(12, 2), nullable=True)


class DeliveryMethod(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "delivery_methods"

    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    # Flat cost, or cost per kg for WEIGHT_BASED methods
    price = Column(Numeric(12, 2), nullable=False, default=0)
    cost_calculation_type = Column(String(20), nullable=False, default=DeliveryCostType.FIXED.value)
    free_delivery_threshold = Column(Numeric(12, 2), nullable=True)
    weight_limit_kg = Column(Numeric(10, 3), nullable=True)
    estimated_days = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_default = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)


class Order(UUIDPrimaryKeyMixin, TimestampMixin, AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(ORDER_STATUS_CHECK, name="ck_orders_status"),
        CheckConstraint(PAYMENT_STATUS_CHECK, name="ck_orders_payment_status"),
        CheckConstraint(ORDER_SOURCE_CHECK, name="ck_orders_source"),
        CheckConstraint("subtotal >= 0", name="ck_orders_subtotal_non_negative"),
        CheckConstraint("tax_amount >= 0", name="ck_orders_tax_non_negative"),
        CheckConstraint("shipping_cost >= 0", name="ck_orders_shipping_non_negative"),
        CheckConstraint("discount_amount >= 0", name="ck_orders_discount_non_negative"),
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
        Index("ix_orders_customer_id", "customer_id"),
        Index("ix_orders_status", "status"),
        Index("ix_orders_order_date", "order_date"),
    )

    order_number = Column(String(50), unique=True, nullable=False)
    customer_id = Column(Uuid, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_name = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    source = Column(String(20), nullable=False, default=OrderSource.WEBSITE.value)
    currency = Column(String(3), nullable=False, default="USD")
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_cost = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    billing_address = Column(JSON, nullable=True)
    shipping_address = Column(JSON, nullable=True)
    payment_method_id = Column(Uuid, ForeignKey("payment_methods.id", ondelete="SET NULL"), nullable=True)
    delivery_method_id = Column(Uuid, ForeignKey("delivery_methods.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    customer_notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)
    order_date = Column(DateTime, nullable=False, default=utcnow)
    shipped_date = Column(DateTime, nullable=True)
    delivered_date = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(Text, nullable=True)
    refunded_at = Column(DateTime, nullable=True)
    refund_amount = Column(Numeric(12, 2), nullable=True)
    refund_reason = Column(Text, nullable=True)

    customer = relationship("Customer")
    payment_method = relationship("PaymentMethod")
    delivery_method = relationship("DeliveryMethod")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan",
                         order_by="OrderItem.created_at")
    fulfillments = relationship("OrderFulfillment", back_populates="order", cascade="all, delete-orphan")

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    @property
    def is_refunded(self) -> bool:
        return (self.status == OrderStatus.REFUNDED.value
                or self.payment_status == PaymentStatus.REFUNDED.value)

    @property
    def can_cancel(self) -> bool:
        return self.status in (OrderStatus.PENDING.value, OrderStatus.CONFIRMED.value)

    @property
    def can_ship(self) -> bool:
        return self.status == OrderStatus.PROCESSING.value and self.is_paid

    @property
    def can_refund(self) -> bool:
        return self.is_paid and not self.is_refunded

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


class OrderItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_order_items_unit_price_non_negative"),
        CheckConstraint("fulfilled_quantity >= 0", name="ck_order_items_fulfilled_non_negative"),
        CheckConstraint("refunded_quantity >= 0", name="ck_order_items_refunded_non_negative"),
    )

    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_variant_id = Column(Uuid, ForeignKey("product_variants.id", ondelete="SET NULL"), nullable=True)
    product_name = Column(String(255), nullable=False)
    product_sku = Column(String(100), nullable=True)
    variant_name = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    fulfilled_quantity = Column(Integer, nullable=False, default=0)
    refunded_quantity = Column(Integer, nullable=False, default=0)
    product_attributes = Column(JSON, nullable=True)

    order = relationship("Order", back_populates="items")

    @property
    def remaining_quantity(self) -> int:
        return self.quantity - self.fulfilled_quantity

    @property
    def is_fully_fulfilled(self) -> bool:
        return self.fulfilled_quantity >= self.quantity
