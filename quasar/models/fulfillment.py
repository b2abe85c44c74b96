"""
Shipping providers, fulfillments and delivery tracking
"""
from enum import Enum

from sqlalchemy import (JSON, Boolean, CheckConstraint, Column, DateTime,
                        ForeignKey, Integer, String, Text, Uuid, func)
from sqlalchemy.orm import relationship

from quasar.core.database import Base
from quasar.core.utils import utcnow
from quasar.models.base import (AuditMixin, TimestampMixin,
                                UUIDPrimaryKeyMixin)


class FulfillmentStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"


class FulfillmentPriority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


SHIPPED_STATUSES = (
    FulfillmentStatus.SHIPPED.value,
    FulfillmentStatus.IN_TRANSIT.value,
    FulfillmentStatus.OUT_FOR_DELIVERY.value,
)

DEFAULT_PROVIDER_SERVICES = {
    "domestic": True,
    "international": False,
    "express": False,
    "standard": True,
    "economy": False,
    "tracking": True,
    "insurance": False,
    "signature": False,
}


class ShippingProvider(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "shipping_providers"

    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    website = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    # e.g. https://track.example.com/{tracking_number}
    tracking_url_template = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    # Typical days from hand-over to delivery
    delivery_time_estimate = Column(Integer, nullable=True)
    contact_info = Column(JSON, nullable=True)
    # Offered service flags, see DEFAULT_PROVIDER_SERVICES
    services = Column(JSON, nullable=True)

    def tracking_url(self, tracking_number: str):
        if not self.tracking_url_template or not tracking_number:
            return None
        return self.tracking_url_template.replace("{tracking_number}", tracking_number)


class OrderFulfillment(UUIDPrimaryKeyMixin, TimestampMixin, AuditMixin, Base):
    __tablename__ = "order_fulfillments"

    fulfillment_number = Column(String(50), unique=True, nullable=False)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    shipping_provider_id = Column(Uuid, ForeignKey("shipping_providers.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(20), nullable=False, default=FulfillmentStatus.PENDING.value)
    priority = Column(String(10), nullable=False, default=FulfillmentPriority.NORMAL.value)
    tracking_number = Column(String(100), nullable=True)
    shipped_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    order = relationship("Order", back_populates="fulfillments")
    shipping_provider = relationship("ShippingProvider")
    items = relationship("FulfillmentItem", back_populates="fulfillment", cascade="all, delete-orphan")
    tracking_events = relationship(
        "DeliveryTracking",
        back_populates="fulfillment",
        cascade="all, delete-orphan",
        order_by="DeliveryTracking.event_date",
    )

    @property
    def is_active(self) -> bool:
        return self.status != FulfillmentStatus.CANCELLED.value


class FulfillmentItem(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "fulfillment_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_fulfillment_items_quantity_positive"),
    )

    fulfillment_id = Column(Uuid, ForeignKey("order_fulfillments.id", ondelete="CASCADE"), nullable=False, index=True)
    order_item_id = Column(Uuid, ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.current_timestamp())

    fulfillment = relationship("OrderFulfillment", back_populates="items")
    order_item = relationship("OrderItem")


class DeliveryTracking(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "delivery_tracking"

    fulfillment_id = Column(Uuid, ForeignKey("order_fulfillments.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(30), nullable=False)
    location = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    event_date = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.current_timestamp())

    fulfillment = relationship("OrderFulfillment", back_populates="tracking_events")
