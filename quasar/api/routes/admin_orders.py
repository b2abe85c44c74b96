"""
Admin API routes for orders
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.logging_config import LoggingConfig
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.order import OrderSource, OrderStatus, PaymentStatus
from quasar.models.user import User
from quasar.services.order_service import OrderService

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(prefix="/api/admin/orders", tags=["admin-orders"])


class OrderItemCreate(BaseModel):
    product_id: Optional[UUID] = None
    product_variant_id: Optional[UUID] = None
    product_name: Optional[str] = Field(None, max_length=255)
    product_sku: Optional[str] = Field(None, max_length=100)
    variant_name: Optional[str] = Field(None, max_length=255)
    quantity: int = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    product_attributes: Optional[Dict[str, Any]] = None


class OrderCreate(BaseModel):
    customer_id: Optional[UUID] = None
    customer_email: Optional[str] = Field(None, max_length=255)
    customer_name: Optional[str] = Field(None, max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=50)
    source: OrderSource = OrderSource.WEBSITE
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    shipping_cost: Optional[Decimal] = Field(None, ge=0)
    billing_address: Optional[Dict[str, Any]] = None
    shipping_address: Optional[Dict[str, Any]] = None
    payment_method_id: Optional[UUID] = None
    delivery_method_id: Optional[UUID] = None
    # Parcel weight for weight-based delivery pricing
    weight_kg: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None
    customer_notes: Optional[str] = None
    internal_notes: Optional[str] = None
    items: List[OrderItemCreate] = Field(..., min_length=1)


class OrderUpdate(BaseModel):
    customer_email: Optional[str] = Field(None, max_length=255)
    customer_name: Optional[str] = Field(None, max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=50)
    billing_address: Optional[Dict[str, Any]] = None
    shipping_address: Optional[Dict[str, Any]] = None
    payment_method_id: Optional[UUID] = None
    delivery_method_id: Optional[UUID] = None
    notes: Optional[str] = None
    customer_notes: Optional[str] = None
    internal_notes: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    status: Optional[OrderStatus] = None
    reason: Optional[str] = None
    shipping_cost: Optional[Decimal] = Field(None, ge=0)
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    tax_amount: Optional[Decimal] = Field(None, ge=0)


class StatusUpdate(BaseModel):
    status: OrderStatus
    reason: Optional[str] = None


class ReasonRequest(BaseModel):
    reason: Optional[str] = None


class RefundRequest(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    reason: Optional[str] = None


class QuantityRequest(BaseModel):
    quantity: int = Field(..., gt=0)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: Optional[UUID] = None
    product_variant_id: Optional[UUID] = None
    product_name: str
    product_sku: Optional[str] = None
    variant_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    fulfilled_quantity: int
    refunded_quantity: int
    product_attributes: Optional[Dict[str, Any]] = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    customer_id: Optional[UUID] = None
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    status: str
    payment_status: str
    source: str
    currency: str
    subtotal: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    billing_address: Optional[Dict[str, Any]] = None
    shipping_address: Optional[Dict[str, Any]] = None
    payment_method_id: Optional[UUID] = None
    delivery_method_id: Optional[UUID] = None
    notes: Optional[str] = None
    customer_notes: Optional[str] = None
    internal_notes: Optional[str] = None
    order_date: datetime
    shipped_date: Optional[datetime] = None
    delivered_date: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None
    refund_amount: Optional[Decimal] = None
    refund_reason: Optional[str] = None
    version: int
    items: List[OrderItemResponse] = []


def _order(order) -> OrderResponse:
    return OrderResponse.model_validate(order)


def _enum_values(data: dict) -> dict:
    return {key: getattr(value, "value", value) for key, value in data.items()}


@router.get("")
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
    customer_id: Optional[UUID] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:order")),
):
    """List orders with filters"""
    items, total = OrderService(db).list_orders(
        page=page,
        limit=limit,
        search=search,
        status=status.value if status else None,
        payment_status=payment_status.value if payment_status else None,
        customer_id=customer_id,
        date_from=date_from,
        date_to=date_to,
    )
    return ResponseService.list([_order(o) for o in items], total, page, limit)


@router.get("/stats")
async def order_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:order")),
):
    return ResponseService.success(OrderService(db).get_stats())


@router.get("/number/{order_number}")
async def get_order_by_number(
    order_number: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:order")),
):
    return ResponseService.success(_order(OrderService(db).get_by_number(order_number)))


@router.get("/{order_id}")
async def get_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:order")),
):
    return ResponseService.success(_order(OrderService(db).get_order(order_id)))


@router.post("", status_code=201)
async def create_order(
    request: OrderCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:order")),
):
    """Create an order; items without a unit price are priced from the catalog"""
    data = request.model_dump(exclude={"items"})
    data["source"] = request.source.value
    data["items"] = [item.model_dump() for item in request.items]
    order = OrderService(db).create_order(data, actor_id=user.id)
    return ResponseService.created(_order(order))


@router.put("/{order_id}")
async def update_order(
    order_id: UUID,
    request: OrderUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order")),
):
    data = _enum_values(request.model_dump(exclude_unset=True))
    order = OrderService(db).update_order(order_id, data, actor_id=user.id)
    return ResponseService.success(_order(order))


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: UUID,
    request: StatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order")),
):
    order = OrderService(db).update_status(order_id, request.status.value, request.reason, actor_id=user.id)
    return ResponseService.success(_order(order))


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: UUID,
    request: ReasonRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order")),
):
    order = OrderService(db).cancel_order(order_id, request.reason, actor_id=user.id)
    return ResponseService.success(_order(order))


@router.post("/{order_id}/ship")
async def ship_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order")),
):
    return ResponseService.success(_order(OrderService(db).ship_order(order_id, actor_id=user.id)))


@router.post("/{order_id}/refund")
async def refund_order(
    order_id: UUID,
    request: RefundRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order")),
):
    order = OrderService(db).refund_order(order_id, request.amount, request.reason, actor_id=user.id)
    return ResponseService.success(_order(order))


@router.post("/{order_id}/fulfill")
async def fulfill_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order")),
):
    """Mark every item fulfilled and the order delivered"""
    return ResponseService.success(_order(OrderService(db).fulfill_order(order_id, actor_id=user.id)))


@router.post("/{order_id}/items/{item_id}/fulfill")
async def fulfill_order_item(
    order_id: UUID,
    item_id: UUID,
    request: QuantityRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order")),
):
    item = OrderService(db).fulfill_item(order_id, item_id, request.quantity)
    return ResponseService.success(OrderItemResponse.model_validate(item))


@router.post("/{order_id}/items/{item_id}/refund")
async def refund_order_item(
    order_id: UUID,
    item_id: UUID,
    request: QuantityRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order")),
):
    item = OrderService(db).refund_item(order_id, item_id, request.quantity)
    return ResponseService.success(OrderItemResponse.model_validate(item))


@router.delete("/{order_id}")
async def delete_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:order")),
):
    OrderService(db).delete_order(order_id, actor_id=user.id)
    return ResponseService.success({"id": order_id, "deleted": True})
