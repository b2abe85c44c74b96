"""
Admin API routes for order fulfillments and delivery tracking
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.fulfillment import FulfillmentPriority, FulfillmentStatus
from quasar.models.user import User
from quasar.services.fulfillment_service import FulfillmentService

router = APIRouter(prefix="/api/admin/fulfillments", tags=["admin-fulfillments"])


class FulfillmentItemRequest(BaseModel):
    order_item_id: UUID
    quantity: int = Field(..., gt=0)


class FulfillmentCreate(BaseModel):
    order_id: UUID
    items: List[FulfillmentItemRequest] = Field(..., min_length=1)
    shipping_provider_id: Optional[UUID] = None
    tracking_number: Optional[str] = Field(None, max_length=100)
    priority: FulfillmentPriority = FulfillmentPriority.NORMAL
    notes: Optional[str] = None


class TrackingRequest(BaseModel):
    tracking_number: str = Field(..., min_length=1, max_length=100)
    shipping_provider_id: Optional[UUID] = None


class TrackingEventRequest(BaseModel):
    status: str = Field(..., min_length=1, max_length=30)
    location: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    event_date: Optional[datetime] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class FulfillmentItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_item_id: UUID
    quantity: int


class TrackingEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: str
    location: Optional[str] = None
    description: Optional[str] = None
    event_date: datetime


class FulfillmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    fulfillment_number: str
    order_id: UUID
    shipping_provider_id: Optional[UUID] = None
    status: str
    priority: str
    tracking_number: Optional[str] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    notes: Optional[str] = None
    version: int
    items: List[FulfillmentItemResponse] = []
    tracking_events: List[TrackingEventResponse] = []


def _fulfillment(fulfillment) -> FulfillmentResponse:
    return FulfillmentResponse.model_validate(fulfillment)


@router.get("")
async def list_fulfillments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    order_id: Optional[UUID] = None,
    status: Optional[FulfillmentStatus] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:order_fulfillment")),
):
    items, total = FulfillmentService(db).list_fulfillments(
        page=page, limit=limit, order_id=order_id, status=status.value if status else None
    )
    return ResponseService.list([_fulfillment(f) for f in items], total, page, limit)


@router.get("/{fulfillment_id}")
async def get_fulfillment(
    fulfillment_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:order_fulfillment")),
):
    return ResponseService.success(_fulfillment(FulfillmentService(db).get_fulfillment(fulfillment_id)))


@router.post("", status_code=201)
async def create_fulfillment(
    request: FulfillmentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:order_fulfillment")),
):
    """Ship some or all remaining items of an order"""
    data = request.model_dump()
    data["priority"] = request.priority.value
    fulfillment = FulfillmentService(db).create_fulfillment(data, actor_id=user.id)
    return ResponseService.created(_fulfillment(fulfillment))


@router.post("/{fulfillment_id}/tracking")
async def add_tracking(
    fulfillment_id: UUID,
    request: TrackingRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order_fulfillment")),
):
    fulfillment = FulfillmentService(db).add_tracking(
        fulfillment_id, request.tracking_number, request.shipping_provider_id
    )
    return ResponseService.success(_fulfillment(fulfillment))


@router.post("/{fulfillment_id}/events", status_code=201)
async def add_tracking_event(
    fulfillment_id: UUID,
    request: TrackingEventRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order_fulfillment")),
):
    event = FulfillmentService(db).add_tracking_event(fulfillment_id, request.model_dump(exclude_none=True))
    return ResponseService.created(TrackingEventResponse.model_validate(event))


@router.post("/{fulfillment_id}/deliver")
async def mark_delivered(
    fulfillment_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order_fulfillment")),
):
    return ResponseService.success(_fulfillment(FulfillmentService(db).mark_delivered(fulfillment_id)))


@router.post("/{fulfillment_id}/cancel")
async def cancel_fulfillment(
    fulfillment_id: UUID,
    request: CancelRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:order_fulfillment")),
):
    fulfillment = FulfillmentService(db).cancel_fulfillment(fulfillment_id, request.reason)
    return ResponseService.success(_fulfillment(fulfillment))
