"""
Admin API routes for delivery methods and delivery quotes
"""
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.order import DeliveryCostType
from quasar.models.user import User
from quasar.services.delivery_method_service import DeliveryMethodService

router = APIRouter(prefix="/api/admin/delivery-methods", tags=["admin-delivery-methods"])


class DeliveryMethodCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(Decimal("0"), ge=0)
    cost_calculation_type: DeliveryCostType = DeliveryCostType.FIXED
    free_delivery_threshold: Optional[Decimal] = Field(None, ge=0)
    weight_limit_kg: Optional[Decimal] = Field(None, gt=0)
    estimated_days: Optional[int] = Field(None, ge=0)
    is_active: bool = True
    is_default: bool = False
    sort_order: Optional[int] = Field(None, ge=0)


class DeliveryMethodUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    cost_calculation_type: Optional[DeliveryCostType] = None
    free_delivery_threshold: Optional[Decimal] = Field(None, ge=0)
    weight_limit_kg: Optional[Decimal] = Field(None, gt=0)
    estimated_days: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)


class SortOrderEntry(BaseModel):
    id: UUID
    sort_order: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    items: List[SortOrderEntry] = Field(..., min_length=1)


class DeliveryQuoteRequest(BaseModel):
    order_amount: Decimal = Field(..., ge=0)
    weight_kg: Optional[Decimal] = Field(None, ge=0)


class DeliveryMethodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    description: Optional[str] = None
    price: Decimal
    cost_calculation_type: str
    free_delivery_threshold: Optional[Decimal] = None
    weight_limit_kg: Optional[Decimal] = None
    estimated_days: Optional[int] = None
    is_active: bool
    is_default: bool
    sort_order: int


def _payload(request: BaseModel, **kwargs):
    data = request.model_dump(**kwargs)
    if isinstance(data.get("cost_calculation_type"), DeliveryCostType):
        data["cost_calculation_type"] = data["cost_calculation_type"].value
    return data


@router.get("")
async def list_delivery_methods(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:delivery_method")),
):
    items, total = DeliveryMethodService(db).list_methods(page, limit, is_active, search)
    return ResponseService.list([DeliveryMethodResponse.model_validate(m) for m in items], total, page, limit)


@router.get("/stats")
async def delivery_method_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:delivery_method")),
):
    return ResponseService.success(DeliveryMethodService(db).get_stats())


@router.post("/quotes")
async def delivery_quotes(
    request: DeliveryQuoteRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:delivery_method")),
):
    """Cost of every active method for an order, cheapest available first"""
    return ResponseService.success(DeliveryMethodService(db).get_quotes(request.order_amount, request.weight_kg))


@router.post("/reorder")
async def reorder_delivery_methods(
    request: ReorderRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:delivery_method")),
):
    methods = DeliveryMethodService(db).reorder([entry.model_dump() for entry in request.items])
    return ResponseService.success([DeliveryMethodResponse.model_validate(m) for m in methods])


@router.get("/{method_id}")
async def get_delivery_method(
    method_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:delivery_method")),
):
    return ResponseService.success(
        DeliveryMethodResponse.model_validate(DeliveryMethodService(db).get_method(method_id))
    )


@router.post("", status_code=201)
async def create_delivery_method(
    request: DeliveryMethodCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:delivery_method")),
):
    method = DeliveryMethodService(db).create_method(_payload(request))
    return ResponseService.created(DeliveryMethodResponse.model_validate(method))


@router.put("/{method_id}")
async def update_delivery_method(
    method_id: UUID,
    request: DeliveryMethodUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:delivery_method")),
):
    method = DeliveryMethodService(db).update_method(method_id, _payload(request, exclude_unset=True))
    return ResponseService.success(DeliveryMethodResponse.model_validate(method))


@router.delete("/{method_id}")
async def delete_delivery_method(
    method_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:delivery_method")),
):
    DeliveryMethodService(db).delete_method(method_id)
    return ResponseService.success({"id": method_id, "deleted": True})


@router.post("/{method_id}/default")
async def set_default_delivery_method(
    method_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:delivery_method")),
):
    method = DeliveryMethodService(db).set_default(method_id)
    return ResponseService.success(DeliveryMethodResponse.model_validate(method))


@router.post("/{method_id}/toggle-active")
async def toggle_delivery_method(
    method_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:delivery_method")),
):
    method = DeliveryMethodService(db).toggle_active(method_id)
    return ResponseService.success(DeliveryMethodResponse.model_validate(method))


@router.post("/{method_id}/calculate")
async def calculate_delivery(
    method_id: UUID,
    request: DeliveryQuoteRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:delivery_method")),
):
    quote = DeliveryMethodService(db).calculate_delivery(method_id, request.order_amount, request.weight_kg)
    return ResponseService.success(quote)
