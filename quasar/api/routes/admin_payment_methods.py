"""
Admin API routes for payment methods
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
from quasar.models.order import FeeType
from quasar.models.user import User
from quasar.services.payment_method_service import PaymentMethodService

router = APIRouter(prefix="/api/admin/payment-methods", tags=["admin-payment-methods"])


class PaymentMethodCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: bool = True
    is_default: bool = False
    sort_order: Optional[int] = Field(None, ge=0)
    processing_fee: Decimal = Field(Decimal("0"), ge=0)
    processing_fee_type: FeeType = FeeType.FIXED
    min_amount: Optional[Decimal] = Field(None, ge=0)
    max_amount: Optional[Decimal] = Field(None, ge=0)


class PaymentMethodUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)
    processing_fee: Optional[Decimal] = Field(None, ge=0)
    processing_fee_type: Optional[FeeType] = None
    min_amount: Optional[Decimal] = Field(None, ge=0)
    max_amount: Optional[Decimal] = Field(None, ge=0)


class SortOrderEntry(BaseModel):
    id: UUID
    sort_order: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    items: List[SortOrderEntry] = Field(..., min_length=1)


class PaymentCalculationRequest(BaseModel):
    amount: Decimal = Field(..., ge=0)


class PaymentMethodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    description: Optional[str] = None
    is_active: bool
    is_default: bool
    sort_order: int
    processing_fee: Decimal
    processing_fee_type: str
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None


def _payload(request: BaseModel, **kwargs):
    data = request.model_dump(**kwargs)
    if isinstance(data.get("processing_fee_type"), FeeType):
        data["processing_fee_type"] = data["processing_fee_type"].value
    return data


@router.get("")
async def list_payment_methods(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:payment_method")),
):
    items, total = PaymentMethodService(db).list_methods(page, limit, is_active, search)
    return ResponseService.list([PaymentMethodResponse.model_validate(m) for m in items], total, page, limit)


@router.get("/stats")
async def payment_method_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:payment_method")),
):
    return ResponseService.success(PaymentMethodService(db).get_stats())


@router.post("/reorder")
async def reorder_payment_methods(
    request: ReorderRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:payment_method")),
):
    methods = PaymentMethodService(db).reorder([entry.model_dump() for entry in request.items])
    return ResponseService.success([PaymentMethodResponse.model_validate(m) for m in methods])


@router.get("/{method_id}")
async def get_payment_method(
    method_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:payment_method")),
):
    return ResponseService.success(PaymentMethodResponse.model_validate(PaymentMethodService(db).get_method(method_id)))


@router.post("", status_code=201)
async def create_payment_method(
    request: PaymentMethodCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:payment_method")),
):
    method = PaymentMethodService(db).create_method(_payload(request))
    return ResponseService.created(PaymentMethodResponse.model_validate(method))


@router.put("/{method_id}")
async def update_payment_method(
    method_id: UUID,
    request: PaymentMethodUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:payment_method")),
):
    method = PaymentMethodService(db).update_method(method_id, _payload(request, exclude_unset=True))
    return ResponseService.success(PaymentMethodResponse.model_validate(method))


@router.delete("/{method_id}")
async def delete_payment_method(
    method_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:payment_method")),
):
    PaymentMethodService(db).delete_method(method_id)
    return ResponseService.success({"id": method_id, "deleted": True})


@router.post("/{method_id}/default")
async def set_default_payment_method(
    method_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:payment_method")),
):
    method = PaymentMethodService(db).set_default(method_id)
    return ResponseService.success(PaymentMethodResponse.model_validate(method))


@router.post("/{method_id}/toggle-active")
async def toggle_payment_method(
    method_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:payment_method")),
):
    method = PaymentMethodService(db).toggle_active(method_id)
    return ResponseService.success(PaymentMethodResponse.model_validate(method))


@router.post("/{method_id}/calculate")
async def calculate_payment(
    method_id: UUID,
    request: PaymentCalculationRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:payment_method")),
):
    """Processing fee and total for paying an amount with this method"""
    return ResponseService.success(PaymentMethodService(db).calculate_payment(method_id, request.amount))
