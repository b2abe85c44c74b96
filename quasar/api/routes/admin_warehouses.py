"""
Admin API routes for warehouses and stock levels
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.user import User
from quasar.services.inventory_service import InventoryService

router = APIRouter(prefix="/api/admin/warehouses", tags=["admin-warehouses"])


class WarehouseCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = None
    is_active: bool = True
    is_default: bool = False


class WarehouseUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None


class StockAdjustment(BaseModel):
    product_variant_id: UUID
    delta: int
    reason: Optional[str] = Field(None, max_length=255)


class ReservationRequest(BaseModel):
    product_variant_id: UUID
    quantity: int = Field(..., gt=0)


class WarehouseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    address: Optional[str] = None
    is_active: bool
    is_default: bool


class StockResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_variant_id: UUID
    warehouse_id: UUID
    quantity: int
    reserved_quantity: int
    available_quantity: int
    low_stock_threshold: int
    is_low_stock: bool


@router.get("")
async def list_warehouses(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:warehouse")),
):
    items, total = InventoryService(db).list_warehouses(page, limit, is_active)
    return ResponseService.list([WarehouseResponse.model_validate(w) for w in items], total, page, limit)


@router.get("/low-stock")
async def low_stock(
    warehouse_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:warehouse")),
):
    """Stock rows whose available quantity is at or below their threshold"""
    items = InventoryService(db).low_stock_items(warehouse_id)
    return ResponseService.success([StockResponse.model_validate(item) for item in items])


@router.get("/stock/{variant_id}")
async def get_variant_stock(
    variant_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:warehouse")),
):
    service = InventoryService(db)
    return ResponseService.success({
        "product_variant_id": variant_id,
        "available_quantity": service.available_quantity(variant_id),
        "warehouses": [StockResponse.model_validate(item) for item in service.get_stock(variant_id)],
    })


@router.post("/stock/reserve")
async def reserve_stock(
    request: ReservationRequest,
    warehouse_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:warehouse")),
):
    item = InventoryService(db).reserve(request.product_variant_id, request.quantity, warehouse_id)
    return ResponseService.success(StockResponse.model_validate(item))


@router.post("/stock/release")
async def release_stock(
    request: ReservationRequest,
    warehouse_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:warehouse")),
):
    item = InventoryService(db).release(request.product_variant_id, request.quantity, warehouse_id)
    return ResponseService.success(StockResponse.model_validate(item))


@router.get("/{warehouse_id}")
async def get_warehouse(
    warehouse_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:warehouse")),
):
    return ResponseService.success(WarehouseResponse.model_validate(InventoryService(db).get_warehouse(warehouse_id)))


@router.post("", status_code=201)
async def create_warehouse(
    request: WarehouseCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:warehouse")),
):
    warehouse = InventoryService(db).create_warehouse(request.model_dump())
    return ResponseService.created(WarehouseResponse.model_validate(warehouse))


@router.put("/{warehouse_id}")
async def update_warehouse(
    warehouse_id: UUID,
    request: WarehouseUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:warehouse")),
):
    warehouse = InventoryService(db).update_warehouse(warehouse_id, request.model_dump(exclude_unset=True))
    return ResponseService.success(WarehouseResponse.model_validate(warehouse))


@router.delete("/{warehouse_id}")
async def delete_warehouse(
    warehouse_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:warehouse")),
):
    InventoryService(db).delete_warehouse(warehouse_id)
    return ResponseService.success({"id": warehouse_id, "deleted": True})


@router.post("/{warehouse_id}/stock")
async def adjust_stock(
    warehouse_id: UUID,
    request: StockAdjustment,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:warehouse")),
):
    """Add (or remove, with a negative delta) stock of a variant in this warehouse"""
    item = InventoryService(db).adjust_stock(request.product_variant_id, warehouse_id, request.delta, request.reason)
    return ResponseService.success(StockResponse.model_validate(item))
