"""
Admin API routes for products and their variants
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
from quasar.models.catalog import ProductStatus
from quasar.models.user import User
from quasar.services.product_service import ProductService

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(prefix="/api/admin/products", tags=["admin-products"])


class VariantCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0)
    compare_at_price: Optional[Decimal] = Field(None, ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    weight: Optional[Decimal] = Field(None, ge=0)
    image: Optional[str] = None
    is_active: bool = True
    allow_backorders: bool = False
    sort_order: Optional[int] = None


class VariantUpdate(BaseModel):
    sku: Optional[str] = Field(None, min_length=1, max_length=100)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[Decimal] = Field(None, ge=0)
    compare_at_price: Optional[Decimal] = Field(None, ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    weight: Optional[Decimal] = Field(None, ge=0)
    image: Optional[str] = None
    is_active: Optional[bool] = None
    allow_backorders: Optional[bool] = None
    sort_order: Optional[int] = None


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sku: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    status: ProductStatus = ProductStatus.DRAFT
    is_featured: bool = False
    category_id: Optional[UUID] = None
    supplier_id: Optional[UUID] = None
    attributes: Optional[Dict[str, Any]] = None
    variants: List[VariantCreate] = []


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    sku: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    status: Optional[ProductStatus] = None
    is_featured: Optional[bool] = None
    category_id: Optional[UUID] = None
    supplier_id: Optional[UUID] = None
    attributes: Optional[Dict[str, Any]] = None


class VariantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sku: str
    name: str
    price: Decimal
    compare_at_price: Optional[Decimal] = None
    cost_price: Optional[Decimal] = None
    weight: Optional[Decimal] = None
    image: Optional[str] = None
    is_active: bool
    allow_backorders: bool
    sort_order: int


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    sku: str
    description: Optional[str] = None
    status: str
    is_featured: bool
    category_id: Optional[UUID] = None
    supplier_id: Optional[UUID] = None
    attributes: Optional[Dict[str, Any]] = None
    version: int
    created_at: datetime
    updated_at: datetime
    variants: List[VariantResponse] = []


def _product(product) -> ProductResponse:
    return ProductResponse.model_validate(product)


@router.get("")
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    status: Optional[ProductStatus] = None,
    category_id: Optional[UUID] = None,
    is_featured: Optional[bool] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:product")),
):
    """List products with filters"""
    items, total = ProductService(db).list_products(
        page=page,
        limit=limit,
        search=search,
        status=status.value if status else None,
        category_id=category_id,
        is_featured=is_featured,
    )
    return ResponseService.list([_product(p) for p in items], total, page, limit)


@router.get("/{product_id}")
async def get_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:product")),
):
    return ResponseService.success(_product(ProductService(db).get_product(product_id)))


@router.get("/{product_id}/price")
async def get_product_price(
    product_id: UUID,
    variant_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:product")),
):
    """Current price used when the product is added to an order"""
    return ResponseService.success(ProductService(db).get_price_info(product_id, variant_id))


@router.post("", status_code=201)
async def create_product(
    request: ProductCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:product")),
):
    data = request.model_dump()
    data["status"] = request.status.value
    data["variants"] = [variant.model_dump(exclude_none=True) for variant in request.variants]
    product = ProductService(db).create_product(data, actor_id=user.id)
    return ResponseService.created(_product(product))


@router.put("/{product_id}")
async def update_product(
    product_id: UUID,
    request: ProductUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:product")),
):
    data = request.model_dump(exclude_unset=True)
    if request.status is not None:
        data["status"] = request.status.value
    product = ProductService(db).update_product(product_id, data, actor_id=user.id)
    return ResponseService.success(_product(product))


@router.delete("/{product_id}")
async def delete_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:product")),
):
    ProductService(db).delete_product(product_id, actor_id=user.id)
    return ResponseService.success({"id": product_id, "deleted": True})


@router.post("/{product_id}/variants", status_code=201)
async def add_variant(
    product_id: UUID,
    request: VariantCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:product")),
):
    variant = ProductService(db).add_variant(product_id, request.model_dump(exclude_none=True))
    return ResponseService.created(VariantResponse.model_validate(variant))


@router.put("/{product_id}/variants/{variant_id}")
async def update_variant(
    product_id: UUID,
    variant_id: UUID,
    request: VariantUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:product")),
):
    variant = ProductService(db).update_variant(product_id, variant_id, request.model_dump(exclude_unset=True))
    return ResponseService.success(VariantResponse.model_validate(variant))
