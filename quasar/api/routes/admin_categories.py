"""
Admin API routes for product categories
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.user import User
from quasar.services.category_service import CategoryService

router = APIRouter(prefix="/api/admin/categories", tags=["admin-categories"])


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    sort_order: int
    is_active: bool
    version: int


@router.get("")
async def get_category_tree(
    include_inactive: bool = True,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:product_category")),
):
    """Categories nested under their parents"""
    return ResponseService.success(CategoryService(db).get_tree(include_inactive))


@router.get("/{category_id}")
async def get_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:product_category")),
):
    return ResponseService.success(CategoryResponse.model_validate(CategoryService(db).get_category(category_id)))


@router.post("", status_code=201)
async def create_category(
    request: CategoryCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:product_category")),
):
    category = CategoryService(db).create_category(request.model_dump(), actor_id=user.id)
    return ResponseService.created(CategoryResponse.model_validate(category))


@router.put("/{category_id}")
async def update_category(
    category_id: UUID,
    request: CategoryUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:product_category")),
):
    category = CategoryService(db).update_category(category_id, request.model_dump(exclude_unset=True),
                                                   actor_id=user.id)
    return ResponseService.success(CategoryResponse.model_validate(category))


@router.delete("/{category_id}")
async def delete_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:product_category")),
):
    CategoryService(db).delete_category(category_id, actor_id=user.id)
    return ResponseService.success({"id": category_id, "deleted": True})
