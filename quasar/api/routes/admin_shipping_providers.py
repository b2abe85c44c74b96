"""
Admin API routes for shipping providers
"""
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.user import User
from quasar.services.shipping_provider_service import ShippingProviderService

router = APIRouter(prefix="/api/admin/shipping-providers", tags=["admin-shipping-providers"])


class ShippingProviderCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    website: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    tracking_url_template: Optional[str] = Field(None, max_length=500)
    delivery_time_estimate: Optional[int] = Field(None, ge=0)
    contact_info: Optional[Dict[str, Any]] = None
    services: Optional[Dict[str, bool]] = None


class ShippingProviderUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    website: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    tracking_url_template: Optional[str] = Field(None, max_length=500)
    delivery_time_estimate: Optional[int] = Field(None, ge=0)
    contact_info: Optional[Dict[str, Any]] = None
    services: Optional[Dict[str, bool]] = None


class ShippingProviderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    website: Optional[str] = None
    description: Optional[str] = None
    tracking_url_template: Optional[str] = None
    delivery_time_estimate: Optional[int] = None
    contact_info: Optional[Dict[str, Any]] = None
    services: Optional[Dict[str, bool]] = None
    is_active: bool


@router.get("")
async def list_shipping_providers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:shipping_provider")),
):
    items, total = ShippingProviderService(db).list_providers(page, limit, is_active, search)
    return ResponseService.list([ShippingProviderResponse.model_validate(p) for p in items], total, page, limit)


@router.get("/stats")
async def shipping_provider_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:shipping_provider")),
):
    return ResponseService.success(ShippingProviderService(db).get_stats())


@router.get("/code/{code}")
async def get_shipping_provider_by_code(
    code: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:shipping_provider")),
):
    provider = ShippingProviderService(db).get_by_code(code)
    return ResponseService.success(ShippingProviderResponse.model_validate(provider))


@router.get("/{provider_id}")
async def get_shipping_provider(
    provider_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:shipping_provider")),
):
    provider = ShippingProviderService(db).get_provider(provider_id)
    return ResponseService.success(ShippingProviderResponse.model_validate(provider))


@router.get("/{provider_id}/tracking-url")
async def get_tracking_url(
    provider_id: UUID,
    tracking_number: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:shipping_provider")),
):
    url = ShippingProviderService(db).tracking_url(provider_id, tracking_number)
    return ResponseService.success({"tracking_number": tracking_number, "tracking_url": url})


@router.post("", status_code=201)
async def create_shipping_provider(
    request: ShippingProviderCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:shipping_provider")),
):
    provider = ShippingProviderService(db).create_provider(request.model_dump())
    return ResponseService.created(ShippingProviderResponse.model_validate(provider))


@router.put("/{provider_id}")
async def update_shipping_provider(
    provider_id: UUID,
    request: ShippingProviderUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:shipping_provider")),
):
    provider = ShippingProviderService(db).update_provider(provider_id, request.model_dump(exclude_unset=True))
    return ResponseService.success(ShippingProviderResponse.model_validate(provider))


@router.post("/{provider_id}/activate")
async def activate_shipping_provider(
    provider_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:shipping_provider")),
):
    provider = ShippingProviderService(db).set_active(provider_id, True)
    return ResponseService.success(ShippingProviderResponse.model_validate(provider))


@router.post("/{provider_id}/deactivate")
async def deactivate_shipping_provider(
    provider_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:shipping_provider")),
):
    provider = ShippingProviderService(db).set_active(provider_id, False)
    return ResponseService.success(ShippingProviderResponse.model_validate(provider))


@router.delete("/{provider_id}")
async def delete_shipping_provider(
    provider_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:shipping_provider")),
):
    ShippingProviderService(db).delete_provider(provider_id)
    return ResponseService.success({"id": provider_id, "deleted": True})
