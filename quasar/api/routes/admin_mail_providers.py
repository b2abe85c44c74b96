"""
Admin API routes for mail providers
"""
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.mail import MailProviderType
from quasar.models.user import User
from quasar.services.mail_service import MailProviderService

router = APIRouter(prefix="/api/admin/mail-providers", tags=["admin-mail-providers"])


class ProviderCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    provider_type: MailProviderType = MailProviderType.SMTP
    host: Optional[str] = Field(None, max_length=255)
    port: Optional[int] = Field(None, gt=0, le=65535)
    username: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, max_length=255)
    from_email: EmailStr
    from_name: Optional[str] = Field(None, max_length=255)
    is_active: bool = True
    is_default: bool = False
    config: Optional[Dict[str, Any]] = None


class ProviderUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    provider_type: Optional[MailProviderType] = None
    host: Optional[str] = Field(None, max_length=255)
    port: Optional[int] = Field(None, gt=0, le=65535)
    username: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, max_length=255)
    from_email: Optional[EmailStr] = None
    from_name: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    config: Optional[Dict[str, Any]] = None


class ProviderResponse(BaseModel):
    """Provider without its password"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    provider_type: str
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    from_email: str
    from_name: Optional[str] = None
    is_active: bool
    is_default: bool
    config: Optional[Dict[str, Any]] = None


@router.get("")
async def list_providers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:mail_provider")),
):
    items, total = MailProviderService(db).list_providers(page=page, limit=limit, is_active=is_active)
    return ResponseService.list([ProviderResponse.model_validate(p) for p in items], total, page, limit)


@router.get("/{provider_id}")
async def get_provider(
    provider_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:mail_provider")),
):
    return ResponseService.success(ProviderResponse.model_validate(MailProviderService(db).get_provider(provider_id)))


@router.post("", status_code=201)
async def create_provider(
    request: ProviderCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:mail_provider")),
):
    """Create a provider; the first one becomes the default"""
    data = request.model_dump()
    data["provider_type"] = request.provider_type.value
    provider = MailProviderService(db).create_provider(data)
    return ResponseService.created(ProviderResponse.model_validate(provider))


@router.put("/{provider_id}")
async def update_provider(
    provider_id: UUID,
    request: ProviderUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:mail_provider")),
):
    data = request.model_dump(exclude_unset=True)
    if request.provider_type is not None:
        data["provider_type"] = request.provider_type.value
    provider = MailProviderService(db).update_provider(provider_id, data)
    return ResponseService.success(ProviderResponse.model_validate(provider))


@router.post("/{provider_id}/default")
async def set_default_provider(
    provider_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:mail_provider")),
):
    provider = MailProviderService(db).set_default(provider_id)
    return ResponseService.success(ProviderResponse.model_validate(provider))


@router.delete("/{provider_id}")
async def delete_provider(
    provider_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:mail_provider")),
):
    MailProviderService(db).delete_provider(provider_id)
    return ResponseService.success({"id": provider_id, "deleted": True})
