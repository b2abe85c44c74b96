"""
Admin API routes for mail templates
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.mail import MailTemplateType
from quasar.models.user import User
from quasar.services.mail_service import MailTemplateService

router = APIRouter(prefix="/api/admin/mail-templates", tags=["admin-mail-templates"])


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    type: MailTemplateType = MailTemplateType.CUSTOM
    subject: str = Field(..., min_length=1, max_length=500)
    body: str = Field(..., min_length=1)
    variables: Optional[List[str]] = None
    is_active: bool = True
    language: str = Field("en", min_length=2, max_length=10)
    description: Optional[str] = None


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    type: Optional[MailTemplateType] = None
    subject: Optional[str] = Field(None, min_length=1, max_length=500)
    body: Optional[str] = Field(None, min_length=1)
    variables: Optional[List[str]] = None
    is_active: Optional[bool] = None
    language: Optional[str] = Field(None, min_length=2, max_length=10)
    description: Optional[str] = None


class CloneRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)


class BulkStatusRequest(BaseModel):
    ids: List[UUID] = Field(..., min_length=1)
    is_active: bool


class ProcessRequest(BaseModel):
    variables: Dict[str, Any] = {}


class TemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    type: str
    subject: str
    body: str
    variables: Optional[List[str]] = None
    is_active: bool
    language: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


@router.get("")
async def list_templates(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    type: Optional[MailTemplateType] = None,
    is_active: Optional[bool] = None,
    language: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:mail_template")),
):
    items, total = MailTemplateService(db).list_templates(
        page=page, limit=limit, search=search, type=type.value if type else None,
        is_active=is_active, language=language,
    )
    return ResponseService.list([TemplateResponse.model_validate(t) for t in items], total, page, limit)


@router.post("/bulk-status")
async def bulk_update_status(
    request: BulkStatusRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:mail_template")),
):
    updated = MailTemplateService(db).bulk_update_status(request.ids, request.is_active)
    return ResponseService.success({"updated": updated})


@router.get("/{template_id}")
async def get_template(
    template_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:mail_template")),
):
    return ResponseService.success(TemplateResponse.model_validate(MailTemplateService(db).get_template(template_id)))


@router.post("", status_code=201)
async def create_template(
    request: TemplateCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:mail_template")),
):
    """Create a template; variables are extracted from subject and body when omitted"""
    data = request.model_dump()
    data["type"] = request.type.value
    template = MailTemplateService(db).create_template(data, actor_id=user.id)
    return ResponseService.created(TemplateResponse.model_validate(template))


@router.put("/{template_id}")
async def update_template(
    template_id: UUID,
    request: TemplateUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:mail_template")),
):
    data = request.model_dump(exclude_unset=True)
    if request.type is not None:
        data["type"] = request.type.value
    template = MailTemplateService(db).update_template(template_id, data, actor_id=user.id)
    return ResponseService.success(TemplateResponse.model_validate(template))


@router.delete("/{template_id}")
async def delete_template(
    template_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:mail_template")),
):
    MailTemplateService(db).delete_template(template_id, actor_id=user.id)
    return ResponseService.success({"id": template_id, "deleted": True})


@router.post("/{template_id}/clone", status_code=201)
async def clone_template(
    template_id: UUID,
    request: CloneRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:mail_template")),
):
    """Copy a template; the copy starts inactive"""
    template = MailTemplateService(db).clone_template(template_id, request.name, actor_id=user.id)
    return ResponseService.created(TemplateResponse.model_validate(template))


@router.post("/{template_id}/process")
async def process_template(
    template_id: UUID,
    request: ProcessRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:mail_template")),
):
    service = MailTemplateService(db)
    return ResponseService.success(service.process(service.get_template(template_id), request.variables))
