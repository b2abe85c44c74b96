"""
Admin API routes for CMS page sections
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.user import User
from quasar.services.section_service import SectionService

router = APIRouter(prefix="/api/admin/sections", tags=["admin-sections"])


class TranslationRequest(BaseModel):
    locale: str = Field(..., min_length=2, max_length=10)
    title: Optional[str] = Field(None, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    hero_image_url: Optional[str] = Field(None, max_length=500)
    config_override: Optional[Dict[str, Any]] = None


class SectionCreate(BaseModel):
    page: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., min_length=1, max_length=100)
    position: Optional[int] = Field(None, ge=0)
    is_enabled: bool = True
    config: Optional[Dict[str, Any]] = None
    translations: List[TranslationRequest] = []


class SectionUpdate(BaseModel):
    page: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[str] = Field(None, min_length=1, max_length=100)
    position: Optional[int] = Field(None, ge=0)
    is_enabled: Optional[bool] = None
    config: Optional[Dict[str, Any]] = None
    translations: Optional[List[TranslationRequest]] = None


class PositionEntry(BaseModel):
    id: UUID
    position: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    page: str = Field(..., min_length=1, max_length=100)
    positions: List[PositionEntry] = Field(..., min_length=1)


class TranslationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    locale: str
    title: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    hero_image_url: Optional[str] = None
    config_override: Optional[Dict[str, Any]] = None


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    page: str
    type: str
    position: int
    is_enabled: bool
    config: Optional[Dict[str, Any]] = None
    version: int
    updated_at: datetime
    translations: List[TranslationResponse] = []


def _translations(translations: Optional[List[TranslationRequest]]) -> List[Dict[str, Any]]:
    # Only the fields the client sent, so an upsert leaves the others alone
    return [t.model_dump(exclude_unset=True) for t in translations or []]


@router.get("")
async def list_sections(
    page: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:section")),
):
    """All sections of a page in position order, disabled ones included"""
    sections = SectionService(db).admin_list(page)
    return ResponseService.success([SectionResponse.model_validate(s) for s in sections])


@router.post("/reorder")
async def reorder_sections(
    request: ReorderRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:section")),
):
    sections = SectionService(db).reorder(
        request.page, [entry.model_dump() for entry in request.positions], actor_id=user.id
    )
    return ResponseService.success([SectionResponse.model_validate(s) for s in sections])


@router.get("/{section_id}")
async def get_section(
    section_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:section")),
):
    return ResponseService.success(SectionResponse.model_validate(SectionService(db).get_section(section_id)))


@router.post("", status_code=201)
async def create_section(
    request: SectionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:section")),
):
    data = request.model_dump(exclude={"translations"})
    data["translations"] = _translations(request.translations)
    section = SectionService(db).create_section(data, actor_id=user.id)
    return ResponseService.created(SectionResponse.model_validate(section))


@router.put("/{section_id}")
async def update_section(
    section_id: UUID,
    request: SectionUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:section")),
):
    data = request.model_dump(exclude_unset=True, exclude={"translations"})
    data["translations"] = _translations(request.translations)
    section = SectionService(db).update_section(section_id, data, actor_id=user.id)
    return ResponseService.success(SectionResponse.model_validate(section))


@router.delete("/{section_id}")
async def delete_section(
    section_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:section")),
):
    SectionService(db).delete_section(section_id, actor_id=user.id)
    return ResponseService.success({"id": section_id, "deleted": True})
