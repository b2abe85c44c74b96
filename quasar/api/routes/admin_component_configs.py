"""
Admin API routes for storefront component configs
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.cms import ComponentCategory, ComponentType
from quasar.models.user import User
from quasar.services.component_config_service import ComponentConfigService

router = APIRouter(prefix="/api/admin/component-configs", tags=["admin-component-configs"])


class ComponentCreate(BaseModel):
    component_key: str = Field(..., min_length=1, max_length=150)
    display_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    component_type: ComponentType = ComponentType.COMPOSITE
    category: ComponentCategory = ComponentCategory.STOREFRONT
    position: Optional[int] = Field(None, ge=0)
    is_enabled: bool = True
    default_config: Optional[Dict[str, Any]] = None
    config_schema: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    allowed_child_keys: Optional[List[str]] = None
    preview_media_url: Optional[str] = Field(None, max_length=500)
    slot_key: Optional[str] = Field(None, max_length=100)
    parent_id: Optional[UUID] = None


class ComponentUpdate(BaseModel):
    component_key: Optional[str] = Field(None, min_length=1, max_length=150)
    display_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    component_type: Optional[ComponentType] = None
    category: Optional[ComponentCategory] = None
    position: Optional[int] = Field(None, ge=0)
    is_enabled: Optional[bool] = None
    default_config: Optional[Dict[str, Any]] = None
    config_schema: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    allowed_child_keys: Optional[List[str]] = None
    preview_media_url: Optional[str] = Field(None, max_length=500)
    slot_key: Optional[str] = Field(None, max_length=100)
    parent_id: Optional[UUID] = None


class ComponentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    component_key: str
    display_name: str
    description: Optional[str] = None
    component_type: str
    category: str
    position: int
    is_enabled: bool
    default_config: Optional[Dict[str, Any]] = None
    config_schema: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="meta")
    allowed_child_keys: Optional[List[str]] = None
    preview_media_url: Optional[str] = None
    slot_key: Optional[str] = None
    parent_id: Optional[UUID] = None


def _values(request: BaseModel) -> Dict[str, Any]:
    data = {key: getattr(value, "value", value) for key, value in request.model_dump(exclude_unset=True).items()}
    if "metadata" in data:
        data["meta"] = data.pop("metadata")
    return data


@router.get("")
async def list_components(
    parent_id: Optional[UUID] = None,
    only_root: bool = False,
    category: Optional[ComponentCategory] = None,
    component_type: Optional[ComponentType] = None,
    is_enabled: Optional[bool] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:component_config")),
):
    components = ComponentConfigService(db).list_components(
        parent_id=parent_id,
        only_root=only_root,
        category=category.value if category else None,
        component_type=component_type.value if component_type else None,
        is_enabled=is_enabled,
    )
    return ResponseService.success([ComponentResponse.model_validate(c) for c in components])


@router.get("/key/{component_key}")
async def get_component_by_key(
    component_key: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:component_config")),
):
    component = ComponentConfigService(db).get_by_key(component_key)
    return ResponseService.success(ComponentResponse.model_validate(component))


@router.get("/{component_id}")
async def get_component(
    component_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:component_config")),
):
    component = ComponentConfigService(db).get_component(component_id)
    return ResponseService.success(ComponentResponse.model_validate(component))


@router.get("/{component_id}/children")
async def list_children(
    component_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:component_config")),
):
    service = ComponentConfigService(db)
    children = service.children_of(service.get_component(component_id))
    return ResponseService.success([ComponentResponse.model_validate(c) for c in children])


@router.post("", status_code=201)
async def create_component(
    request: ComponentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:component_config")),
):
    """Create a component; position defaults to the end of its siblings"""
    data = _values(request)
    data.setdefault("component_type", request.component_type.value)
    data.setdefault("category", request.category.value)
    component = ComponentConfigService(db).create_component(data, actor_id=user.id)
    return ResponseService.created(ComponentResponse.model_validate(component))


@router.put("/{component_id}")
async def update_component(
    component_id: UUID,
    request: ComponentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:component_config")),
):
    component = ComponentConfigService(db).update_component(component_id, _values(request), actor_id=user.id)
    return ResponseService.success(ComponentResponse.model_validate(component))


@router.delete("/{component_id}")
async def delete_component(
    component_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:component_config")),
):
    ComponentConfigService(db).delete_component(component_id, actor_id=user.id)
    return ResponseService.success({"id": component_id, "deleted": True})
