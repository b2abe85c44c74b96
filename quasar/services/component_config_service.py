"""
Storefront component configuration tree
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.models.cms import ComponentConfig, ComponentType
from quasar.repositories.base import BaseRepository

logger = LoggingConfig.get_logger(__name__)

_FIELDS = (
    "component_key", "display_name", "description", "component_type", "category", "position",
    "is_enabled", "default_config", "config_schema", "meta", "allowed_child_keys",
    "preview_media_url", "slot_key", "parent_id",
)


class ComponentConfigService:

    def __init__(self, db: Session):
        self.db = db
        self.components = BaseRepository(db, ComponentConfig)

    def list_components(
        self,
        parent_id: Optional[UUID] = None,
        only_root: bool = False,
        category: Optional[str] = None,
        component_type: Optional[str] = None,
        is_enabled: Optional[bool] = None,
    ) -> List[ComponentConfig]:
        query = self.components.query()
        if parent_id:
            query = query.filter(ComponentConfig.parent_id == parent_id)
        elif only_root:
            query = query.filter(ComponentConfig.parent_id.is_(None))
        if category:
            query = query.filter(ComponentConfig.category == category)
        if component_type:
            query = query.filter(ComponentConfig.component_type == component_type)
        if is_enabled is not None:
            query = query.filter(ComponentConfig.is_enabled.is_(is_enabled))
        return query.order_by(ComponentConfig.position, ComponentConfig.component_key).all()

    def get_component(self, component_id: UUID) -> ComponentConfig:
        component = self.components.find_by_id(component_id)
        if not component:
            raise AppError.not_found(ModuleCode.COMPONENT, "Component config", component_id)
        return component

    def get_by_key(self, component_key: str) -> ComponentConfig:
        component = self.components.query().filter(ComponentConfig.component_key == component_key).first()
        if not component:
            raise AppError.not_found(ModuleCode.COMPONENT, "Component config", component_key)
        return component

    def children_of(self, component: ComponentConfig) -> List[ComponentConfig]:
        return [child for child in component.children if child.deleted_at is None]

    def create_component(self, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> ComponentConfig:
        values = {key: data[key] for key in _FIELDS if key in data}
        if self.db.query(ComponentConfig).filter(ComponentConfig.component_key == values["component_key"]).first():
            raise AppError.conflict(ModuleCode.COMPONENT,
                                    f"Component key '{values['component_key']}' already exists")
        parent_id = values.get("parent_id")
        if parent_id:
            self.get_component(parent_id)
        if values.get("position") is None:
            values["position"] = self._next_position(parent_id)
        values.setdefault("component_type", ComponentType.COMPOSITE.value)

        component = self.components.create(**values, created_by=actor_id, updated_by=actor_id)
        self.db.commit()
        self.db.refresh(component)
        logger.info(f"Created component config {component.component_key}")
        return component

    def update_component(self, component_id: UUID, data: Dict[str, Any],
                         actor_id: Optional[UUID] = None) -> ComponentConfig:
        component = self.get_component(component_id)
        values = {key: data[key] for key in _FIELDS if key in data}

        key = values.get("component_key")
        if key and key != component.component_key and self.db.query(ComponentConfig).filter(
            ComponentConfig.component_key == key
        ).first():
            raise AppError.conflict(ModuleCode.COMPONENT, f"Component key '{key}' already exists",
                                    OperationCode.UPDATE)

        if "parent_id" in values and values["parent_id"] != component.parent_id:
            new_parent = values["parent_id"]
            if new_parent:
                self._ensure_valid_parent(component, new_parent)
            if values.get("position") is None:
                values["position"] = self._next_position(new_parent)
        elif "position" in values and values["position"] is None:
            values.pop("position")

        self.components.update(component, values, actor_id)
        self.db.commit()
        self.db.refresh(component)
        return component

    def delete_component(self, component_id: UUID, actor_id: Optional[UUID] = None):
        component = self.get_component(component_id)
        self.components.soft_delete(component, actor_id)
        self.db.commit()
        logger.info(f"Deleted component config {component.component_key}")

    def _next_position(self, parent_id: Optional[UUID]) -> int:
        criterion = (ComponentConfig.parent_id == parent_id) if parent_id else ComponentConfig.parent_id.is_(None)
        return self.components.max_position(ComponentConfig.position, criterion) + 1

    def _ensure_valid_parent(self, component: ComponentConfig, parent_id: UUID):
        if parent_id == component.id:
            raise AppError.validation(ModuleCode.COMPONENT, "Component cannot be its own parent",
                                      OperationCode.UPDATE)
        node = self.get_component(parent_id)
        while node is not None:
            if node.id == component.id:
                raise AppError.validation(ModuleCode.COMPONENT, "Component cannot be moved under its own descendant",
                                          OperationCode.UPDATE)
            node = node.parent
