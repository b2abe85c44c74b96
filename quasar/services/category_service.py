"""
Product category service
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.core.utils import slugify
from quasar.models.catalog import Category, Product
from quasar.repositories.base import BaseRepository

logger = LoggingConfig.get_logger(__name__)


class CategoryService:

    def __init__(self, db: Session):
        self.db = db
        self.categories = BaseRepository(db, Category)

    def get_category(self, category_id: UUID) -> Category:
        category = self.categories.find_by_id(category_id)
        if not category:
            raise AppError.not_found(ModuleCode.CATEGORY, "Category", category_id)
        return category

    def get_tree(self, include_inactive: bool = True) -> List[Dict[str, Any]]:
        """Categories nested under their parents, ordered by sort_order then name"""
        query = self.categories.query()
        if not include_inactive:
            query = query.filter(Category.is_active.is_(True))
        rows = query.order_by(Category.sort_order, Category.name).all()

        nodes = {
            row.id: {
                "id": row.id,
                "name": row.name,
                "slug": row.slug,
                "description": row.description,
                "parent_id": row.parent_id,
                "sort_order": row.sort_order,
                "is_active": row.is_active,
                "children": [],
            }
            for row in rows
        }
        roots = []
        for row in rows:
            node = nodes[row.id]
            parent = nodes.get(row.parent_id)
            if parent is not None:
                parent["children"].append(node)
            else:
                roots.append(node)
        return roots

    def create_category(self, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> Category:
        data = dict(data)
        data["slug"] = data.get("slug") or slugify(data["name"])
        self._ensure_slug_free(data["slug"])
        if data.get("parent_id"):
            self.get_category(data["parent_id"])
        category = self.categories.create(**data, created_by=actor_id, updated_by=actor_id)
        self.db.commit()
        self.db.refresh(category)
        logger.info(f"Created category {category.slug}")
        return category

    def update_category(self, category_id: UUID, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> Category:
        category = self.get_category(category_id)
        if "slug" in data and data["slug"] and data["slug"] != category.slug:
            self._ensure_slug_free(data["slug"])
        parent_id = data.get("parent_id")
        if parent_id:
            if parent_id == category.id:
                raise AppError.validation(ModuleCode.CATEGORY, "Category cannot be its own parent",
                                          OperationCode.UPDATE)
            self._ensure_not_descendant(category, parent_id)
        self.categories.update(category, data, actor_id)
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete_category(self, category_id: UUID, actor_id: Optional[UUID] = None):
        category = self.get_category(category_id)
        if self.categories.query().filter(Category.parent_id == category.id).count():
            raise AppError.business(ModuleCode.CATEGORY, "Category has child categories", OperationCode.DELETE)
        products = BaseRepository(self.db, Product).query().filter(Product.category_id == category.id).count()
        if products:
            raise AppError.business(ModuleCode.CATEGORY, f"Category is used by {products} product(s)",
                                    OperationCode.DELETE)
        self.categories.soft_delete(category, actor_id)
        self.db.commit()
        logger.info(f"Deleted category {category.slug}")

    def _ensure_slug_free(self, slug: str):
        if self.db.query(Category).filter(Category.slug == slug).first():
            raise AppError.conflict(ModuleCode.CATEGORY, f"Category slug '{slug}' already exists", slug=slug)

    def _ensure_not_descendant(self, category: Category, parent_id: UUID):
        node = self.get_category(parent_id)
        while node is not None:
            if node.id == category.id:
                raise AppError.validation(ModuleCode.CATEGORY, "Category cannot be moved under its own descendant",
                                          OperationCode.UPDATE)
            node = node.parent
