"""
Product catalog service: products, variants and price lookups
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.core.utils import slugify, to_money
from quasar.models.catalog import Category, Product, ProductStatus, ProductVariant
from quasar.repositories.base import BaseRepository

logger = LoggingConfig.get_logger(__name__)

_VARIANT_FIELDS = (
    "sku", "name", "price", "compare_at_price", "cost_price", "weight", "image",
    "is_active", "allow_backorders", "sort_order",
)


class ProductService:
    """Service for managing products and their variants"""

    def __init__(self, db: Session):
        self.db = db
        self.products = BaseRepository(db, Product)
        self.variants = BaseRepository(db, ProductVariant)

    def list_products(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        status: Optional[str] = None,
        category_id: Optional[UUID] = None,
        is_featured: Optional[bool] = None,
    ) -> Tuple[List[Product], int]:
        query = self.products.query().options(selectinload(Product.variants))
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))
        if status:
            query = query.filter(Product.status == status)
        if category_id:
            query = query.filter(Product.category_id == category_id)
        if is_featured is not None:
            query = query.filter(Product.is_featured == is_featured)
        return self.products.paginate(query.order_by(Product.created_at.desc()), page, limit)

    def get_product(self, product_id: UUID) -> Product:
        product = self.products.find_by_id(product_id)
        if not product:
            raise AppError.not_found(ModuleCode.PRODUCT, "Product", product_id)
        return product

    def create_product(self, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> Product:
        data = dict(data)
        variants = data.pop("variants", None) or []
        data.setdefault("slug", None)
        data["slug"] = data["slug"] or slugify(data["name"])

        self._ensure_unique(sku=data["sku"], slug=data["slug"])
        if data.get("category_id"):
            self._ensure_category(data["category_id"])
        for variant in variants:
            self._ensure_unique_variant_sku(variant["sku"])

        try:
            product = self.products.create(**data, created_by=actor_id, updated_by=actor_id)
            for index, variant in enumerate(variants):
                variant = dict(variant)
                variant.setdefault("sort_order", index)
                product.variants.append(ProductVariant(**self._variant_values(variant)))
            self.db.commit()
            self.db.refresh(product)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating product {data.get('sku')}: {e}", exc_info=True)
            raise

        logger.info(f"Created product {product.sku} with {len(variants)} variant(s)")
        return product

    def update_product(self, product_id: UUID, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> Product:
        product = self.get_product(product_id)
        data = {k: v for k, v in data.items() if k != "variants"}
        if "sku" in data and data["sku"] != product.sku:
            self._ensure_unique(sku=data["sku"])
        if "slug" in data and data["slug"] and data["slug"] != product.slug:
            self._ensure_unique(slug=data["slug"])
        if data.get("category_id"):
            self._ensure_category(data["category_id"])
        if "status" in data and data["status"] not in {s.value for s in ProductStatus}:
            raise AppError.validation(ModuleCode.PRODUCT, f"Invalid product status: {data['status']}",
                                      OperationCode.UPDATE)
        try:
            self.products.update(product, data, actor_id)
            self.db.commit()
            self.db.refresh(product)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Updated product {product.sku}")
        return product

    def delete_product(self, product_id: UUID, actor_id: Optional[UUID] = None):
        product = self.get_product(product_id)
        self.products.soft_delete(product, actor_id)
        self.db.commit()
        logger.info(f"Deleted product {product.sku}")

    def add_variant(self, product_id: UUID, data: Dict[str, Any]) -> ProductVariant:
        product = self.get_product(product_id)
        self._ensure_unique_variant_sku(data["sku"])
        values = self._variant_values(data)
        values.setdefault("sort_order", len(product.variants))
        variant = ProductVariant(**values)
        product.variants.append(variant)
        self.db.commit()
        self.db.refresh(variant)
        logger.info(f"Added variant {variant.sku} to product {product.sku}")
        return variant

    def update_variant(self, product_id: UUID, variant_id: UUID, data: Dict[str, Any]) -> ProductVariant:
        variant = self._get_variant(product_id, variant_id)
        if "sku" in data and data["sku"] != variant.sku:
            self._ensure_unique_variant_sku(data["sku"])
        for key, value in self._variant_values(data).items():
            setattr(variant, key, value)
        self.db.commit()
        self.db.refresh(variant)
        return variant

    def get_price_info(self, product_id: UUID, variant_id: Optional[UUID] = None) -> Dict[str, Any]:
        """
        Current price of a product for order entry

        Uses the given variant, otherwise the first active variant. The result
        is active only when the product is ACTIVE and the variant is active.
        """
        product = self.get_product(product_id)
        if variant_id:
            variant = self._get_variant(product_id, variant_id)
        else:
            variant = product.first_active_variant()

        price: Optional[Decimal] = to_money(variant.price) if variant else None
        return {
            "product_id": product.id,
            "variant_id": variant.id if variant else None,
            "product_name": product.name,
            "product_sku": variant.sku if variant else product.sku,
            "variant_name": variant.name if variant else None,
            "price": price,
            "compare_at_price": to_money(variant.compare_at_price) if variant and variant.compare_at_price else None,
            "is_active": bool(product.is_active and variant is not None and variant.is_active),
            "attributes": product.attributes or {},
        }

    def _get_variant(self, product_id: UUID, variant_id: UUID) -> ProductVariant:
        variant = self.db.query(ProductVariant).filter(
            ProductVariant.id == variant_id,
            ProductVariant.product_id == product_id,
        ).first()
        if not variant:
            raise AppError.not_found(ModuleCode.PRODUCT, "Product variant", variant_id)
        return variant

    def _ensure_unique(self, sku: Optional[str] = None, slug: Optional[str] = None):
        if sku and self.db.query(Product).filter(Product.sku == sku).first():
            raise AppError.conflict(ModuleCode.PRODUCT, f"Product SKU '{sku}' already exists", sku=sku)
        if slug and self.db.query(Product).filter(Product.slug == slug).first():
            raise AppError.conflict(ModuleCode.PRODUCT, f"Product slug '{slug}' already exists", slug=slug)

    def _ensure_unique_variant_sku(self, sku: str):
        if self.db.query(ProductVariant).filter(ProductVariant.sku == sku).first():
            raise AppError.conflict(ModuleCode.PRODUCT, f"Variant SKU '{sku}' already exists", sku=sku)

    def _ensure_category(self, category_id: UUID):
        category = BaseRepository(self.db, Category).find_by_id(category_id)
        if not category:
            raise AppError.not_found(ModuleCode.CATEGORY, "Category", category_id)

    @staticmethod
    def _variant_values(data: Dict[str, Any]) -> Dict[str, Any]:
        return {key: data[key] for key in _VARIANT_FIELDS if key in data}
