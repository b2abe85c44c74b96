"""
Catalog models: categories, suppliers, products and variants
"""
from enum import Enum

from sqlalchemy import (JSON, Boolean, CheckConstraint, Column, ForeignKey,
                        Integer, Numeric, String, Text, Uuid)
from sqlalchemy.orm import relationship

from quasar.core.database import Base
from quasar.models.base import (AuditMixin, SoftDeleteMixin, TimestampMixin,
                                UUIDPrimaryKeyMixin)


class ProductStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DISCONTINUED = "DISCONTINUED"


class Category(UUIDPrimaryKeyMixin, TimestampMixin, AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "categories"

    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(Uuid, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    parent = relationship("Category", remote_side="Category.id", back_populates="children")
    children = relationship("Category", back_populates="parent")
    products = relationship("Product", back_populates="category")


class Supplier(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "suppliers"

    name = Column(String(255), nullable=False)
    code = Column(String(50), unique=True, nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class Product(UUIDPrimaryKeyMixin, TimestampMixin, AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint(
            "status IN ('DRAFT', 'ACTIVE', 'INACTIVE', 'DISCONTINUED')",
            name="ck_products_status",
        ),
    )

    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    sku = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ProductStatus.DRAFT.value)
    is_featured = Column(Boolean, nullable=False, default=False)
    category_id = Column(Uuid, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    supplier_id = Column(Uuid, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)
    attributes = Column(JSON, nullable=True)

    category = relationship("Category", back_populates="products")
    supplier = relationship("Supplier")
    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.sort_order",
    )

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value and self.deleted_at is None

    def first_active_variant(self):
        return next((v for v in self.variants if v.is_active), None)


class ProductVariant(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Sellable unit of a product; stock lives in `inventory_items`"""
    __tablename__ = "product_variants"

    product_id = Column(Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    sku = Column(String(100), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    compare_at_price = Column(Numeric(12, 2), nullable=True)
    cost_price = Column(Numeric(12, 2), nullable=True)
    weight = Column(Numeric(10, 3), nullable=True)
    image = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    allow_backorders = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="variants")
    inventory_items = relationship("InventoryItem", back_populates="variant", cascade="all, delete-orphan")
