"""
CMS sections with translations and storefront component configs
"""
from enum import Enum

from sqlalchemy import (JSON, Boolean, Column, ForeignKey, Index, Integer,
                        String, Text, UniqueConstraint, Uuid)
from sqlalchemy.orm import relationship

from quasar.core.database import Base
from quasar.models.base import (AuditMixin, SoftDeleteMixin, TimestampMixin,
                                UUIDPrimaryKeyMixin)


class ComponentType(str, Enum):
    COMPOSITE = "composite"
    ATOMIC = "atomic"


class ComponentCategory(str, Enum):
    STOREFRONT = "storefront"
    LAYOUT = "layout"
    MARKETING = "marketing"
    CHECKOUT = "checkout"


class Section(UUIDPrimaryKeyMixin, TimestampMixin, AuditMixin, SoftDeleteMixin, Base):
    """Ordered block of a storefront page"""
    __tablename__ = "sections"
    __table_args__ = (
        Index("ix_sections_page_position", "page", "position"),
    )

    page = Column(String(100), nullable=False)
    type = Column(String(100), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    is_enabled = Column(Boolean, nullable=False, default=True)
    config = Column(JSON, nullable=True)

    translations = relationship(
        "SectionTranslation",
        back_populates="section",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class SectionTranslation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "section_translations"
    __table_args__ = (
        UniqueConstraint("section_id", "locale", name="uq_section_translations_section_locale"),
    )

    section_id = Column(Uuid, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False)
    locale = Column(String(10), nullable=False)
    title = Column(String(255), nullable=True)
    subtitle = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    hero_image_url = Column(String(500), nullable=True)
    # Shallow-merged over the section config for this locale
    config_override = Column(JSON, nullable=True)

    section = relationship("Section", back_populates="translations")


class ComponentConfig(UUIDPrimaryKeyMixin, TimestampMixin, AuditMixin, SoftDeleteMixin, Base):
    """Configurable storefront UI block, arranged as a tree through parent_id"""
    __tablename__ = "component_configs"

    component_key = Column(String(150), unique=True, nullable=False)
    display_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    component_type = Column(String(20), nullable=False, default=ComponentType.COMPOSITE.value)
    category = Column(String(50), nullable=False, default=ComponentCategory.STOREFRONT.value)
    position = Column(Integer, nullable=False, default=0)
    is_enabled = Column(Boolean, nullable=False, default=True)
    default_config = Column(JSON, nullable=True)
    config_schema = Column(JSON, nullable=True)
    # `metadata` is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=True)
    allowed_child_keys = Column(JSON, nullable=True)
    preview_media_url = Column(String(500), nullable=True)
    slot_key = Column(String(100), nullable=True)
    parent_id = Column(Uuid, ForeignKey("component_configs.id", ondelete="CASCADE"), nullable=True, index=True)

    parent = relationship("ComponentConfig", remote_side="ComponentConfig.id", back_populates="children")
    children = relationship(
        "ComponentConfig",
        back_populates="parent",
        order_by="ComponentConfig.position",
    )
