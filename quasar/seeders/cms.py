"""
Storefront component tree and default home page sections
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from quasar.core.logging_config import LoggingConfig
from quasar.models.cms import (ComponentCategory, ComponentConfig,
                               ComponentType, Section, SectionTranslation)
from quasar.seeders.base import BaseSeeder, SeedResult

logger = LoggingConfig.get_logger(__name__)

COMPOSITE = ComponentType.COMPOSITE.value
ATOMIC = ComponentType.ATOMIC.value

STOREFRONT_COMPONENTS: List[Dict[str, Any]] = [
    {
        "component_key": "product_card",
        "display_name": "Product Card",
        "description": "Card rendered in product grids, wishlists and search results.",
        "component_type": COMPOSITE,
        "category": ComponentCategory.STOREFRONT.value,
        "default_config": {
            "layout": "vertical",
            "imageHeight": "h-72",
            "showAddToCart": True,
            "showWishlist": True,
            "showQuickView": False,
            "showRating": True,
            "badgeStyle": "pill",
            "priceDisplay": "stacked",
        },
        "config_schema": {
            "layout": {"type": "enum", "options": ["vertical", "horizontal"]},
            "imageHeight": {"type": "string"},
            "showAddToCart": {"type": "boolean"},
            "showWishlist": {"type": "boolean"},
            "showQuickView": {"type": "boolean"},
            "showRating": {"type": "boolean"},
            "badgeStyle": {"type": "enum", "options": ["pill", "square"]},
            "priceDisplay": {"type": "enum", "options": ["stacked", "inline"]},
        },
        "meta": {"usedIn": ["ProductGrid", "ProductList", "Wishlist"], "dataSource": "products"},
        "allowed_child_keys": [
            "product_card.media",
            "product_card.badge",
            "product_card.info",
            "product_card.actions",
        ],
        "children": [
            {
                "component_key": "product_card.media",
                "display_name": "Product Media",
                "description": "Image rendering, hover swapping and fallback placeholder.",
                "component_type": ATOMIC,
                "slot_key": "media",
                "default_config": {"ratio": "3:4", "hoverSwap": True, "lazyLoad": True,
                                   "fallbackUrl": "/placeholder-product.png"},
                "config_schema": {"ratio": {"type": "enum", "options": ["1:1", "3:4", "16:9"]}},
                "meta": {"dataSource": "product.media"},
            },
            {
                "component_key": "product_card.badge",
                "display_name": "Product Badge",
                "description": "Featured, sale or sold-out labels.",
                "component_type": ATOMIC,
                "slot_key": "badge",
                "default_config": {"showFeatured": True, "showSale": True, "showInventoryStatus": True},
                "meta": {"dataSource": "product"},
            },
            {
                "component_key": "product_card.info",
                "display_name": "Product Content",
                "description": "Title, price and rating stack under the image.",
                "component_type": COMPOSITE,
                "slot_key": "content",
                "default_config": {"align": "start", "spacing": "sm"},
                "allowed_child_keys": [
                    "product_card.info.title",
                    "product_card.info.price",
                    "product_card.info.rating",
                ],
                "children": [
                    {
                        "component_key": "product_card.info.title",
                        "display_name": "Product Title",
                        "component_type": ATOMIC,
                        "slot_key": "title",
                        "default_config": {"clampLines": 2, "htmlTag": "h3"},
                        "meta": {"dataSource": "product.name"},
                    },
                    {
                        "component_key": "product_card.info.price",
                        "display_name": "Product Price",
                        "component_type": ATOMIC,
                        "slot_key": "price",
                        "default_config": {"showCompareAt": True, "showCurrency": True},
                        "meta": {"dataSource": "product.price"},
                    },
                    {
                        "component_key": "product_card.info.rating",
                        "display_name": "Product Rating",
                        "component_type": ATOMIC,
                        "slot_key": "rating",
                        "default_config": {"showCount": True, "size": "sm"},
                        "meta": {"dataSource": "product.rating"},
                    },
                ],
            },
            {
                "component_key": "product_card.actions",
                "display_name": "Product Actions",
                "description": "Call-to-action buttons of the card.",
                "component_type": COMPOSITE,
                "slot_key": "actions",
                "default_config": {"layout": "inline"},
                "allowed_child_keys": [
                    "product_card.actions.add_to_cart",
                    "product_card.actions.wishlist",
                    "product_card.actions.quick_view",
                ],
                "children": [
                    {
                        "component_key": "product_card.actions.add_to_cart",
                        "display_name": "Add to Cart",
                        "component_type": ATOMIC,
                        "slot_key": "primary",
                        "default_config": {"variant": "primary", "showIcon": True},
                    },
                    {
                        "component_key": "product_card.actions.wishlist",
                        "display_name": "Wishlist Toggle",
                        "component_type": ATOMIC,
                        "slot_key": "secondary",
                        "default_config": {"variant": "ghost"},
                    },
                    {
                        "component_key": "product_card.actions.quick_view",
                        "display_name": "Quick View",
                        "component_type": ATOMIC,
                        "slot_key": "tertiary",
                        "is_enabled": False,
                        "default_config": {"variant": "ghost"},
                    },
                ],
            },
        ],
    },
    {
        "component_key": "hero_slider",
        "display_name": "Hero Slider",
        "description": "Full-width rotating banner at the top of a page.",
        "component_type": COMPOSITE,
        "category": ComponentCategory.MARKETING.value,
        "default_config": {
            "autoplay": True,
            "interval": 6000,
            "sidebar": {"enabled": False, "position": "right", "width": 280},
        },
        "config_schema": {
            "autoplay": {"type": "boolean"},
            "interval": {"type": "number", "min": 1000},
        },
    },
    {
        "component_key": "cta_banner",
        "display_name": "Call to Action Banner",
        "description": "Headline with a single call-to-action button.",
        "component_type": ATOMIC,
        "category": ComponentCategory.MARKETING.value,
        "default_config": {"alignment": "center", "background": "primary"},
    },
]

HOME_SECTIONS: List[Dict[str, Any]] = [
    {
        "type": "hero_slider",
        "config": {
            "autoplay": True,
            "interval": 6000,
            "slides": [
                {
                    "id": "hero-default-1",
                    "title": "Build immersive storefronts",
                    "subtitle": "Composable experiences tailored to every launch",
                    "ctaLabel": "Explore sections",
                    "ctaUrl": "#sections",
                },
            ],
        },
        "translations": [
            {
                "locale": "en",
                "title": "Everything you need to launch fast",
                "subtitle": "Composable storefront sections, ready for localization",
                "description": "Pick a layout, adjust the copy and go live.",
            },
        ],
    },
    {
        "type": "product_card",
        "config": {"source": "featured", "limit": 8, "columns": 4},
        "translations": [
            {"locale": "en", "title": "Featured products", "subtitle": "Hand-picked for this season"},
        ],
    },
    {
        "type": "cta_banner",
        "config": {"ctaUrl": "/collections/new-arrivals"},
        "translations": [
            {
                "locale": "en",
                "title": "New arrivals every week",
                "description": "Sign up to hear about launches first.",
            },
        ],
    },
]

_COMPONENT_FIELDS = (
    "display_name", "description", "component_type", "category", "is_enabled", "default_config",
    "config_schema", "meta", "allowed_child_keys", "preview_media_url", "slot_key",
)


class ComponentConfigsSeeder(BaseSeeder):
    """Upserts the component tree by component_key"""
    name = "component_configs"
    description = "Storefront component tree"

    def __init__(self, components: Optional[List[Dict[str, Any]]] = None):
        self.components = components if components is not None else STOREFRONT_COMPONENTS

    def run(self, db: Session) -> SeedResult:
        result = SeedResult()
        self._upsert_level(db, self.components, None, None, result)
        db.flush()
        return result

    def _upsert_level(self, db: Session, seeds: List[Dict[str, Any]], parent_id: Optional[UUID],
                      inherited_category: Optional[str], result: SeedResult):
        for index, seed in enumerate(seeds):
            values = {key: seed[key] for key in _COMPONENT_FIELDS if key in seed}
            values.setdefault("category", inherited_category or ComponentCategory.STOREFRONT.value)
            values["position"] = seed.get("position", index)
            values["parent_id"] = parent_id

            component = db.query(ComponentConfig).filter(
                ComponentConfig.component_key == seed["component_key"]
            ).first()
            if component is None:
                component = ComponentConfig(component_key=seed["component_key"], **values)
                db.add(component)
                result.created += 1
            else:
                for key, value in values.items():
                    setattr(component, key, value)
                component.deleted_at = None
                result.updated += 1
            db.flush()

            if seed.get("children"):
                self._upsert_level(db, seed["children"], component.id, values["category"], result)


class SectionsSeeder(BaseSeeder):
    name = "sections"
    description = "Default home page sections"

    def __init__(self, page: str = "home", sections: Optional[List[Dict[str, Any]]] = None):
        self.page = page
        self.sections = sections if sections is not None else HOME_SECTIONS

    def run(self, db: Session) -> SeedResult:
        existing = db.query(Section).filter(Section.page == self.page, Section.deleted_at.is_(None)).count()
        if existing:
            logger.info(f"Page {self.page} already has {existing} section(s), skipping")
            return SeedResult(skipped=len(self.sections))

        for position, seed in enumerate(self.sections):
            section = Section(page=self.page, type=seed["type"], position=position, is_enabled=True,
                              config=seed.get("config") or {})
            for translation in seed.get("translations", []):
                section.translations.append(SectionTranslation(**translation))
            db.add(section)
        db.flush()
        return SeedResult(created=len(self.sections))
