"""
CMS section service: admin management and localized storefront rendering
"""
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from quasar.core.config import get_settings
from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.core.utils import shallow_merge
from quasar.models.cms import ComponentConfig, Section, SectionTranslation
from quasar.repositories.base import BaseRepository

logger = LoggingConfig.get_logger(__name__)

_TRANSLATION_FIELDS = ("title", "subtitle", "description", "hero_image_url", "config_override")
_SECTION_FIELDS = ("page", "type", "position", "is_enabled", "config")


def resolve_translation(
    translations: Iterable[SectionTranslation],
    locale: str,
    fallback_locale: str,
) -> Optional[SectionTranslation]:
    """Exact locale, then the fallback locale, then the first translation"""
    translations = list(translations or [])
    if not translations:
        return None
    for candidate in (locale, fallback_locale):
        match = next((t for t in translations if t.locale == candidate), None)
        if match is not None:
            return match
    return translations[0]


def apply_component_defaults(config: Dict[str, Any], defaults: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Fill `sidebar` from the component defaults when the section sets none"""
    if not defaults:
        return config
    merged = dict(config or {})
    if defaults.get("sidebar") and not merged.get("sidebar"):
        merged["sidebar"] = defaults["sidebar"]
    return merged


class SectionService:

    def __init__(self, db: Session):
        self.db = db
        self.sections = BaseRepository(db, Section)

    def get_section(self, section_id: UUID) -> Section:
        section = self.sections.find_by_id(section_id)
        if not section:
            raise AppError.not_found(ModuleCode.SECTION, "Section", section_id)
        return section

    def admin_list(self, page: str) -> List[Section]:
        return self.sections.query().filter(Section.page == page).order_by(Section.position).all()

    def list_public(self, page: str, locale: Optional[str] = None) -> List[Dict[str, Any]]:
        """Enabled sections of a page, localized and merged with component defaults"""
        fallback_locale = get_settings().default_locale
        locale = locale or fallback_locale
        sections = self.sections.query().filter(
            Section.page == page,
            Section.is_enabled.is_(True),
        ).order_by(Section.position).all()
        defaults = self._component_defaults({section.type for section in sections})

        result = []
        for section in sections:
            translation = resolve_translation(section.translations, locale, fallback_locale)
            config = shallow_merge(section.config, translation.config_override if translation else None)
            config = apply_component_defaults(config, defaults.get(section.type))
            result.append({
                "id": section.id,
                "page": section.page,
                "type": section.type,
                "position": section.position,
                "is_enabled": section.is_enabled,
                "version": section.version,
                "updated_at": section.updated_at,
                "config": config,
                "translation": {
                    "locale": translation.locale,
                    "title": translation.title,
                    "subtitle": translation.subtitle,
                    "description": translation.description,
                    "hero_image_url": translation.hero_image_url,
                } if translation else None,
            })
        return result

    def create_section(self, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> Section:
        position = data.get("position")
        if position is None:
            position = self.sections.max_position(Section.position, Section.page == data["page"]) + 1
        section = Section(
            page=data["page"],
            type=data["type"],
            position=position,
            is_enabled=data.get("is_enabled", True),
            config=data.get("config") or {},
            created_by=actor_id,
            updated_by=actor_id,
        )
        for translation in data.get("translations") or []:
            section.translations.append(SectionTranslation(
                locale=translation["locale"],
                **{key: translation.get(key) for key in _TRANSLATION_FIELDS},
            ))
        try:
            self.db.add(section)
            self.db.commit()
            self.db.refresh(section)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating section on page {data['page']}: {e}", exc_info=True)
            raise
        logger.info(f"Created section {section.type} on page {section.page} at position {section.position}")
        return section

    def update_section(self, section_id: UUID, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> Section:
        section = self.get_section(section_id)
        values = {key: data[key] for key in _SECTION_FIELDS if key in data}
        self.sections.update(section, values, actor_id)
        for translation in data.get("translations") or []:
            self._upsert_translation(section, translation)
        self.db.commit()
        self.db.refresh(section)
        return section

    def delete_section(self, section_id: UUID, actor_id: Optional[UUID] = None):
        section = self.get_section(section_id)
        section.updated_by = actor_id
        self.sections.soft_delete(section, actor_id)
        self.db.commit()
        logger.info(f"Deleted section {section.id} from page {section.page}")

    def reorder(self, page: str, positions: List[Dict[str, Any]], actor_id: Optional[UUID] = None) -> List[Section]:
        """Apply `[{id, position}, ...]`; every id must belong to `page`"""
        sections = {section.id: section for section in self.admin_list(page)}
        invalid = [str(entry["id"]) for entry in positions if entry["id"] not in sections]
        if invalid:
            raise AppError.validation(ModuleCode.SECTION, f"Invalid section ids: {', '.join(invalid)}",
                                      OperationCode.UPDATE, ids=invalid)
        for entry in positions:
            section = sections[entry["id"]]
            section.position = entry["position"]
            section.updated_by = actor_id
        self.db.commit()
        return self.admin_list(page)

    def _upsert_translation(self, section: Section, data: Dict[str, Any]):
        existing = next((t for t in section.translations if t.locale == data["locale"]), None)
        if existing is None:
            section.translations.append(SectionTranslation(
                locale=data["locale"],
                **{key: data.get(key) for key in _TRANSLATION_FIELDS},
            ))
            return
        for key in _TRANSLATION_FIELDS:
            if key in data:
                setattr(existing, key, data[key])

    def _component_defaults(self, keys: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        keys = list(keys)
        if not keys:
            return {}
        components = self.db.query(ComponentConfig).filter(
            ComponentConfig.component_key.in_(keys),
            ComponentConfig.is_enabled.is_(True),
            ComponentConfig.deleted_at.is_(None),
        ).all()
        return {component.component_key: component.default_config or {} for component in components}
