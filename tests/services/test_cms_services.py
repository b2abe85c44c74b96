"""
Tests for page sections and the component config tree
"""
from uuid import uuid4

import pytest

from quasar.core.errors import AppError
from quasar.models.cms import SectionTranslation
from quasar.services.component_config_service import ComponentConfigService
from quasar.services.section_service import (SectionService,
                                             apply_component_defaults,
                                             resolve_translation)


def _translations(*locales):
    return [SectionTranslation(locale=locale, title=f"title-{locale}") for locale in locales]


def test_resolve_translation_fallbacks():
    """Exact locale, then the default locale, then the first translation"""
    translations = _translations("de", "en", "fr")
    assert resolve_translation(translations, "fr", "en").locale == "fr"
    assert resolve_translation(translations, "vi", "en").locale == "en"
    assert resolve_translation(_translations("de", "fr"), "vi", "en").locale == "de"
    assert resolve_translation([], "en", "en") is None


def test_sidebar_defaults():
    defaults = {"sidebar": {"enabled": True}, "autoplay": True}
    assert apply_component_defaults({"interval": 5}, defaults) == {"interval": 5, "sidebar": {"enabled": True}}
    assert apply_component_defaults({"sidebar": {"enabled": False}}, defaults) == {"sidebar": {"enabled": False}}
    assert apply_component_defaults({"interval": 5}, None) == {"interval": 5}


def test_create_section_appends_position(db):
    service = SectionService(db)
    first = service.create_section({"page": "home", "type": "hero_slider"})
    second = service.create_section({"page": "home", "type": "cta_banner"})
    other_page = service.create_section({"page": "about", "type": "cta_banner"})

    assert (first.position, second.position, other_page.position) == (0, 1, 0)


def test_public_sections_are_localized(db):
    service = SectionService(db)
    service.create_section({
        "page": "home",
        "type": "hero_slider",
        "config": {"interval": 4000, "theme": "light"},
        "translations": [
            {"locale": "en", "title": "Welcome"},
            {"locale": "vi", "title": "Xin chao", "config_override": {"theme": "dark"}},
        ],
    })
    service.create_section({"page": "home", "type": "cta_banner", "is_enabled": False})

    sections = service.list_public("home", "vi")
    assert len(sections) == 1
    assert sections[0]["translation"]["title"] == "Xin chao"
    assert sections[0]["config"] == {"interval": 4000, "theme": "dark"}

    assert service.list_public("home", "ja")[0]["translation"]["locale"] == "en"


def test_public_sections_use_component_sidebar(db):
    ComponentConfigService(db).create_component({
        "component_key": "hero_slider",
        "display_name": "Hero",
        "default_config": {"sidebar": {"enabled": True, "width": 280}},
    })
    SectionService(db).create_section({"page": "home", "type": "hero_slider", "config": {"interval": 1}})

    config = SectionService(db).list_public("home")[0]["config"]
    assert config["sidebar"] == {"enabled": True, "width": 280}
    assert config["interval"] == 1


def test_update_section_upserts_translations(db):
    service = SectionService(db)
    section = service.create_section({"page": "home", "type": "cta_banner",
                                      "translations": [{"locale": "en", "title": "Old"}]})

    updated = service.update_section(section.id, {
        "is_enabled": False,
        "translations": [{"locale": "en", "title": "New"}, {"locale": "de", "title": "Neu"}],
    })
    titles = {t.locale: t.title for t in updated.translations}
    assert titles == {"en": "New", "de": "Neu"}
    assert updated.is_enabled is False
    assert updated.version == 2


def test_reorder(db):
    service = SectionService(db)
    first = service.create_section({"page": "home", "type": "a"})
    second = service.create_section({"page": "home", "type": "b"})

    ordered = service.reorder("home", [{"id": first.id, "position": 1}, {"id": second.id, "position": 0}])
    assert [s.id for s in ordered] == [second.id, first.id]


def test_reorder_rejects_foreign_ids(db):
    service = SectionService(db)
    first = service.create_section({"page": "home", "type": "a"})
    elsewhere = service.create_section({"page": "about", "type": "b"})

    with pytest.raises(AppError) as exc_info:
        service.reorder("home", [{"id": first.id, "position": 0}, {"id": elsewhere.id, "position": 1}])
    assert exc_info.value.status_code == 400
    assert exc_info.value.details["ids"] == [str(elsewhere.id)]


def test_deleted_section_is_hidden(db):
    service = SectionService(db)
    section = service.create_section({"page": "home", "type": "a"})
    service.delete_section(section.id)

    assert service.admin_list("home") == []
    with pytest.raises(AppError):
        service.get_section(section.id)


def test_component_positions_per_parent(db):
    service = ComponentConfigService(db)
    root = service.create_component({"component_key": "card", "display_name": "Card"})
    media = service.create_component({"component_key": "card.media", "display_name": "Media", "parent_id": root.id})
    badge = service.create_component({"component_key": "card.badge", "display_name": "Badge", "parent_id": root.id})
    other = service.create_component({"component_key": "banner", "display_name": "Banner"})

    assert (root.position, other.position) == (0, 1)
    assert (media.position, badge.position) == (0, 1)
    assert [c.component_key for c in service.children_of(root)] == ["card.media", "card.badge"]
    assert [c.component_key for c in service.list_components(only_root=True)] == ["card", "banner"]


def test_component_key_conflict(db):
    service = ComponentConfigService(db)
    service.create_component({"component_key": "card", "display_name": "Card"})
    with pytest.raises(AppError) as exc_info:
        service.create_component({"component_key": "card", "display_name": "Again"})
    assert exc_info.value.status_code == 409


def test_component_parent_must_exist(db):
    with pytest.raises(AppError) as exc_info:
        ComponentConfigService(db).create_component(
            {"component_key": "orphan", "display_name": "Orphan", "parent_id": uuid4()}
        )
    assert exc_info.value.status_code == 404


def test_component_cannot_be_its_own_ancestor(db):
    """Test that moving a node under itself or its subtree is rejected"""
    service = ComponentConfigService(db)
    root = service.create_component({"component_key": "card", "display_name": "Card"})
    child = service.create_component({"component_key": "card.info", "display_name": "Info", "parent_id": root.id})
    grandchild = service.create_component(
        {"component_key": "card.info.title", "display_name": "Title", "parent_id": child.id}
    )

    with pytest.raises(AppError, match="own parent"):
        service.update_component(root.id, {"parent_id": root.id})
    with pytest.raises(AppError, match="descendant"):
        service.update_component(root.id, {"parent_id": grandchild.id})

    moved = service.update_component(grandchild.id, {"parent_id": root.id})
    assert moved.parent_id == root.id
    assert moved.position == 1


def test_component_metadata_attribute(db):
    component = ComponentConfigService(db).create_component(
        {"component_key": "card", "display_name": "Card", "meta": {"dataSource": "products"}}
    )
    assert ComponentConfigService(db).get_by_key("card").meta == {"dataSource": "products"}
    assert component.meta["dataSource"] == "products"
