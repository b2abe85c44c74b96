"""
Tests for the table-initialization seeders
"""
import pytest

from quasar.core.errors import AppError
from quasar.models.cms import ComponentConfig, Section
from quasar.models.customer import DEFAULT_ADDRESS_BOOK_CONFIG, Country
from quasar.models.inventory import Warehouse
from quasar.models.user import Permission, Role, RoleCode
from quasar.seeders import SEEDERS, BaseSeeder, SeedResult, run_seeders
from quasar.seeders.access import permission_specs
from quasar.seeders.cms import SectionsSeeder


def test_run_all_in_declared_order(db):
    results = run_seeders(db)
    assert list(results) == [seeder.name for seeder in SEEDERS]
    assert all(result.created > 0 for result in results.values())


def test_second_run_creates_nothing(db):
    """Test that seeding twice leaves the second run without new rows"""
    run_seeders(db)
    permissions = db.query(Permission).count()

    results = run_seeders(db)
    assert all(result.created == 0 for result in results.values())
    assert results["roles"].skipped == len(RoleCode)
    assert results["permissions"].updated == 0
    assert db.query(Permission).count() == permissions


def test_full_access_roles_get_every_permission(db):
    run_seeders(db, ["roles", "permissions"])

    expected = len(permission_specs())
    assert db.query(Permission).count() == expected
    for code in (RoleCode.SUPER_ADMIN.value, RoleCode.ADMIN.value):
        role = db.query(Role).filter(Role.code == code).one()
        assert len(role.permissions) == expected
    manager = db.query(Role).filter(Role.code == RoleCode.MANAGER.value).one()
    assert manager.permissions == []


def test_names_run_in_declared_order(db):
    results = run_seeders(db, ["permissions", "roles"])
    assert list(results) == ["roles", "permissions"]


def test_unknown_seeder(db):
    with pytest.raises(AppError) as exc_info:
        run_seeders(db, ["roles", "unicorns"])
    assert exc_info.value.status_code == 400
    assert exc_info.value.details["unknown"] == ["unicorns"]


def test_component_tree(db):
    run_seeders(db, ["component_configs"])

    card = db.query(ComponentConfig).filter(ComponentConfig.component_key == "product_card").one()
    assert [child.component_key for child in card.children] == [
        "product_card.media",
        "product_card.badge",
        "product_card.info",
        "product_card.actions",
    ]
    quick_view = db.query(ComponentConfig).filter(
        ComponentConfig.component_key == "product_card.actions.quick_view"
    ).one()
    assert quick_view.is_enabled is False
    assert quick_view.parent.component_key == "product_card.actions"
    assert quick_view.category == card.category


def test_component_seeder_restores_edited_defaults(db):
    run_seeders(db, ["component_configs"])
    card = db.query(ComponentConfig).filter(ComponentConfig.component_key == "product_card").one()
    card.display_name = "Edited"
    db.commit()

    result = run_seeders(db, ["component_configs"])["component_configs"]
    db.refresh(card)
    assert result.created == 0
    assert card.display_name == "Product Card"


def test_sections_skip_populated_page(db):
    db.add(Section(page="home", type="custom", position=0, config={}))
    db.commit()

    result = run_seeders(db, ["sections"])["sections"]
    assert result.created == 0
    assert db.query(Section).filter(Section.page == "home").count() == 1


def test_sections_for_other_page(db):
    result = SectionsSeeder(page="landing").run(db)
    assert result.created == 3
    sections = db.query(Section).filter(Section.page == "landing").order_by(Section.position).all()
    assert [s.type for s in sections] == ["hero_slider", "product_card", "cta_banner"]
    assert sections[0].translations[0].locale == "en"


def test_countries_get_address_book_config(db):
    run_seeders(db, ["countries"])
    germany = db.query(Country).filter(Country.code == "DE").one()
    configs = {c.config_key: c.value for c in germany.address_book_configs}
    assert configs == DEFAULT_ADDRESS_BOOK_CONFIG


def test_single_default_warehouse(db):
    run_seeders(db, ["warehouses"])
    main = db.query(Warehouse).filter(Warehouse.code == "MAIN").one()
    assert main.is_default


def test_failing_seeder_keeps_earlier_commits(db, monkeypatch):
    """Test that a failing seeder is rolled back and the ones before it stay"""

    class BrokenSeeder(BaseSeeder):
        name = "broken"

        def run(self, db):
            db.add(Role(code="half_done", name="Half done"))
            db.flush()
            raise RuntimeError("boom")

    class NoopSeeder(BaseSeeder):
        name = "noop"

        def run(self, db):
            return SeedResult()

    from quasar.seeders import registry

    monkeypatch.setattr(registry, "SEEDERS", [SEEDERS[0], BrokenSeeder(), NoopSeeder()])

    with pytest.raises(RuntimeError):
        registry.run_seeders(db)

    assert db.query(Role).filter(Role.code == RoleCode.ADMIN.value).count() == 1
    assert db.query(Role).filter(Role.code == "half_done").count() == 0
