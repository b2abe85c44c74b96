"""
Tests for mail templates and providers
"""
import pytest

from quasar.core.errors import AppError
from quasar.services.mail_service import (MailProviderService,
                                          MailTemplateService,
                                          extract_variables, render)


def _template(service, **overrides):
    data = {
        "name": "Order confirmation",
        "type": "ORDER_CONFIRMATION",
        "subject": "Order {{ order_number }} confirmed",
        "body": "Hi {{customer_name}}, your order {{ order_number }} totals {{ total }}.",
    }
    data.update(overrides)
    return service.create_template(data)


def test_extract_variables_in_order():
    assert extract_variables("{{ a }} {{b}}", "{{ a }} {{ c.d }}") == ["a", "b", "c.d"]
    assert extract_variables(None, "") == []


def test_render_reports_missing():
    text, missing = render("Hi {{ name }}, code {{ code }}", {"name": "Ada", "code": None})
    assert text == "Hi Ada, code {{ code }}"
    assert missing == ["code"]


def test_create_template_extracts_variables(db):
    template = _template(MailTemplateService(db))
    assert template.variables == ["order_number", "customer_name", "total"]
    assert template.is_active


def test_process_template(db):
    service = MailTemplateService(db)
    template = _template(service)

    result = service.process(template, {"order_number": "ORD1", "customer_name": "Ada"})
    assert result["subject"] == "Order ORD1 confirmed"
    assert result["body"] == "Hi Ada, your order ORD1 totals {{ total }}."
    assert result["missing_variables"] == ["total"]


def test_inactive_template_cannot_be_processed(db):
    service = MailTemplateService(db)
    template = _template(service, is_active=False)
    with pytest.raises(AppError) as exc_info:
        service.process(template, {})
    assert exc_info.value.status_code == 422


def test_clone_names(db):
    """Test that clones get unique '(copy)' names and start inactive"""
    service = MailTemplateService(db)
    template = _template(service)

    first = service.clone_template(template.id)
    second = service.clone_template(template.id)

    assert first.name == "Order confirmation (copy)"
    assert second.name == "Order confirmation (copy 2)"
    assert not first.is_active
    assert first.variables == template.variables


def test_duplicate_name_conflict(db):
    service = MailTemplateService(db)
    _template(service)
    with pytest.raises(AppError) as exc_info:
        _template(service)
    assert exc_info.value.status_code == 409


def test_update_recomputes_variables(db):
    service = MailTemplateService(db)
    template = _template(service)
    updated = service.update_template(template.id, {"body": "Thanks {{ first_name }}"})
    assert updated.variables == ["order_number", "first_name"]


def test_bulk_status(db):
    service = MailTemplateService(db)
    first = _template(service)
    second = _template(service, name="Shipping update")

    assert service.bulk_update_status([first.id, second.id], False) == 2
    items, total = service.list_templates(is_active=False)
    assert total == 2


def test_first_provider_is_default(db):
    service = MailProviderService(db)
    first = service.create_provider({"name": "SMTP", "from_email": "shop@example.com"})
    second = service.create_provider({"name": "Backup", "from_email": "shop@example.com"})

    assert first.is_default
    assert not second.is_default
    assert service.get_default().id == first.id


def test_single_default_provider(db):
    service = MailProviderService(db)
    first = service.create_provider({"name": "SMTP", "from_email": "shop@example.com"})
    second = service.create_provider({"name": "Backup", "from_email": "shop@example.com"})

    service.set_default(second.id)
    db.refresh(first)
    assert not first.is_default
    assert service.get_default().id == second.id


def test_default_provider_cannot_be_deleted(db):
    service = MailProviderService(db)
    first = service.create_provider({"name": "SMTP", "from_email": "shop@example.com"})
    second = service.create_provider({"name": "Backup", "from_email": "shop@example.com"})

    with pytest.raises(AppError) as exc_info:
        service.delete_provider(first.id)
    assert exc_info.value.status_code == 422

    service.delete_provider(second.id)
    _, total = service.list_providers()
    assert total == 1
