"""
Tests for CustomerService and the address book rules
"""
import pytest

from quasar.core.errors import AppError
from quasar.models.customer import AddressBookConfig, AddressBookConfigKey, Country
from quasar.services.customer_service import CustomerService


@pytest.fixture
def country(db):
    country = Country(code="DE", name="Germany", phone_code="+49")
    db.add(country)
    db.commit()
    return country


@pytest.fixture
def customer(db):
    return CustomerService(db).create_customer({"email": "Kim@Example.com", "first_name": "Kim", "last_name": "Lee"})


def _address(country, **overrides):
    data = {
        "country_id": country.id,
        "first_name": "Kim",
        "last_name": "Lee",
        "address_line_1": "Hauptstrasse 1",
        "city": "Berlin",
    }
    data.update(overrides)
    return data


def _configure(db, country, key, value):
    db.add(AddressBookConfig(country_id=country.id, config_key=key.value, value=value))
    db.commit()


def test_create_customer_normalizes_email(db, customer):
    assert customer.email == "kim@example.com"
    with pytest.raises(AppError) as exc_info:
        CustomerService(db).create_customer({"email": "KIM@example.com", "first_name": "K", "last_name": "L"})
    assert exc_info.value.status_code == 409


def test_first_address_becomes_default(db, country, customer):
    service = CustomerService(db)
    first = service.add_address(customer.id, _address(country))
    second = service.add_address(customer.id, _address(country, city="Hamburg"))

    assert first.is_default
    assert not second.is_default
    assert first.address_type == "BOTH"


def test_new_default_clears_previous(db, country, customer):
    service = CustomerService(db)
    first = service.add_address(customer.id, _address(country))
    second = service.add_address(customer.id, _address(country, city="Hamburg", is_default=True))

    db.refresh(first)
    assert second.is_default
    assert not first.is_default


def test_address_book_limit(db, country, customer):
    """Test MAX_ADDRESS_BOOK_ENTRIES is enforced per country config"""
    _configure(db, country, AddressBookConfigKey.MAX_ADDRESS_BOOK_ENTRIES, "2")
    service = CustomerService(db)
    service.add_address(customer.id, _address(country))
    service.add_address(customer.id, _address(country))

    with pytest.raises(AppError) as exc_info:
        service.add_address(customer.id, _address(country))
    assert exc_info.value.status_code == 422
    assert exc_info.value.details["max_entries"] == 2


def test_required_fields(db, country, customer):
    _configure(db, country, AddressBookConfigKey.REQUIRE_POSTAL_CODE, "TRUE")
    _configure(db, country, AddressBookConfigKey.REQUIRE_PHONE, "TRUE")
    service = CustomerService(db)

    with pytest.raises(AppError) as exc_info:
        service.add_address(customer.id, _address(country))
    assert exc_info.value.status_code == 400
    assert exc_info.value.details["fields"] == ["postal_code", "phone"]

    address = service.add_address(customer.id, _address(country, postal_code="10115", phone="+4930123"))
    assert address.postal_code == "10115"


def test_update_address_keeps_required_fields(db, country, customer):
    service = CustomerService(db)
    address = service.add_address(customer.id, _address(country, postal_code="10115"))
    _configure(db, country, AddressBookConfigKey.REQUIRE_POSTAL_CODE, "TRUE")

    updated = service.update_address(customer.id, address.id, {"city": "Potsdam"})
    assert updated.city == "Potsdam"
    with pytest.raises(AppError):
        service.update_address(customer.id, address.id, {"postal_code": None})


def test_config_defaults(db, country):
    config = CustomerService(db).get_address_config(country.id)
    assert config[AddressBookConfigKey.MAX_ADDRESS_BOOK_ENTRIES.value] == "10"
    assert config[AddressBookConfigKey.REQUIRE_POSTAL_CODE.value] == "FALSE"


def test_delete_default_promotes_next(db, country, customer):
    service = CustomerService(db)
    first = service.add_address(customer.id, _address(country))
    second = service.add_address(customer.id, _address(country, city="Hamburg"))

    service.delete_address(customer.id, first.id)
    db.refresh(second)
    assert second.is_default
    assert [a.id for a in service.list_addresses(customer.id)] == [second.id]


def test_set_default_address(db, country, customer):
    service = CustomerService(db)
    first = service.add_address(customer.id, _address(country))
    second = service.add_address(customer.id, _address(country, city="Hamburg"))

    service.set_default_address(customer.id, second.id)
    db.refresh(first)
    assert not first.is_default
    assert service.list_addresses(customer.id)[0].id == second.id


def test_unknown_country(db, customer):
    from uuid import uuid4

    with pytest.raises(AppError) as exc_info:
        CustomerService(db).add_address(customer.id, {"country_id": uuid4(), "first_name": "K",
                                                      "last_name": "L", "address_line_1": "x", "city": "y"})
    assert exc_info.value.status_code == 404


def test_stats_and_soft_delete(db, customer):
    service = CustomerService(db)
    assert service.get_stats()["total"] == 1

    service.delete_customer(customer.id)
    assert service.get_stats()["total"] == 0
    with pytest.raises(AppError):
        service.get_customer(customer.id)
