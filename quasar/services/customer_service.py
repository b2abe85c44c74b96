"""
Customer service: customers, statistics and the address book
"""
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.models.customer import (DEFAULT_ADDRESS_BOOK_CONFIG, AddressBook,
                                    AddressBookConfig, AddressBookConfigKey,
                                    Country, Customer, CustomerStatus)
from quasar.repositories.base import BaseRepository

logger = LoggingConfig.get_logger(__name__)


class CustomerService:
    """Service for managing customers and their addresses"""

    def __init__(self, db: Session):
        self.db = db
        self.customers = BaseRepository(db, Customer)

    def list_customers(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        status: Optional[str] = None,
        customer_type: Optional[str] = None,
    ) -> Tuple[List[Customer], int]:
        query = self.customers.query()
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Customer.email.ilike(pattern),
                Customer.first_name.ilike(pattern),
                Customer.last_name.ilike(pattern),
                Customer.phone_number.ilike(pattern),
                Customer.company_name.ilike(pattern),
            ))
        if status:
            query = query.filter(Customer.status == status)
        if customer_type:
            query = query.filter(Customer.customer_type == customer_type)
        return self.customers.paginate(query.order_by(Customer.created_at.desc()), page, limit)

    def get_customer(self, customer_id: UUID) -> Customer:
        customer = self.customers.find_by_id(customer_id)
        if not customer:
            raise AppError.not_found(ModuleCode.CUSTOMER, "Customer", customer_id)
        return customer

    def create_customer(self, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> Customer:
        email = data["email"].lower()
        if self.db.query(Customer).filter(func.lower(Customer.email) == email).first():
            raise AppError.conflict(ModuleCode.CUSTOMER, f"Customer with email '{email}' already exists",
                                    email=email)
        customer = self.customers.create(**{**data, "email": email}, created_by=actor_id, updated_by=actor_id)
        self.db.commit()
        self.db.refresh(customer)
        logger.info(f"Created customer {customer.email}")
        return customer

    def update_customer(self, customer_id: UUID, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> Customer:
        customer = self.get_customer(customer_id)
        if "email" in data and data["email"]:
            data = {**data, "email": data["email"].lower()}
            if data["email"] != customer.email and self.db.query(Customer).filter(
                func.lower(Customer.email) == data["email"]
            ).first():
                raise AppError.conflict(ModuleCode.CUSTOMER, f"Customer with email '{data['email']}' already exists",
                                        OperationCode.UPDATE)
        self.customers.update(customer, data, actor_id)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def delete_customer(self, customer_id: UUID, actor_id: Optional[UUID] = None):
        customer = self.get_customer(customer_id)
        self.customers.soft_delete(customer, actor_id)
        self.db.commit()
        logger.info(f"Deleted customer {customer.email}")

    def get_stats(self) -> Dict[str, Any]:
        query = self.customers.query()
        by_status = dict(
            self.db.query(Customer.status, func.count(Customer.id))
            .filter(Customer.deleted_at.is_(None))
            .group_by(Customer.status)
            .all()
        )
        return {
            "total": query.count(),
            "active": by_status.get(CustomerStatus.ACTIVE.value, 0),
            "inactive": by_status.get(CustomerStatus.INACTIVE.value, 0),
            "blocked": by_status.get(CustomerStatus.BLOCKED.value, 0),
            "with_orders": query.filter(Customer.total_orders > 0).count(),
            "marketing_opt_in": query.filter(Customer.marketing_opt_in.is_(True)).count(),
        }

    # Address book

    def list_addresses(self, customer_id: UUID) -> List[AddressBook]:
        self.get_customer(customer_id)
        return self.db.query(AddressBook).filter(AddressBook.customer_id == customer_id).order_by(
            AddressBook.is_default.desc(), AddressBook.created_at
        ).all()

    def get_address_config(self, country_id: UUID) -> Dict[str, str]:
        """Address rules of a country; keys without a row use the defaults"""
        config = dict(DEFAULT_ADDRESS_BOOK_CONFIG)
        rows = self.db.query(AddressBookConfig).filter(AddressBookConfig.country_id == country_id).all()
        config.update({row.config_key: row.value for row in rows})
        return config

    def add_address(self, customer_id: UUID, data: Dict[str, Any]) -> AddressBook:
        customer = self.get_customer(customer_id)
        country = self._get_country(data["country_id"])
        config = self.get_address_config(country.id)

        existing = self.db.query(AddressBook).filter(AddressBook.customer_id == customer.id).count()
        max_entries = int(config[AddressBookConfigKey.MAX_ADDRESS_BOOK_ENTRIES.value])
        if existing >= max_entries:
            raise AppError.business(
                ModuleCode.ADDRESS_BOOK,
                f"Address book is limited to {max_entries} entries for {country.code}",
                OperationCode.CREATE,
                max_entries=max_entries,
            )
        self._validate_address(data, config)

        values = dict(data)
        values.setdefault("address_type", config[AddressBookConfigKey.DEFAULT_ADDRESS_TYPE.value])
        if existing == 0:
            values["is_default"] = True
        elif values.get("is_default"):
            self._clear_default_address(customer.id)

        config_row = self.db.query(AddressBookConfig).filter(
            AddressBookConfig.country_id == country.id,
            AddressBookConfig.config_key == AddressBookConfigKey.MAX_ADDRESS_BOOK_ENTRIES.value,
        ).first()

        address = AddressBook(customer_id=customer.id, config_id=config_row.id if config_row else None, **values)
        self.db.add(address)
        self.db.commit()
        self.db.refresh(address)
        logger.info(f"Added address {address.id} for customer {customer.email}")
        return address

    def update_address(self, customer_id: UUID, address_id: UUID, data: Dict[str, Any]) -> AddressBook:
        address = self._get_address(customer_id, address_id)
        country_id = data.get("country_id") or address.country_id
        self._get_country(country_id)
        merged = {
            column: getattr(address, column)
            for column in ("postal_code", "phone", "company")
        }
        merged.update(data)
        self._validate_address(merged, self.get_address_config(country_id))

        if data.get("is_default"):
            self._clear_default_address(customer_id, exclude=address.id)
        for key, value in data.items():
            setattr(address, key, value)
        self.db.commit()
        self.db.refresh(address)
        return address

    def delete_address(self, customer_id: UUID, address_id: UUID):
        address = self._get_address(customer_id, address_id)
        was_default = address.is_default
        self.db.delete(address)
        self.db.flush()
        if was_default:
            replacement = self.db.query(AddressBook).filter(
                AddressBook.customer_id == customer_id
            ).order_by(AddressBook.created_at).first()
            if replacement:
                replacement.is_default = True
        self.db.commit()

    def set_default_address(self, customer_id: UUID, address_id: UUID) -> AddressBook:
        address = self._get_address(customer_id, address_id)
        self._clear_default_address(customer_id, exclude=address.id)
        address.is_default = True
        self.db.commit()
        self.db.refresh(address)
        return address

    def _validate_address(self, data: Dict[str, Any], config: Dict[str, str]):
        required = {
            AddressBookConfigKey.REQUIRE_POSTAL_CODE.value: "postal_code",
            AddressBookConfigKey.REQUIRE_PHONE.value: "phone",
            AddressBookConfigKey.REQUIRE_COMPANY.value: "company",
        }
        missing = [
            field for key, field in required.items()
            if str(config.get(key, "FALSE")).upper() == "TRUE" and not data.get(field)
        ]
        if missing:
            raise AppError.validation(
                ModuleCode.ADDRESS_BOOK,
                f"Missing required address fields: {', '.join(missing)}",
                OperationCode.VALIDATE,
                fields=missing,
            )

    def _get_country(self, country_id: UUID) -> Country:
        country = self.db.query(Country).filter(Country.id == country_id).first()
        if not country:
            raise AppError.not_found(ModuleCode.ADDRESS_BOOK, "Country", country_id)
        return country

    def _get_address(self, customer_id: UUID, address_id: UUID) -> AddressBook:
        address = self.db.query(AddressBook).filter(
            AddressBook.id == address_id,
            AddressBook.customer_id == customer_id,
        ).first()
        if not address:
            raise AppError.not_found(ModuleCode.ADDRESS_BOOK, "Address", address_id)
        return address

    def _clear_default_address(self, customer_id: UUID, exclude: Optional[UUID] = None):
        query = self.db.query(AddressBook).filter(
            AddressBook.customer_id == customer_id,
            AddressBook.is_default.is_(True),
        )
        if exclude:
            query = query.filter(AddressBook.id != exclude)
        for address in query.all():
            address.is_default = False
