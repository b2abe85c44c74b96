"""
Customers, countries and the address book
"""
from enum import Enum

from sqlalchemy import (Boolean, CheckConstraint, Column, DateTime, ForeignKey,
                        Integer, Numeric, String, Text, UniqueConstraint, Uuid)
from sqlalchemy.orm import relationship

from quasar.core.database import Base
from quasar.models.base import (AuditMixin, SoftDeleteMixin, TimestampMixin,
                                UUIDPrimaryKeyMixin)


class CustomerStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    BLOCKED = "BLOCKED"


class CustomerType(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    BUSINESS = "BUSINESS"


class AddressType(str, Enum):
    BILLING = "BILLING"
    SHIPPING = "SHIPPING"
    BOTH = "BOTH"


class AddressBookConfigKey(str, Enum):
    """Per-country address rules"""
    REQUIRE_POSTAL_CODE = "REQUIRE_POSTAL_CODE"
    REQUIRE_PHONE = "REQUIRE_PHONE"
    REQUIRE_COMPANY = "REQUIRE_COMPANY"
    ALLOW_ADDRESS_LINE_2 = "ALLOW_ADDRESS_LINE_2"
    REQUIRE_DELIVERY_INSTRUCTIONS = "REQUIRE_DELIVERY_INSTRUCTIONS"
    MAX_ADDRESS_BOOK_ENTRIES = "MAX_ADDRESS_BOOK_ENTRIES"
    DEFAULT_ADDRESS_TYPE = "DEFAULT_ADDRESS_TYPE"
    REQUIRE_ADMINISTRATIVE_DIVISIONS = "REQUIRE_ADMINISTRATIVE_DIVISIONS"


# Values inserted for every country when the config table is introduced
DEFAULT_ADDRESS_BOOK_CONFIG = {
    AddressBookConfigKey.REQUIRE_POSTAL_CODE.value: "FALSE",
    AddressBookConfigKey.REQUIRE_PHONE.value: "FALSE",
    AddressBookConfigKey.REQUIRE_COMPANY.value: "FALSE",
    AddressBookConfigKey.ALLOW_ADDRESS_LINE_2.value: "TRUE",
    AddressBookConfigKey.REQUIRE_DELIVERY_INSTRUCTIONS.value: "FALSE",
    AddressBookConfigKey.MAX_ADDRESS_BOOK_ENTRIES.value: "10",
    AddressBookConfigKey.DEFAULT_ADDRESS_TYPE.value: AddressType.BOTH.value,
    AddressBookConfigKey.REQUIRE_ADMINISTRATIVE_DIVISIONS.value: "TRUE",
}


class Country(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "countries"

    code = Column(String(2), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    phone_code = Column(String(10), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    address_book_configs = relationship("AddressBookConfig", back_populates="country", cascade="all, delete-orphan")


class Customer(UUIDPrimaryKeyMixin, TimestampMixin, AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "customers"

    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone_number = Column(String(50), nullable=True)
    company_name = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=CustomerStatus.ACTIVE.value)
    customer_type = Column(String(20), nullable=False, default=CustomerType.INDIVIDUAL.value)
    marketing_opt_in = Column(Boolean, nullable=False, default=False)
    total_orders = Column(Integer, nullable=False, default=0)
    total_spent = Column(Numeric(12, 2), nullable=False, default=0)
    last_order_at = Column(DateTime, nullable=True)
    loyalty_points = Column(Integer, nullable=False, default=0, server_default="0")
    notes = Column(Text, nullable=True)

    addresses = relationship("AddressBook", back_populates="customer", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class AddressBook(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "address_book"

    customer_id = Column(Uuid, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    country_id = Column(Uuid, ForeignKey("countries.id"), nullable=False)
    config_id = Column(Uuid, ForeignKey("address_book_config.id", ondelete="SET NULL",
                                        name="fk_address_book_config_id"), nullable=True)
    address_type = Column(String(20), nullable=False, default=AddressType.BOTH.value)
    label = Column(String(100), nullable=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    company = Column(String(255), nullable=True)
    address_line_1 = Column(String(255), nullable=False)
    address_line_2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=False)
    province = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    phone = Column(String(50), nullable=True)
    delivery_instructions = Column(Text, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)

    customer = relationship("Customer", back_populates="addresses")
    country = relationship("Country")

    def as_snapshot(self) -> dict:
        """Address copy stored on orders"""
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "company": self.company,
            "address_line_1": self.address_line_1,
            "address_line_2": self.address_line_2,
            "city": self.city,
            "province": self.province,
            "postal_code": self.postal_code,
            "country_code": self.country.code if self.country else None,
            "phone": self.phone,
        }


class AddressBookConfig(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "address_book_config"
    __table_args__ = (
        UniqueConstraint("country_id", "config_key", name="uq_address_book_config_country_key"),
        CheckConstraint(
            "config_key IN ({})".format(", ".join(f"'{key.value}'" for key in AddressBookConfigKey)),
            name="ck_address_book_config_key",
        ),
    )

    country_id = Column(Uuid, ForeignKey("countries.id", ondelete="CASCADE"), nullable=False)
    config_key = Column(String(60), nullable=False)
    value = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    country = relationship("Country", back_populates="address_book_configs")

    @property
    def as_bool(self) -> bool:
        return str(self.value).strip().upper() == "TRUE"
