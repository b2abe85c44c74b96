"""
Reference data: countries, payment and delivery methods, warehouses
"""
from decimal import Decimal

from sqlalchemy.orm import Session

from quasar.models.customer import (DEFAULT_ADDRESS_BOOK_CONFIG,
                                    AddressBookConfig, Country)
from quasar.models.inventory import Warehouse
from quasar.models.order import (DeliveryCostType, DeliveryMethod, FeeType,
                                 PaymentMethod)
from quasar.seeders.base import BaseSeeder, SeedResult

# (ISO alpha-2, name, phone code)
COUNTRIES = [
    ("AR", "Argentina", "54"),
    ("AU", "Australia", "61"),
    ("AT", "Austria", "43"),
    ("BE", "Belgium", "32"),
    ("BR", "Brazil", "55"),
    ("CA", "Canada", "1"),
    ("CN", "China", "86"),
    ("DK", "Denmark", "45"),
    ("FI", "Finland", "358"),
    ("FR", "France", "33"),
    ("DE", "Germany", "49"),
    ("IN", "India", "91"),
    ("ID", "Indonesia", "62"),
    ("IE", "Ireland", "353"),
    ("IT", "Italy", "39"),
    ("JP", "Japan", "81"),
    ("KR", "South Korea", "82"),
    ("MY", "Malaysia", "60"),
    ("MX", "Mexico", "52"),
    ("NL", "Netherlands", "31"),
    ("NZ", "New Zealand", "64"),
    ("NO", "Norway", "47"),
    ("PH", "Philippines", "63"),
    ("PL", "Poland", "48"),
    ("PT", "Portugal", "351"),
    ("SG", "Singapore", "65"),
    ("ES", "Spain", "34"),
    ("SE", "Sweden", "46"),
    ("CH", "Switzerland", "41"),
    ("TH", "Thailand", "66"),
    ("GB", "United Kingdom", "44"),
    ("US", "United States", "1"),
    ("VN", "Vietnam", "84"),
]

# (code, name, description, processing fee, fee type)
PAYMENT_METHODS = [
    ("cod", "Cash on Delivery", "Pay the courier when the parcel arrives", Decimal("2.00"), FeeType.FIXED),
    ("bank_transfer", "Bank Transfer", "Transfer to the store account before shipping", Decimal("0.00"),
     FeeType.FIXED),
    ("card", "Credit / Debit Card", "Card payment at checkout", Decimal("1.50"), FeeType.PERCENTAGE),
]

# (code, name, description, price, cost type, estimated days, free delivery threshold)
DELIVERY_METHODS = [
    ("standard", "Standard Delivery", "Delivered by the regular courier", Decimal("5.00"),
     DeliveryCostType.FIXED, 5, Decimal("100.00")),
    ("express", "Express Delivery", "Next-day delivery in supported areas", Decimal("15.00"),
     DeliveryCostType.FIXED, 1, None),
    ("pickup", "Store Pickup", "Collect the order at the store", Decimal("0.00"),
     DeliveryCostType.FREE, None, None),
]

WAREHOUSES = [
    ("MAIN", "Main Warehouse", None, True),
]


class CountriesSeeder(BaseSeeder):
    """Adds missing countries with the default address book rules"""
    name = "countries"
    description = "ISO country list"

    def run(self, db: Session) -> SeedResult:
        result = SeedResult()
        existing = {code for (code,) in db.query(Country.code).all()}
        for code, name, phone_code in COUNTRIES:
            if code in existing:
                result.skipped += 1
                continue
            country = Country(code=code, name=name, phone_code=phone_code, is_active=True)
            for key, value in DEFAULT_ADDRESS_BOOK_CONFIG.items():
                country.address_book_configs.append(AddressBookConfig(config_key=key, value=value))
            db.add(country)
            result.created += 1
        db.flush()
        return result


class PaymentMethodsSeeder(BaseSeeder):
    name = "payment_methods"
    description = "Default payment methods"

    def run(self, db: Session) -> SeedResult:
        result = SeedResult()
        existing = {code for (code,) in db.query(PaymentMethod.code).all()}
        has_default = db.query(PaymentMethod).filter(PaymentMethod.is_default.is_(True)).first() is not None
        for sort_order, (code, name, description, fee, fee_type) in enumerate(PAYMENT_METHODS):
            if code in existing:
                result.skipped += 1
                continue
            db.add(PaymentMethod(code=code, name=name, description=description, is_active=True,
                                 is_default=not has_default, sort_order=sort_order,
                                 processing_fee=fee, processing_fee_type=fee_type.value))
            has_default = True
            result.created += 1
        db.flush()
        return result


class DeliveryMethodsSeeder(BaseSeeder):
    name = "delivery_methods"
    description = "Default delivery methods"

    def run(self, db: Session) -> SeedResult:
        result = SeedResult()
        existing = {code for (code,) in db.query(DeliveryMethod.code).all()}
        has_default = db.query(DeliveryMethod).filter(DeliveryMethod.is_default.is_(True)).first() is not None
        for sort_order, (code, name, description, price, cost_type, days, threshold) in enumerate(DELIVERY_METHODS):
            if code in existing:
                result.skipped += 1
                continue
            db.add(DeliveryMethod(code=code, name=name, description=description, price=price,
                                  cost_calculation_type=cost_type.value, free_delivery_threshold=threshold,
                                  estimated_days=days, is_active=True, is_default=not has_default,
                                  sort_order=sort_order))
            has_default = True
            result.created += 1
        db.flush()
        return result


class WarehousesSeeder(BaseSeeder):
    name = "warehouses"
    description = "Default warehouse"

    def run(self, db: Session) -> SeedResult:
        result = SeedResult()
        has_default = db.query(Warehouse).filter(Warehouse.is_default.is_(True)).first() is not None
        for code, name, address, is_default in WAREHOUSES:
            if db.query(Warehouse).filter(Warehouse.code == code).first():
                result.skipped += 1
                continue
            db.add(Warehouse(code=code, name=name, address=address, is_active=True,
                             is_default=is_default and not has_default))
            result.created += 1
        db.flush()
        return result
