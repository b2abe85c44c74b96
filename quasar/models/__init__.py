"""
SQLAlchemy models
"""
from quasar.core.database import Base
from quasar.models.catalog import (Category, Product,  # noqa: F401
                                   ProductStatus, ProductVariant, Supplier)
from quasar.models.cms import (ComponentCategory, ComponentConfig,  # noqa: F401
                               ComponentType, Section, SectionTranslation)
from quasar.models.customer import (DEFAULT_ADDRESS_BOOK_CONFIG,  # noqa: F401
                                    AddressBook, AddressBookConfig,
                                    AddressBookConfigKey, AddressType,
                                    Country, Customer, CustomerStatus,
                                    CustomerType)
from quasar.models.fulfillment import (DeliveryTracking,  # noqa: F401
                                       FulfillmentItem, FulfillmentPriority,
                                       FulfillmentStatus, OrderFulfillment,
                                       ShippingProvider)
from quasar.models.inventory import InventoryItem, Warehouse  # noqa: F401
from quasar.models.loyalty import (LoyaltyReward, LoyaltyTier,  # noqa: F401
                                   LoyaltyTransaction,
                                   LoyaltyTransactionType, RewardType)
from quasar.models.mail import (MailProvider, MailProviderType,  # noqa: F401
                                MailTemplate, MailTemplateType)
from quasar.models.notification import (Notification,  # noqa: F401
                                        NotificationChannel,
                                        NotificationPreference,
                                        NotificationPriority,
                                        NotificationType)
from quasar.models.order import (DeliveryCostType,  # noqa: F401
                                 DeliveryMethod, FeeType, Order, OrderItem,
                                 OrderSource, OrderStatus, PaymentMethod,
                                 PaymentStatus)
from quasar.models.user import (Permission, PermissionAction,  # noqa: F401
                                PermissionScope, Role, RoleCode, User,
                                UserSession, role_permissions, user_roles)

__all__ = ["Base"]
