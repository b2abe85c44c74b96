"""
Mail providers and templates
"""
from enum import Enum

from sqlalchemy import JSON, Boolean, Column, Integer, String, Text

from quasar.core.database import Base
from quasar.models.base import (AuditMixin, SoftDeleteMixin, TimestampMixin,
                                UUIDPrimaryKeyMixin)


class MailProviderType(str, Enum):
    SMTP = "SMTP"
    SENDGRID = "SENDGRID"
    MAILGUN = "MAILGUN"
    SES = "SES"


class MailTemplateType(str, Enum):
    ORDER_CONFIRMATION = "ORDER_CONFIRMATION"
    ORDER_SHIPPED = "ORDER_SHIPPED"
    ORDER_DELIVERED = "ORDER_DELIVERED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    PASSWORD_RESET = "PASSWORD_RESET"
    WELCOME = "WELCOME"
    NEWSLETTER = "NEWSLETTER"
    CUSTOM = "CUSTOM"


class MailProvider(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "mail_providers"

    name = Column(String(100), unique=True, nullable=False)
    provider_type = Column(String(30), nullable=False, default=MailProviderType.SMTP.value)
    host = Column(String(255), nullable=True)
    port = Column(Integer, nullable=True)
    username = Column(String(255), nullable=True)
    password = Column(String(255), nullable=True)
    from_email = Column(String(255), nullable=False)
    from_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_default = Column(Boolean, nullable=False, default=False)
    config = Column(JSON, nullable=True)


class MailTemplate(UUIDPrimaryKeyMixin, TimestampMixin, AuditMixin, SoftDeleteMixin, Base):
    __tablename__ = "mail_templates"

    name = Column(String(150), unique=True, nullable=False)
    type = Column(String(50), nullable=False, default=MailTemplateType.CUSTOM.value)
    subject = Column(String(500), nullable=False)
    body = Column(Text, nullable=False)
    # Declared placeholder names, e.g. ["customer_name", "order_number"]
    variables = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    language = Column(String(10), nullable=False, default="en")
    description = Column(Text, nullable=True)
