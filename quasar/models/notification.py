"""
In-app notifications and per-user delivery preferences
"""
from enum import Enum

from sqlalchemy import (JSON, Boolean, Column, DateTime, ForeignKey, Index,
                        String, Text, UniqueConstraint, Uuid)

from quasar.core.database import Base
from quasar.models.base import TimestampMixin, UUIDPrimaryKeyMixin


class NotificationType(str, Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    ORDER = "ORDER"
    PRODUCT = "PRODUCT"
    USER = "USER"
    SYSTEM = "SYSTEM"
    PROMOTION = "PROMOTION"


class NotificationPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class NotificationChannel(str, Enum):
    IN_APP = "in_app"
    EMAIL = "email"
    PUSH = "push"


class Notification(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(30), nullable=False, default=NotificationType.INFO.value)
    priority = Column(String(10), nullable=False, default=NotificationPriority.MEDIUM.value)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    data = Column(JSON, nullable=True)
    action_url = Column(String(500), nullable=True)
    expires_at = Column(DateTime, nullable=True)


class NotificationPreference(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Channel switches for one notification type of one user"""
    __tablename__ = "notification_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "type", name="uq_notification_preferences_user_type"),
    )

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(30), nullable=False)
    in_app = Column(Boolean, nullable=False, default=True)
    email = Column(Boolean, nullable=False, default=True)
    push = Column(Boolean, nullable=False, default=False)

    def allows(self, channel: NotificationChannel) -> bool:
        return bool(getattr(self, channel.value))
