"""
Notification service: in-app notifications, preferences and push delivery
"""
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.core.utils import utcnow
from quasar.models.notification import (Notification, NotificationChannel,
                                        NotificationPreference,
                                        NotificationType)
from quasar.models.user import User
from quasar.repositories.base import BaseRepository
from quasar.services.push_gateway import PushError, PushGateway

logger = LoggingConfig.get_logger(__name__)

_NOTIFICATION_FIELDS = ("title", "message", "type", "priority", "data", "action_url", "expires_at")


class NotificationService:
    """Service for user notifications"""

    def __init__(self, db: Session, push_gateway: Optional[PushGateway] = None):
        self.db = db
        self.notifications = BaseRepository(db, Notification)
        self.push_gateway = push_gateway or PushGateway()

    def create_notification(self, user_id: UUID, data: Dict[str, Any]) -> Notification:
        self._get_user(user_id)
        notification = self.notifications.create(
            user_id=user_id,
            **{key: data[key] for key in _NOTIFICATION_FIELDS if data.get(key) is not None},
        )
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def list_notifications(
        self,
        page: int = 1,
        limit: int = 20,
        user_id: Optional[UUID] = None,
        type: Optional[str] = None,
        is_read: Optional[bool] = None,
    ) -> Tuple[List[Notification], int]:
        query = self.notifications.query()
        if user_id:
            query = query.filter(Notification.user_id == user_id)
        if type:
            query = query.filter(Notification.type == type)
        if is_read is not None:
            query = query.filter(Notification.is_read.is_(is_read))
        return self.notifications.paginate(query.order_by(Notification.created_at.desc()), page, limit)

    def get_notification(self, notification_id: UUID, user_id: Optional[UUID] = None) -> Notification:
        query = self.notifications.query().filter(Notification.id == notification_id)
        if user_id:
            query = query.filter(Notification.user_id == user_id)
        notification = query.first()
        if not notification:
            raise AppError.not_found(ModuleCode.NOTIFICATION, "Notification", notification_id)
        return notification

    def mark_as_read(self, notification_id: UUID, user_id: Optional[UUID] = None) -> Notification:
        notification = self.get_notification(notification_id, user_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utcnow()
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_all_as_read(self, user_id: UUID) -> int:
        count = self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        ).update({"is_read": True, "read_at": utcnow()}, synchronize_session=False)
        self.db.commit()
        return count

    def delete_notification(self, notification_id: UUID, user_id: Optional[UUID] = None):
        notification = self.get_notification(notification_id, user_id)
        self.db.delete(notification)
        self.db.commit()

    def get_unread_count(self, user_id: UUID) -> int:
        return self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        ).count()

    def get_stats(self, user_id: Optional[UUID] = None) -> Dict[str, Any]:
        query = self.db.query(Notification)
        if user_id:
            query = query.filter(Notification.user_id == user_id)
        by_type = dict(
            query.with_entities(Notification.type, func.count(Notification.id)).group_by(Notification.type).all()
        )
        total = sum(by_type.values())
        unread = query.filter(Notification.is_read.is_(False)).count()
        return {"total": total, "unread": unread, "read": total - unread, "by_type": by_type}

    def cleanup_old(self, days: int = 30) -> int:
        """Delete read notifications older than `days` and every expired one"""
        if days < 1:
            raise AppError.validation(ModuleCode.NOTIFICATION, "days must be at least 1", OperationCode.DELETE)
        now = utcnow()
        old = self.db.query(Notification).filter(
            Notification.is_read.is_(True),
            Notification.created_at < now - timedelta(days=days),
        ).delete(synchronize_session=False)
        expired = self.db.query(Notification).filter(
            Notification.expires_at.isnot(None),
            Notification.expires_at < now,
        ).delete(synchronize_session=False)
        self.db.commit()
        logger.info(f"Notification cleanup removed {old + expired} row(s)")
        return old + expired

    # Preferences

    def get_preferences(self, user_id: UUID) -> List[NotificationPreference]:
        return self.db.query(NotificationPreference).filter(
            NotificationPreference.user_id == user_id
        ).order_by(NotificationPreference.type).all()

    def initialize_preferences(self, user_id: UUID) -> List[NotificationPreference]:
        """Create an all-enabled preference row for every type the user lacks"""
        self._get_user(user_id)
        existing = {pref.type for pref in self.get_preferences(user_id)}
        for notification_type in NotificationType:
            if notification_type.value not in existing:
                self.db.add(NotificationPreference(
                    user_id=user_id, type=notification_type.value, in_app=True, email=True, push=True
                ))
        self.db.commit()
        return self.get_preferences(user_id)

    def update_preference(self, user_id: UUID, type: str, channels: Dict[str, bool]) -> NotificationPreference:
        if type not in {t.value for t in NotificationType}:
            raise AppError.validation(ModuleCode.NOTIFICATION, f"Unknown notification type: {type}",
                                      OperationCode.UPDATE)
        preference = self.db.query(NotificationPreference).filter(
            NotificationPreference.user_id == user_id,
            NotificationPreference.type == type,
        ).first()
        if preference is None:
            preference = NotificationPreference(user_id=user_id, type=type, in_app=True, email=True, push=True)
            self.db.add(preference)
        for channel in NotificationChannel:
            if channels.get(channel.value) is not None:
                setattr(preference, channel.value, bool(channels[channel.value]))
        self.db.commit()
        self.db.refresh(preference)
        return preference

    def is_enabled(self, user_id: UUID, type: str, channel: NotificationChannel) -> bool:
        """Missing preferences count as enabled"""
        preference = self.db.query(NotificationPreference).filter(
            NotificationPreference.user_id == user_id,
            NotificationPreference.type == type,
        ).first()
        return True if preference is None else preference.allows(channel)

    def send_to_user(self, user_id: UUID, data: Dict[str, Any]) -> Optional[Notification]:
        """
        Deliver a notification through the channels the user allows

        Stores the in-app notification and pushes to the user's FCM tokens.
        Push failures are logged and do not fail the call.
        """
        user = self._get_user(user_id)
        notification_type = data.get("type") or NotificationType.INFO.value

        notification = None
        if self.is_enabled(user.id, notification_type, NotificationChannel.IN_APP):
            notification = self.create_notification(user.id, {**data, "type": notification_type})

        if self.is_enabled(user.id, notification_type, NotificationChannel.PUSH) and user.fcm_tokens:
            push_data = {"type": notification_type}
            if notification is not None:
                push_data["notification_id"] = str(notification.id)
            if data.get("action_url"):
                push_data["action_url"] = data["action_url"]
            try:
                result = self.push_gateway.send(list(user.fcm_tokens), data["title"], data["message"], push_data)
            except PushError as e:
                logger.warning(f"Push to user {user.id} failed: {e}")
            else:
                if result.invalid_tokens:
                    user.fcm_tokens = [t for t in user.fcm_tokens if t not in result.invalid_tokens]
                    self.db.commit()
                    logger.info(f"Removed {len(result.invalid_tokens)} stale FCM token(s) of user {user.id}")
        return notification

    def register_fcm_token(self, user_id: UUID, token: str) -> List[str]:
        user = self._get_user(user_id)
        tokens = list(user.fcm_tokens or [])
        if token not in tokens:
            tokens.append(token)
            user.fcm_tokens = tokens
            self.db.commit()
        return tokens

    def _get_user(self, user_id: UUID) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise AppError.not_found(ModuleCode.USER, "User", user_id)
        return user
