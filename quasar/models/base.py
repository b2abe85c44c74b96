"""
Column mixins shared by the commerce models
"""
from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, Uuid, func

from quasar.core.utils import utcnow


class UUIDPrimaryKeyMixin:
    id = Column(Uuid, primary_key=True, default=uuid4)


class TimestampMixin:
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow,
                        server_default=func.current_timestamp())


class AuditMixin:
    """Optimistic version counter and actor columns"""
    version = Column(Integer, nullable=False, default=1, server_default="1")
    created_by = Column(Uuid, nullable=True)
    updated_by = Column(Uuid, nullable=True)


class SoftDeleteMixin:
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(Uuid, nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, actor_id=None):
        self.deleted_at = utcnow()
        self.deleted_by = actor_id
