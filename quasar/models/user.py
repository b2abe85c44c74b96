"""
Users, roles, permissions and sessions
"""
from enum import Enum
from uuid import uuid4

from sqlalchemy import (JSON, Boolean, Column, DateTime, ForeignKey, String,
                        Table, Text, Uuid, func)
from sqlalchemy.orm import relationship

from quasar.core.database import Base
from quasar.core.utils import utcnow
from quasar.models.base import TimestampMixin, UUIDPrimaryKeyMixin


class RoleCode(str, Enum):
    """Built-in role codes"""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    GUEST = "guest"


class PermissionAction(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class PermissionScope(str, Enum):
    OWN = "own"
    ANY = "any"


role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", Uuid, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime, nullable=False, default=utcnow, server_default=func.current_timestamp()),
)

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime, nullable=False, default=utcnow, server_default=func.current_timestamp()),
)


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Admin / storefront account"""
    __tablename__ = "users"

    username = Column(String(100), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime, nullable=True)
    # FCM registration tokens of the user's browsers/devices
    fcm_tokens = Column(JSON, nullable=True)

    roles = relationship("Role", secondary=user_roles, back_populates="users", lazy="selectin")
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")

    @property
    def role_codes(self):
        return sorted(role.code for role in self.roles)

    @property
    def is_super_admin(self) -> bool:
        return RoleCode.SUPER_ADMIN.value in self.role_codes

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"


class Role(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "roles"

    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    users = relationship("User", secondary=user_roles, back_populates="roles")
    permissions = relationship("Permission", secondary=role_permissions, back_populates="roles", lazy="selectin")

    def __repr__(self):
        return f"<Role(code={self.code})>"


class Permission(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Permission named `action:scope:resource`, e.g. `read:any:order`"""
    __tablename__ = "permissions"

    name = Column(String(150), unique=True, nullable=False)
    resource = Column(String(100), nullable=False)
    action = Column(String(50), nullable=False)
    scope = Column(String(20), nullable=False, default=PermissionScope.ANY.value)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    roles = relationship("Role", secondary=role_permissions, back_populates="permissions")

    @staticmethod
    def build_name(action: str, scope: str, resource: str) -> str:
        return f"{action}:{scope}:{resource}"

    def __repr__(self):
        return f"<Permission(name={self.name})>"


class UserSession(Base):
    """Login session identified by an opaque token"""
    __tablename__ = "user_sessions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(255), unique=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.current_timestamp())
    last_activity = Column(DateTime, nullable=False, default=utcnow, server_default=func.current_timestamp())

    user = relationship("User", back_populates="sessions")

    def __repr__(self):
        return f"<UserSession(id={self.id}, user_id={self.user_id}, expires_at={self.expires_at})>"
