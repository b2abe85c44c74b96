"""
Authentication service for users and login sessions
"""
import secrets
from datetime import timedelta
from typing import List, Optional, Sequence
from uuid import UUID

import bcrypt
from sqlalchemy import or_
from sqlalchemy.orm import Session

from quasar.core.config import get_settings
from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.core.utils import utcnow
from quasar.models.user import Role, RoleCode, User, UserSession

logger = LoggingConfig.get_logger(__name__)


class AuthService:
    """Service for user authentication and session management"""

    def __init__(self, db: Session):
        self.db = db
        self.session_duration_hours = get_settings().session_duration_hours

    def register_user(
        self,
        username: str,
        email: str,
        password: str,
        role_codes: Sequence[str] = (RoleCode.USER.value,),
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        """
        Register a new user

        Args:
            username: Username
            email: Email address
            password: Plain text password
            role_codes: Codes of existing roles to grant

        Raises:
            AppError: conflict when username or email is taken
        """
        if self.db.query(User).filter(User.username == username).first():
            raise AppError.conflict(ModuleCode.USER, f"Username '{username}' already exists",
                                    OperationCode.REGISTER)
        if self.db.query(User).filter(User.email == email).first():
            raise AppError.conflict(ModuleCode.USER, f"Email '{email}' already exists", OperationCode.REGISTER)

        roles = self.db.query(Role).filter(Role.code.in_(list(role_codes))).all() if role_codes else []

        user = User(
            username=username,
            email=email,
            password_hash=self.hash_password(password),
            first_name=first_name,
            last_name=last_name,
            is_active=True,
        )
        user.roles = roles
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Registered new user: {username} (roles: {', '.join(r.code for r in roles) or '-'})")
        return user

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user for valid credentials (username or email), None otherwise"""
        user = self.db.query(User).filter(
            or_(User.username == username, User.email == username)
        ).first()

        if not user:
            logger.warning(f"Authentication failed: user '{username}' not found")
            return None

        if not user.is_active:
            logger.warning(f"Authentication failed: user '{username}' is inactive")
            return None

        if not self.verify_password(password, user.password_hash):
            logger.warning(f"Authentication failed: invalid password for user '{username}'")
            return None

        user.last_login = utcnow()
        self.db.commit()

        logger.info(f"User '{username}' authenticated successfully")
        return user

    def create_session(self, user_id: UUID, duration_hours: Optional[int] = None) -> UserSession:
        token = secrets.token_urlsafe(32)
        duration = duration_hours or self.session_duration_hours
        session = UserSession(
            user_id=user_id,
            token=token,
            expires_at=utcnow() + timedelta(hours=duration),
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)

        logger.info(f"Created session for user {user_id}")
        return session

    def validate_session(self, token: str) -> Optional[User]:
        """
        Validate a session token and return the associated user

        Expired sessions are deleted. Inactive users are rejected.
        """
        session = self.db.query(UserSession).filter(UserSession.token == token).first()
        if not session:
            return None

        if session.expires_at < utcnow():
            logger.info(f"Session {session.id} expired")
            self.db.delete(session)
            self.db.commit()
            return None

        session.last_activity = utcnow()
        self.db.commit()

        user = self.db.query(User).filter(User.id == session.user_id).first()
        if not user or not user.is_active:
            return None
        return user

    def delete_session(self, token: str) -> bool:
        session = self.db.query(UserSession).filter(UserSession.token == token).first()
        if not session:
            return False
        self.db.delete(session)
        self.db.commit()
        logger.info(f"Session {session.id} invalidated")
        return True

    def cleanup_expired_sessions(self) -> int:
        count = self.db.query(UserSession).filter(UserSession.expires_at < utcnow()).delete(
            synchronize_session=False
        )
        self.db.commit()
        if count:
            logger.info(f"Cleaned up {count} expired sessions")
        return count

    @staticmethod
    def get_permissions(user: User) -> List[str]:
        """Names of the active permissions granted through the user's active roles"""
        names = {
            permission.name
            for role in user.roles if role.is_active
            for permission in role.permissions if permission.is_active
        }
        return sorted(names)

    @staticmethod
    def hash_password(password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            logger.error(f"Error verifying password: {e}")
            return False
