"""
Permission checking utilities

Permissions are named `action:scope:resource` (e.g. `update:any:order`).
A permission with scope `any` also satisfies the same action on scope `own`.
"""
from typing import Iterable

from fastapi import Depends

from quasar.core.auth import get_current_user_required
from quasar.core.errors import (AppError, ErrorLevelCode, ModuleCode,
                                OperationCode)
from quasar.core.logging_config import LoggingConfig
from quasar.models.user import PermissionScope, User
from quasar.services.auth_service import AuthService

logger = LoggingConfig.get_logger(__name__)


def _implied(name: str) -> Iterable[str]:
    yield name
    parts = name.split(":")
    if len(parts) == 3 and parts[1] == PermissionScope.OWN.value:
        yield f"{parts[0]}:{PermissionScope.ANY.value}:{parts[2]}"


def has_permission(user: User, permission: str) -> bool:
    """Check whether the user holds `permission`; super_admin holds everything"""
    if user is None or not user.is_active:
        return False
    if user.is_super_admin:
        return True
    granted = set(AuthService.get_permissions(user))
    return any(name in granted for name in _implied(permission))


def require_permission(permission: str):
    """
    Dependency factory for permission-protected routes

    Usage:
        @router.get("", dependencies=[Depends(require_permission("read:any:order"))])
    """

    async def dependency(user: User = Depends(get_current_user_required)) -> User:
        if not has_permission(user, permission):
            logger.warning(f"User {user.username} denied: missing permission {permission}")
            raise AppError(
                f"Missing permission: {permission}",
                ModuleCode.PERMISSION,
                OperationCode.VERIFY,
                ErrorLevelCode.FORBIDDEN,
                {"permission": permission},
            )
        return user

    return dependency
