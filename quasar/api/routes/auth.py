"""
Authentication API routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from quasar.core.auth import SESSION_COOKIE, get_current_user_required, get_token, security
from quasar.core.config import get_settings
from quasar.core.database import get_db
from quasar.core.logging_config import LoggingConfig
from quasar.core.responses import ResponseService
from quasar.models.user import User
from quasar.services.auth_service import AuthService

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# Request/Response models
class LoginRequest(BaseModel):
    """User login request"""
    username: str = Field(..., min_length=1)  # Can be username or email
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """User response model"""
    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool
    roles: List[str]
    permissions: List[str]
    last_login: Optional[str] = None


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        is_active=user.is_active,
        roles=user.role_codes,
        permissions=AuthService.get_permissions(user),
        last_login=user.last_login.isoformat() if user.last_login else None,
    )


@router.post("/login")
async def login(
    request: LoginRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    """Login and create a session"""
    auth_service = AuthService(db)

    user = auth_service.authenticate(request.username, request.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )

    session = auth_service.create_session(user.id)

    response.set_cookie(
        key=SESSION_COOKIE,
        value=session.token,
        httponly=True,
        secure=get_settings().app_env == "production",
        samesite="lax",
        max_age=auth_service.session_duration_hours * 60 * 60,
    )
    logger.info(f"User {user.username} logged in")

    return ResponseService.success({
        "token": session.token,
        "expires_at": session.expires_at.isoformat(),
        "user": _user_response(user),
    })


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
):
    """Logout and delete session"""
    token = get_token(request, credentials)
    if token:
        AuthService(db).delete_session(token)
    response.delete_cookie(key=SESSION_COOKIE)
    return ResponseService.success({"message": "Logged out successfully"})


@router.get("/me")
async def get_current_user_info(user: User = Depends(get_current_user_required)):
    """Get current user information"""
    return ResponseService.success(_user_response(user))
