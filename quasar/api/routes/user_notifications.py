"""
Notification API routes for the signed-in user
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.api.routes.admin_notifications import NotificationResponse
from quasar.core.auth import get_current_user_required
from quasar.core.database import get_db
from quasar.core.responses import ResponseService
from quasar.models.notification import NotificationType
from quasar.models.user import User
from quasar.services.notification_service import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


class PreferenceUpdate(BaseModel):
    type: NotificationType
    in_app: Optional[bool] = None
    email: Optional[bool] = None
    push: Optional[bool] = None


class TokenRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=4096)


class PreferenceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: str
    in_app: bool
    email: bool
    push: bool


@router.get("")
async def my_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_read: Optional[bool] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_required),
):
    items, total = NotificationService(db).list_notifications(page=page, limit=limit, user_id=user.id,
                                                              is_read=is_read)
    return ResponseService.list([NotificationResponse.model_validate(n) for n in items], total, page, limit)


@router.get("/unread-count")
async def unread_count(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_required),
):
    return ResponseService.success({"count": NotificationService(db).get_unread_count(user.id)})


@router.post("/read-all")
async def mark_all_as_read(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_required),
):
    return ResponseService.success({"updated": NotificationService(db).mark_all_as_read(user.id)})


@router.get("/preferences")
async def get_preferences(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_required),
):
    preferences = NotificationService(db).get_preferences(user.id)
    return ResponseService.success([PreferenceResponse.model_validate(p) for p in preferences])


@router.post("/preferences/initialize")
async def initialize_preferences(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_required),
):
    preferences = NotificationService(db).initialize_preferences(user.id)
    return ResponseService.success([PreferenceResponse.model_validate(p) for p in preferences])


@router.put("/preferences")
async def update_preference(
    request: PreferenceUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_required),
):
    preference = NotificationService(db).update_preference(
        user.id, request.type.value, request.model_dump(exclude={"type"})
    )
    return ResponseService.success(PreferenceResponse.model_validate(preference))


@router.post("/fcm-token")
async def register_fcm_token(
    request: TokenRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_required),
):
    """Register a browser or device for push delivery"""
    tokens = NotificationService(db).register_fcm_token(user.id, request.token)
    return ResponseService.success({"tokens": len(tokens)})


@router.post("/{notification_id}/read")
async def mark_as_read(
    notification_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_required),
):
    notification = NotificationService(db).mark_as_read(notification_id, user.id)
    return ResponseService.success(NotificationResponse.model_validate(notification))


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_required),
):
    NotificationService(db).delete_notification(notification_id, user.id)
    return ResponseService.success({"id": notification_id, "deleted": True})
