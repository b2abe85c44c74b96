"""
Admin API routes for notifications
"""
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.notification import NotificationPriority, NotificationType
from quasar.models.user import User
from quasar.services.notification_service import NotificationService

router = APIRouter(prefix="/api/admin/notifications", tags=["admin-notifications"])


class NotificationCreate(BaseModel):
    user_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO
    priority: NotificationPriority = NotificationPriority.MEDIUM
    data: Optional[Dict[str, Any]] = None
    action_url: Optional[str] = Field(None, max_length=500)
    expires_at: Optional[datetime] = None


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    message: str
    type: str
    priority: str
    is_read: bool
    read_at: Optional[datetime] = None
    data: Optional[Dict[str, Any]] = None
    action_url: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime


def _payload(request: NotificationCreate) -> Dict[str, Any]:
    data = request.model_dump(exclude={"user_id"})
    data["type"] = request.type.value
    data["priority"] = request.priority.value
    return data


@router.get("")
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: Optional[UUID] = None,
    type: Optional[NotificationType] = None,
    is_read: Optional[bool] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:notification")),
):
    items, total = NotificationService(db).list_notifications(
        page=page, limit=limit, user_id=user_id, type=type.value if type else None, is_read=is_read
    )
    return ResponseService.list([NotificationResponse.model_validate(n) for n in items], total, page, limit)


@router.get("/stats")
async def notification_stats(
    user_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:notification")),
):
    return ResponseService.success(NotificationService(db).get_stats(user_id))


@router.post("", status_code=201)
async def create_notification(
    request: NotificationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:notification")),
):
    """Store an in-app notification without push delivery"""
    notification = NotificationService(db).create_notification(request.user_id, _payload(request))
    return ResponseService.created(NotificationResponse.model_validate(notification))


@router.post("/send", status_code=201)
async def send_notification(
    request: NotificationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:notification")),
):
    """Deliver through every channel the recipient allows"""
    notification = NotificationService(db).send_to_user(request.user_id, _payload(request))
    return ResponseService.created(NotificationResponse.model_validate(notification) if notification else None)


@router.post("/cleanup")
async def cleanup_notifications(
    days: int = Query(30, ge=1),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:notification")),
):
    """Delete read notifications older than `days` and all expired ones"""
    return ResponseService.success({"deleted": NotificationService(db).cleanup_old(days)})


@router.get("/{notification_id}")
async def get_notification(
    notification_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:notification")),
):
    notification = NotificationService(db).get_notification(notification_id)
    return ResponseService.success(NotificationResponse.model_validate(notification))


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:notification")),
):
    NotificationService(db).delete_notification(notification_id)
    return ResponseService.success({"id": notification_id, "deleted": True})
