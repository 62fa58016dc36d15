"""Notification router - catch-up surface complementing live push"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...realtime.hub import RealtimeHub, get_hub
from ...schemas import MessageResponse
from .schemas import (
    NotificationCreateRequest,
    NotificationListResponse,
    NotificationPermissionUpdate,
)
from .service import NotificationService

router = APIRouter(prefix="/api", tags=["Notifications"])


def get_notification_service(
    db: Session = Depends(get_db), hub: RealtimeHub = Depends(get_hub)
) -> NotificationService:
    """Dependency injection for NotificationService"""
    return NotificationService(db, hub)


@router.get("/notifications", response_model=NotificationListResponse)
async def get_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Current user's notifications, newest first"""
    return service.list_notifications(current_user, page, limit)


@router.get("/notifications/unreadCount")
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    return {"success": True, "data": {"unread_count": service.unread_count(current_user)}}


@router.put("/notification/{notification_id}", response_model=MessageResponse)
async def mark_notification_as_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    service.mark_read(notification_id, current_user)
    return MessageResponse(message="Notification marked as read")


@router.put("/notifications/markAllRead", response_model=MessageResponse)
async def mark_all_notifications_as_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    service.mark_all_read(current_user)
    return MessageResponse(message="All notifications marked as read")


@router.post("/notifications", status_code=201)
async def create_notification(
    data: NotificationCreateRequest,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    notification_id = await service.create_notification(data, current_user)
    return {
        "success": True,
        "message": "Notification created successfully",
        "data": {"id": notification_id},
    }


@router.put("/notification-permission", response_model=MessageResponse)
async def update_notification_permission(
    data: NotificationPermissionUpdate,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """HTTP twin of the notification_permission socket frame"""
    service.update_permission(current_user, data.permission)
    return MessageResponse(message="Notification permission updated")
