"""Notification service - pull-based catch-up for events missed while offline"""

import logging
import math

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...exceptions import StoreError
from ...models import Notification, User
from ...realtime.hub import RealtimeHub
from ...services.notification_service import NotificationPayload
from .repository import NotificationRepository
from .schemas import (
    NotificationCreateRequest,
    NotificationListResponse,
    NotificationResponse,
    NotifierSummary,
    Pagination,
)

logger = logging.getLogger(__name__)


def to_response(notification: Notification) -> NotificationResponse:
    notifier = notification.notifier
    return NotificationResponse(
        id=notification.id,
        title=notification.title,
        message=notification.message,
        type=notification.type,
        timeStamp=notification.time_stamp,
        usernameNotifier=notification.notifier_id,
        postId=notification.post_id,
        isRead=notification.is_read,
        notifier=(
            NotifierSummary(
                id=notifier.id, fullName=notifier.full_name, profileImage=notifier.profile_image
            )
            if notifier
            else None
        ),
    )


class NotificationService:
    def __init__(self, db: Session, hub: RealtimeHub):
        self.db = db
        self.repo = NotificationRepository()
        self.hub = hub

    def list_notifications(self, user: User, page: int, limit: int) -> NotificationListResponse:
        offset = (page - 1) * limit
        notifications = self.repo.list_for_user(self.db, user.id, limit, offset)
        total = self.repo.count_for_user(self.db, user.id)
        return NotificationListResponse(
            data=[to_response(n) for n in notifications],
            pagination=Pagination(
                page=page, limit=limit, total=total, totalPages=math.ceil(total / limit)
            ),
        )

    def unread_count(self, user: User) -> int:
        return self.repo.count_for_user(self.db, user.id, unread_only=True)

    def mark_read(self, notification_id: int, user: User) -> None:
        notification = self.repo.get_for_user(self.db, notification_id, user.id)
        if not notification:
            raise HTTPException(
                status_code=404, detail="Notification not found or does not belong to you"
            )
        self.repo.mark_read(self.db, notification)

    def mark_all_read(self, user: User) -> int:
        updated = self.repo.mark_all_read(self.db, user.id)
        logger.info(f"📭 Marked {updated} notification(s) read for user {user.id}")
        return updated

    async def create_notification(self, data: NotificationCreateRequest, user: User) -> int:
        """Record and push a notification to another user"""
        if not self.repo.get_user(self.db, data.username):
            raise HTTPException(status_code=404, detail="Recipient user not found")

        try:
            result = await self.hub.bridge.deliver(
                data.username,
                NotificationPayload(
                    title=data.title,
                    message=data.message,
                    type=data.type,
                    link_id=data.post_id,
                    notifier_id=user.id,
                ),
            )
        except StoreError as e:
            raise HTTPException(
                status_code=500, detail="Server error while creating notification"
            ) from e
        return result.record.id

    def update_permission(self, user: User, permission: str) -> None:
        self.repo.set_notification_permission(self.db, user, permission)
        logger.info(f"🔔 User {user.id} notification permission set to {permission}")
