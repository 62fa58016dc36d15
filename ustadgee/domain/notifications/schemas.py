"""Notification domain schemas"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ...schemas import NotificationType


class NotificationCreateRequest(BaseModel):
    """Manual notification to another user (field names match the mobile client)"""

    title: str = Field(min_length=1, max_length=500)
    type: NotificationType
    username: int  # Recipient user id
    post_id: int
    message: str = Field(default="", max_length=1000)


class NotifierSummary(BaseModel):
    id: int
    fullName: str
    profileImage: Optional[str] = None


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: int
    timeStamp: Optional[datetime] = None
    usernameNotifier: Optional[int] = None
    postId: Optional[int] = None
    isRead: bool
    notifier: Optional[NotifierSummary] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class NotificationListResponse(BaseModel):
    success: bool = True
    data: list[NotificationResponse]
    pagination: Pagination


class NotificationPermissionUpdate(BaseModel):
    permission: Literal["default", "granted", "denied", "all", "none"]
